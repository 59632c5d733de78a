import uvicorn

from app.core.app_factory import create_app
from app.core.config import settings

app = create_app()


def run() -> None:
    """Serve the relay with uvicorn on HOST:PORT."""
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
        proxy_headers=settings.app.trust_forwarded_for,
    )


if __name__ == "__main__":
    run()
