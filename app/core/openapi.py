"""OpenAPI metadata and customization utilities.

Documents the webhook signature (``X-Hub-Signature-256``) as an API key
style security scheme on the webhook route only, and adds tag metadata.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the signature scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "WebhookSignature",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-Hub-Signature-256",
                "description": "sha256=<hex HMAC-SHA256 of the raw body keyed with the shared secret>",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in (
            {"name": "Webhook", "description": "Signed webhook relay."},
            {"name": "Health", "description": "Service metadata and liveness."},
        ):
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        # Only the relay route is signed
        for path, methods in schema.get("paths", {}).items():
            if not path.startswith("/webhook/"):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    method_obj["security"] = [{"WebhookSignature": []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
