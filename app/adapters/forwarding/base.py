from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class InboundWebhook:
	"""A webhook delivery that passed header validation and body capture.

	Attributes:
		event: Value of X-GitHub-Event.
		delivery_id: Value of X-GitHub-Delivery.
		signature: Value of X-Hub-Signature-256, if sent.
		user_agent: Value of User-Agent, if sent.
		body: Raw request body, byte-for-byte as received.
	"""

	event: str
	delivery_id: str
	signature: str | None
	user_agent: str | None
	body: bytes


@dataclass(frozen=True)
class ForwardResult:
	"""What the destination answered.

	Attributes:
		status_code: HTTP status returned by the destination.
		body_excerpt: Start of the response body, for logs only.
		elapsed_ms: Round-trip time of the outbound request.
	"""

	status_code: int
	body_excerpt: str
	elapsed_ms: float

	@property
	def ok(self) -> bool:
		return 200 <= self.status_code < 300


class AbstractForwarder(ABC):
	"""Interface for clients that deliver a webhook to the destination."""

	@abstractmethod
	async def forward(self, webhook: InboundWebhook) -> ForwardResult:
		"""Send the webhook to the destination exactly once.

		Args:
			webhook: Verified inbound delivery.

		Returns:
			ForwardResult: The destination's answer, whatever its status.

		Raises:
			TransportAppError: If no HTTP response could be obtained.
		"""
		...

	async def aclose(self) -> None:
		"""Release network resources. No-op by default."""
		return None
