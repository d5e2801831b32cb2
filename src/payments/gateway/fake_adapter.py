"""Configurable fake payment gateways for development and testing.

These adapters simulate gateway initiation and capture without any external
calls. They can be configured at runtime to succeed or fail, which makes
them useful for manual API testing via /gateways/configure, for automated
tests with predictable outcomes, and for development without credentials.
"""

from uuid import uuid4

from payments.gateway.port import CaptureResult, InitiationResult, PaymentCapturer, PaymentInitiator


class FakeInitiator(PaymentInitiator):
    """Fake initiation endpoint for one gateway kind.

    Redirect gateways answer with a hosted-page URL, SDK gateways with an
    opaque handle.
    """

    def __init__(self, kind: str, issues_handle: bool = False) -> None:
        self.kind = kind
        self.issues_handle = issues_handle
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.failure_details: str | None = None
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Gateway unavailable",
        failure_details: str | None = None,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failure_details = failure_details

    def initiate(self, order_id: str) -> InitiationResult:
        self.calls.append({"method": "initiate", "kind": self.kind, "order_id": order_id})

        if not self.should_succeed:
            return InitiationResult(
                success=False,
                error=self.failure_reason,
                details=self.failure_details,
            )
        if self.issues_handle:
            return InitiationResult(success=True, handle=f"fake_{self.kind}_{uuid4().hex[:12]}")
        return InitiationResult(
            success=True,
            redirect_url=f"https://pay.example.test/{self.kind}/checkout/{order_id}",
        )

    def verify_callback_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == "test-signature"


class FakeCapturer(PaymentCapturer):
    """Fake capture endpoint for SDK-driven gateways."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment declined"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Payment declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def capture(self, handle: str, order_id: str) -> CaptureResult:
        self.calls.append({"method": "capture", "handle": handle, "order_id": order_id})

        if self.should_succeed:
            return CaptureResult(success=True, transaction_id=f"fake_cap_{uuid4().hex[:12]}")
        return CaptureResult(success=False, error=self.failure_reason)
