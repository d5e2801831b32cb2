"""Payment gateway ports (abstract interfaces).

Checkout talks to every gateway through two small contracts: initiation,
which turns an order id into a redirect URL or a gateway-native handle, and
capture, which settles an SDK-driven payment. Adapters are swappable without
touching the ordering domain.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class InitiationResult:
    """Result of asking a gateway to start a payment for an order."""

    success: bool
    redirect_url: str | None = None
    handle: str | None = None
    error: str | None = None
    details: str | None = None


@dataclass(frozen=True)
class CaptureResult:
    """Result of capturing an approved SDK payment."""

    success: bool
    transaction_id: str | None = None
    error: str | None = None


class PaymentInitiator(ABC):
    """Starts a payment with one gateway family."""

    @abstractmethod
    def initiate(self, order_id: str) -> InitiationResult:
        """Register the order with the gateway and return where to go next."""
        ...

    @abstractmethod
    def verify_callback_signature(self, payload: str, signature: str) -> bool:
        """Verify that a callback payload really came from the gateway."""
        ...


class PaymentCapturer(ABC):
    """Captures payments approved in a client-side SDK."""

    @abstractmethod
    def capture(self, handle: str, order_id: str) -> CaptureResult:
        """Exchange the gateway-native handle for a settled payment."""
        ...
