"""Payment gateway registry.

Provides get_initiator() / set_initiator() and get_capturer() /
set_capturer() to swap implementations per gateway kind:
- FakeInitiator / FakeCapturer for development and testing (default)
- FunctionInitiator / FunctionCapturer for the hosted payment functions
"""

from payments.gateway.fake_adapter import FakeCapturer, FakeInitiator
from payments.gateway.port import PaymentCapturer, PaymentInitiator

# Gateways whose initiation returns a handle for a client-side SDK
SDK_KINDS = frozenset({"paypal"})

_initiators: dict[str, PaymentInitiator] = {}
_capturers: dict[str, PaymentCapturer] = {}


def get_initiator(kind: str) -> PaymentInitiator:
    """Return the initiator for a gateway kind. Defaults to FakeInitiator."""
    if kind not in _initiators:
        _initiators[kind] = FakeInitiator(kind, issues_handle=kind in SDK_KINDS)
    return _initiators[kind]


def set_initiator(kind: str, initiator: PaymentInitiator) -> None:
    """Override the initiator for a gateway kind (useful for tests)."""
    _initiators[kind] = initiator


def get_capturer(kind: str) -> PaymentCapturer:
    """Return the capturer for an SDK gateway kind. Defaults to FakeCapturer."""
    if kind not in _capturers:
        _capturers[kind] = FakeCapturer()
    return _capturers[kind]


def set_capturer(kind: str, capturer: PaymentCapturer) -> None:
    _capturers[kind] = capturer


def reset_gateways() -> None:
    """Reset every kind to its default adapter."""
    _initiators.clear()
    _capturers.clear()
