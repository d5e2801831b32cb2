"""Payment methods as a closed set of variants.

Every payment method key a shopper can pick parses into exactly one of
``CashOnDelivery``, ``ManualPayment``, ``RedirectGateway(kind)`` or
``SdkGateway(kind)``. Adding a gateway means adding a kind, not a branch.
"""

from dataclasses import dataclass
from enum import Enum


class GatewayKind(Enum):
    SSLCOMMERZ = "sslcommerz"
    BKASH = "bkash"
    NAGAD = "nagad"
    STRIPE = "stripe"
    PAYPAL = "paypal"


REDIRECT_KINDS = frozenset({GatewayKind.SSLCOMMERZ, GatewayKind.BKASH, GatewayKind.NAGAD, GatewayKind.STRIPE})
SDK_KINDS = frozenset({GatewayKind.PAYPAL})


@dataclass(frozen=True)
class CashOnDelivery:
    @property
    def key(self) -> str:
        return "cod"


@dataclass(frozen=True)
class ManualPayment:
    @property
    def key(self) -> str:
        return "manual_payment"


@dataclass(frozen=True)
class RedirectGateway:
    kind: GatewayKind

    @property
    def key(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class SdkGateway:
    kind: GatewayKind

    @property
    def key(self) -> str:
        return self.kind.value


PaymentMethod = CashOnDelivery | ManualPayment | RedirectGateway | SdkGateway


def parse_payment_method(key: str | None) -> PaymentMethod | None:
    """Map a payment method key to its variant; None for unknown keys."""
    normalized = (key or "").strip().lower()
    if normalized == "cod":
        return CashOnDelivery()
    if normalized == "manual_payment":
        return ManualPayment()

    try:
        kind = GatewayKind(normalized)
    except ValueError:
        return None
    if kind in SDK_KINDS:
        return SdkGateway(kind)
    return RedirectGateway(kind)
