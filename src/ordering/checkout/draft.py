"""CheckoutDraft: the in-memory checkout a shopper is assembling.

A draft is an immutable value: applying a coupon or switching the delivery
area produces a new draft. It is validated and priced by pure functions
before anything is written, and it carries an idempotency key so that
submitting the same draft twice never yields two orders.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from uuid import uuid4

from ordering.checkout.methods import ManualPayment, parse_payment_method
from ordering.coupon.validation import AppliedCoupon
from ordering.shipping.rates import ShippingCatalog


@dataclass(frozen=True)
class CustomerIdentity:
    """Who is checking out, as reported by the authentication service."""

    customer_id: str | None = None
    email_verified: bool = False
    name: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.customer_id)


@dataclass(frozen=True)
class DraftLine:
    product_id: str
    product_name: str
    unit_price: float
    quantity: int
    variation: dict | None = None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "variation": self.variation,
        }


@dataclass(frozen=True)
class DeliveryAddress:
    address: str
    recipient_name: str | None = None
    phone: str | None = None
    city: str | None = None
    postal_code: str | None = None

    def to_dict(self) -> dict:
        return {
            "address": self.address.strip(),
            "recipient_name": self.recipient_name,
            "phone": self.phone,
            "city": self.city,
            "postal_code": self.postal_code,
        }


@dataclass(frozen=True)
class ManualPaymentProof:
    """What a shopper submits after paying offline."""

    method_name: str
    account_number: str
    transaction_id: str
    screenshot_url: str | None = None


@dataclass(frozen=True)
class CheckoutDraft:
    customer: CustomerIdentity
    lines: tuple[DraftLine, ...] = ()
    address: DeliveryAddress | None = None
    shipping_rate_id: str | None = None
    payment_method: str | None = None
    coupon: AppliedCoupon | None = None
    manual_proof: ManualPaymentProof | None = None
    buy_now: bool = False
    idempotency_key: str = field(default_factory=lambda: uuid4().hex)

    @classmethod
    def from_cart(cls, customer, cart, **kwargs):
        """Draft every line of the customer's cart."""
        lines = tuple(
            DraftLine(
                product_id=str(item.product_id),
                product_name=item.product_name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                variation=_load_variation(item.variation),
            )
            for item in (cart.items if cart is not None else [])
        )
        return cls(customer=customer, lines=lines, buy_now=False, **kwargs)

    @classmethod
    def for_single_item(cls, customer, line: DraftLine, **kwargs):
        """Buy-now: one product, bypassing (and never clearing) the cart."""
        return cls(customer=customer, lines=(line,), buy_now=True, **kwargs)

    @property
    def subtotal(self) -> float:
        return round(sum(line.unit_price * line.quantity for line in self.lines), 2)

    @property
    def product_ids(self) -> set[str]:
        return {line.product_id for line in self.lines}

    def with_coupon(self, coupon: AppliedCoupon | None) -> "CheckoutDraft":
        return replace(self, coupon=coupon)

    def with_changes(self, **changes) -> "CheckoutDraft":
        return replace(self, **changes)


class ProblemCode(Enum):
    AUTH_REQUIRED = "auth_required"
    EMAIL_UNVERIFIED = "email_unverified"
    ADDRESS_REQUIRED = "address_required"
    DELIVERY_AREA_REQUIRED = "delivery_area_required"
    DELIVERY_AREA_UNAVAILABLE = "delivery_area_unavailable"
    PAYMENT_METHOD_REQUIRED = "payment_method_required"
    UNKNOWN_PAYMENT_METHOD = "unknown_payment_method"
    EMPTY_CART = "empty_cart"
    TRANSACTION_ID_REQUIRED = "transaction_id_required"


_PROBLEM_MESSAGES = {
    ProblemCode.AUTH_REQUIRED: "Please sign in to place your order",
    ProblemCode.EMAIL_UNVERIFIED: "Please verify your email before placing an order",
    ProblemCode.ADDRESS_REQUIRED: "Please enter your address",
    ProblemCode.DELIVERY_AREA_REQUIRED: "Please select a delivery area",
    ProblemCode.DELIVERY_AREA_UNAVAILABLE: "The selected delivery area is no longer available",
    ProblemCode.PAYMENT_METHOD_REQUIRED: "Please select a payment method",
    ProblemCode.UNKNOWN_PAYMENT_METHOD: "The selected payment method is not supported",
    ProblemCode.EMPTY_CART: "No items to checkout",
    ProblemCode.TRANSACTION_ID_REQUIRED: "Please enter the transaction id of your payment",
}


@dataclass(frozen=True)
class CheckoutProblem:
    code: ProblemCode
    message: str

    error_kind = "validation_error"


def validate_draft(draft: CheckoutDraft, catalog: ShippingCatalog) -> list[CheckoutProblem]:
    """Everything that stops this draft from becoming an order; empty when ready."""
    codes = []

    if not draft.customer.is_authenticated:
        codes.append(ProblemCode.AUTH_REQUIRED)
    elif not draft.customer.email_verified:
        codes.append(ProblemCode.EMAIL_UNVERIFIED)

    if draft.address is None or not draft.address.address.strip():
        codes.append(ProblemCode.ADDRESS_REQUIRED)

    if draft.shipping_rate_id:
        if catalog.find(draft.shipping_rate_id) is None:
            codes.append(ProblemCode.DELIVERY_AREA_UNAVAILABLE)
    elif catalog.offers_delivery_areas:
        codes.append(ProblemCode.DELIVERY_AREA_REQUIRED)

    method = parse_payment_method(draft.payment_method)
    if not draft.payment_method:
        codes.append(ProblemCode.PAYMENT_METHOD_REQUIRED)
    elif method is None:
        codes.append(ProblemCode.UNKNOWN_PAYMENT_METHOD)

    if not draft.lines:
        codes.append(ProblemCode.EMPTY_CART)

    if isinstance(method, ManualPayment) and (
        draft.manual_proof is None or not draft.manual_proof.transaction_id.strip()
    ):
        codes.append(ProblemCode.TRANSACTION_ID_REQUIRED)

    return [CheckoutProblem(code=code, message=_PROBLEM_MESSAGES[code]) for code in codes]


def _load_variation(variation):
    if not variation:
        return None
    if isinstance(variation, dict):
        return variation
    return json.loads(variation)
