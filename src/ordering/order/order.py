"""Order aggregate (CQRS): the durable record a checkout produces.

The aggregate owns two independent state machines. Fulfillment ``status``
moves strictly forward along

    pending → confirmed → processing → send_to_courier → delivered

with ``returned`` and ``cancelled`` reachable from any non-terminal state.
``payment_status`` is tracked separately and is moved either by a gateway
callback or by staff.

Line items and the shipping snapshot are captured at checkout and never
change afterwards, and neither does ``total``.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from ordering.domain import ordering
from ordering.order.events import (
    GatewayReferenceAssigned,
    OrderPlaced,
    OrderStatusChanged,
    PaymentStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SEND_TO_COURIER = "send_to_courier"
    DELIVERED = "delivered"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    UNPAID = "unpaid"
    COD = "cod"
    REFUNDED = "refunded"


class PaymentSource(Enum):
    GATEWAY = "gateway"
    STAFF = "staff"


# Deprecated spellings still sent by older clients
_STATUS_ALIASES = {
    "shipped": OrderStatus.SEND_TO_COURIER,
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.RETURNED, OrderStatus.CANCELLED})

# Staff may jump forward along the fulfillment path but never move backwards
_FORWARD_PATH = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SEND_TO_COURIER,
    OrderStatus.DELIVERED,
)

_VALID_TRANSITIONS = {
    step: set(_FORWARD_PATH[index + 1 :]) | {OrderStatus.RETURNED, OrderStatus.CANCELLED}
    for index, step in enumerate(_FORWARD_PATH[:-1])
}
_VALID_TRANSITIONS.update(
    {
        OrderStatus.DELIVERED: set(),  # Terminal
        OrderStatus.RETURNED: set(),  # Terminal
        OrderStatus.CANCELLED: set(),  # Terminal
    }
)

# Payment state machine, independent of fulfillment
_VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {
        PaymentStatus.PAID,
        PaymentStatus.UNPAID,
        PaymentStatus.COD,
        PaymentStatus.REFUNDED,
    },
    PaymentStatus.COD: {PaymentStatus.PAID, PaymentStatus.UNPAID},
    PaymentStatus.UNPAID: {PaymentStatus.PAID, PaymentStatus.PENDING},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}


def parse_status(value) -> OrderStatus:
    """Resolve a status name (or a deprecated alias) to an ``OrderStatus``."""
    if isinstance(value, OrderStatus):
        return value

    key = str(value or "").strip().lower()
    if key in _STATUS_ALIASES:
        return _STATUS_ALIASES[key]
    try:
        return OrderStatus(key)
    except ValueError:
        raise ValidationError({"status": [f"Unknown order status: {value}"]}) from None


def parse_payment_status(value) -> PaymentStatus:
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError({"payment_status": [f"Unknown payment status: {value}"]}) from None


def allowed_transitions(status) -> set[OrderStatus]:
    return set(_VALID_TRANSITIONS[parse_status(status)])


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingSnapshot:
    """Where the order goes and what delivery cost, captured at checkout.

    The delivery charge is copied from the shipping rate in force at checkout
    time. Later edits to the rate never reach a placed order.
    """

    recipient_name = String(max_length=255)
    phone = String(max_length=50)
    address = Text(required=True)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    delivery_area = String(max_length=255, default="Standard")
    delivery_charge = Float(default=0.0, min_value=0.0)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A denormalized snapshot of one purchased product line."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    variation = Text()  # JSON: selected options, e.g. {"size": "M"}

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    items = HasMany(OrderItem)
    shipping = ValueObject(ShippingSnapshot)
    subtotal = Float(default=0.0, min_value=0.0)
    discount = Float(default=0.0, min_value=0.0)
    total = Float(required=True, min_value=0.0)
    coupon_code = String(max_length=50)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(required=True, max_length=50)
    notes = Text()
    transaction_id = String(max_length=255)
    idempotency_key = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_components(self):
        expected = max(round(self.subtotal + self.shipping_charge - self.discount, 2), 0.0)
        if abs(expected - self.total) > 0.005:
            raise ValidationError({"total": ["Total must equal subtotal + shipping - discount"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        customer_id,
        items_data,
        shipping,
        pricing,
        payment_method,
        cash_on_delivery=False,
        notes=None,
        coupon_code=None,
        transaction_id=None,
        idempotency_key=None,
    ):
        """Create an order from a priced checkout.

        Args:
            customer_id: The customer placing the order.
            items_data: List of dicts with product_id, product_name,
                        unit_price, quantity and an optional variation.
            shipping: Dict with the ShippingSnapshot fields.
            pricing: Dict with subtotal, shipping, discount and total.
            payment_method: Payment method key chosen at checkout.
            cash_on_delivery: COD orders are confirmed immediately and their
                              payment is collected by the courier.
        """
        now = datetime.now(UTC)

        if cash_on_delivery:
            status, payment_status = OrderStatus.CONFIRMED, PaymentStatus.COD
        else:
            status, payment_status = OrderStatus.PENDING, PaymentStatus.PENDING

        items = [
            OrderItem(
                product_id=item["product_id"],
                product_name=item["product_name"],
                unit_price=item["unit_price"],
                quantity=item["quantity"],
                variation=_dump_variation(item.get("variation")),
            )
            for item in items_data
        ]

        order = cls(
            customer_id=customer_id,
            items=items,
            shipping=ShippingSnapshot(
                **{**shipping, "delivery_charge": pricing.get("shipping", 0.0)},
            ),
            subtotal=pricing["subtotal"],
            discount=pricing.get("discount", 0.0),
            total=pricing["total"],
            coupon_code=coupon_code,
            status=status.value,
            payment_status=payment_status.value,
            payment_method=payment_method,
            notes=notes,
            transaction_id=transaction_id,
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                items=json.dumps([_item_to_dict(item) for item in items]),
                total=order.total,
                status=order.status,
                payment_status=order.payment_status,
                payment_method=payment_method,
                coupon_code=coupon_code,
                idempotency_key=idempotency_key,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def shipping_charge(self) -> float:
        return self.shipping.delivery_charge if self.shipping else 0.0

    @property
    def short_id(self) -> str:
        return str(self.id)[:8]

    @property
    def is_terminal(self) -> bool:
        return OrderStatus(self.status) in TERMINAL_STATUSES

    @property
    def awaiting_payment(self) -> bool:
        """True while a gateway may still settle this order."""
        return PaymentStatus(self.payment_status) in (PaymentStatus.PENDING, PaymentStatus.UNPAID)

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _assert_can_change_payment(self, target_status):
        current = PaymentStatus(self.payment_status)
        if target_status not in _VALID_PAYMENT_TRANSITIONS.get(current, set()):
            raise ValidationError(
                {"payment_status": [f"Cannot change payment from {current.value} to {target_status.value}"]}
            )

    # -------------------------------------------------------------------
    # Fulfillment lifecycle
    # -------------------------------------------------------------------
    def change_status(self, new_status, changed_by=None):
        """Move the order to ``new_status`` if the state machine allows it."""
        target = parse_status(new_status)
        self._assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_by=changed_by,
                changed_at=now,
            )
        )

    def assert_deletable(self):
        if OrderStatus(self.status) != OrderStatus.CANCELLED:
            raise ValidationError({"status": [f"Only cancelled orders can be deleted, order is {self.status}"]})

    # -------------------------------------------------------------------
    # Payment lifecycle
    # -------------------------------------------------------------------
    def change_payment_status(self, new_status, source=PaymentSource.STAFF, transaction_id=None):
        target = parse_payment_status(new_status)
        self._assert_can_change_payment(target)

        previous = self.payment_status
        now = datetime.now(UTC)
        self.payment_status = target.value
        if transaction_id:
            self.transaction_id = transaction_id
        self.updated_at = now

        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                transaction_id=transaction_id,
                source=source.value,
                changed_at=now,
            )
        )

    def record_payment_result(self, success, transaction_id=None):
        """Apply a gateway callback. Fulfillment status is never touched.

        Returns False when the callback repeats the outcome already recorded.
        """
        target = PaymentStatus.PAID if success else PaymentStatus.UNPAID
        if PaymentStatus(self.payment_status) == target:
            return False

        self.change_payment_status(target, source=PaymentSource.GATEWAY, transaction_id=transaction_id)
        return True

    def assign_gateway_reference(self, transaction_id):
        """Store the gateway-native handle issued for this order."""
        if not self.awaiting_payment:
            raise ValidationError({"transaction_id": ["Payment for this order is already settled"]})

        self.transaction_id = transaction_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            GatewayReferenceAssigned(
                order_id=str(self.id),
                payment_method=self.payment_method,
                transaction_id=transaction_id,
            )
        )


def _dump_variation(variation):
    if variation is None or isinstance(variation, str):
        return variation
    return json.dumps(variation, sort_keys=True)


def _item_to_dict(item):
    return {
        "id": str(item.id),
        "product_id": str(item.product_id),
        "product_name": item.product_name,
        "unit_price": item.unit_price,
        "quantity": item.quantity,
        "variation": item.variation,
    }
