"""Domain events for the Order aggregate.

All events are versioned, immutable facts representing state changes. They
are written to the event store alongside the order and give staff a complete
audit trail of how an order moved through its lifecycle.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A checkout produced a durable order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line item dicts
    total = Float(required=True)
    status = String(required=True)
    payment_status = String(required=True)
    payment_method = String(required=True)
    coupon_code = String()
    idempotency_key = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    """Fulfillment status moved along the order state machine."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_by = String()
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentStatusChanged:
    """Payment status changed, through a gateway callback or a staff action."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    transaction_id = String()
    source = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class GatewayReferenceAssigned:
    """A payment gateway issued its own handle for this order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_method = String(required=True)
    transaction_id = String(required=True)
