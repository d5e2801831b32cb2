"""Order placement: command and handler.

Placement is idempotent per checkout: a draft carries an idempotency key and
resubmitting the same key returns the order already created for it.
"""

import json

import structlog
from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of line item dicts
    shipping = Text(required=True)  # JSON: shipping snapshot dict
    subtotal = Float(required=True)
    shipping_charge = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(required=True)
    payment_method = String(required=True, max_length=50)
    cash_on_delivery = Boolean(default=False)
    notes = Text()
    coupon_code = String(max_length=50)
    transaction_id = String(max_length=255)
    idempotency_key = String(max_length=100)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        repo = current_domain.repository_for(Order)
        existing = repo.find_by_idempotency_key(command.idempotency_key)
        if existing is not None:
            logger.info(
                "Checkout already produced an order",
                order_id=str(existing.id),
                idempotency_key=command.idempotency_key,
            )
            return str(existing.id)

        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping = json.loads(command.shipping) if isinstance(command.shipping, str) else command.shipping

        order = Order.place(
            customer_id=command.customer_id,
            items_data=items_data,
            shipping=shipping,
            pricing={
                "subtotal": command.subtotal,
                "shipping": command.shipping_charge or 0.0,
                "discount": command.discount or 0.0,
                "total": command.total,
            },
            payment_method=command.payment_method,
            cash_on_delivery=bool(command.cash_on_delivery),
            notes=command.notes,
            coupon_code=command.coupon_code,
            transaction_id=command.transaction_id,
            idempotency_key=command.idempotency_key,
        )
        repo.add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            customer_id=str(command.customer_id),
            status=order.status,
            payment_method=order.payment_method,
            total=order.total,
        )
        return str(order.id)
