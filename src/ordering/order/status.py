"""Staff-driven status changes: commands and handler.

Both the fulfillment status and the payment status can be changed by staff,
one order at a time, but only along the transitions the Order allows.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, PaymentSource

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class ChangeOrderStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=50)
    changed_by = String(max_length=255)


@ordering.command(part_of="Order")
class ChangePaymentStatus:
    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=50)
    transaction_id = String(max_length=255)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(ChangeOrderStatus)
    def change_order_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        previous = order.status
        order.change_status(command.new_status, changed_by=command.changed_by)
        repo.add(order)

        logger.info(
            "Order status changed",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
            changed_by=command.changed_by,
        )
        return order.status

    @handle(ChangePaymentStatus)
    def change_payment_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.change_payment_status(
            command.new_status,
            source=PaymentSource.STAFF,
            transaction_id=command.transaction_id,
        )
        repo.add(order)
        return order.payment_status
