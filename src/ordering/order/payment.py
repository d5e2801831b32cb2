"""Gateway-driven payment updates: commands and handler.

A gateway callback only ever moves ``payment_status``. Replayed callbacks are
absorbed by the aggregate and reported back as not recorded.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class RecordPaymentResult:
    order_id = Identifier(required=True)
    success = Boolean(default=False)
    transaction_id = String(max_length=255)


@ordering.command(part_of="Order")
class AssignGatewayReference:
    order_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=255)


@ordering.command_handler(part_of=Order)
class OrderPaymentHandler:
    @handle(RecordPaymentResult)
    def record_payment_result(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        recorded = order.record_payment_result(
            success=bool(command.success),
            transaction_id=command.transaction_id,
        )
        if not recorded:
            logger.info(
                "Duplicate payment callback ignored",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            return False

        repo.add(order)
        logger.info(
            "Payment callback recorded",
            order_id=str(order.id),
            payment_status=order.payment_status,
            transaction_id=command.transaction_id,
        )
        return True

    @handle(AssignGatewayReference)
    def assign_gateway_reference(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assign_gateway_reference(command.transaction_id)
        repo.add(order)
