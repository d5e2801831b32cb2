"""Order deletion: command and handler.

Only cancelled orders may be deleted. Line items are removed and persisted
before the order record itself so no orphaned items remain.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class DeleteOrder:
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Order)
class DeleteOrderHandler:
    @handle(DeleteOrder)
    def delete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.assert_deletable()

        item_count = len(order.items)
        for item in list(order.items):
            order.remove_items(item)
        repo.add(order)

        repo._dao.delete(order)
        logger.info("Order deleted", order_id=str(command.order_id), item_count=item_count)
        return str(command.order_id)
