"""BulkOrderOperator: one staff action applied across many orders.

Ids are processed one at a time. A failure on one id is recorded and the
batch moves on. Deletion silently leaves out orders that are not cancelled;
they are reported as skipped, not failed.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.order.deletion import DeleteOrder
from ordering.order.documents import OrderDocument, render_document
from ordering.order.order import Order, OrderStatus
from ordering.order.status import ChangeOrderStatus

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ItemOutcome:
    order_id: str
    succeeded: bool
    error: str | None = None


@dataclass(frozen=True)
class BulkResult:
    outcomes: tuple[ItemOutcome, ...] = ()
    skipped: tuple[str, ...] = ()

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


@dataclass(frozen=True)
class BulkDocuments:
    documents: tuple[OrderDocument, ...] = ()
    missing: tuple[str, ...] = ()


def _unique(order_ids):
    return list(dict.fromkeys(str(order_id) for order_id in order_ids))


def _error_text(exc) -> str:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return "; ".join(str(message) for values in messages.values() for message in values)
    return str(exc)


class BulkOrderOperator:
    def change_status(self, order_ids, new_status, changed_by=None) -> BulkResult:
        outcomes = []
        for order_id in _unique(order_ids):
            try:
                current_domain.process(
                    ChangeOrderStatus(order_id=order_id, new_status=new_status, changed_by=changed_by),
                    asynchronous=False,
                )
                outcomes.append(ItemOutcome(order_id=order_id, succeeded=True))
            except (ValidationError, ObjectNotFoundError, InvalidOperationError) as exc:
                logger.warning(
                    "Failed to change order status",
                    order_id=order_id,
                    new_status=new_status,
                    error=_error_text(exc),
                )
                outcomes.append(ItemOutcome(order_id=order_id, succeeded=False, error=_error_text(exc)))

        result = BulkResult(outcomes=tuple(outcomes))
        logger.info(
            "Bulk status change complete",
            new_status=new_status,
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result

    def delete_cancelled(self, order_ids) -> BulkResult:
        repo = current_domain.repository_for(Order)
        eligible, skipped = [], []
        for order_id in _unique(order_ids):
            try:
                order = repo.get(order_id)
            except ObjectNotFoundError:
                skipped.append(order_id)
                continue
            if order.status == OrderStatus.CANCELLED.value:
                eligible.append(order_id)
            else:
                skipped.append(order_id)

        outcomes = []
        for order_id in eligible:
            try:
                current_domain.process(DeleteOrder(order_id=order_id), asynchronous=False)
                outcomes.append(ItemOutcome(order_id=order_id, succeeded=True))
            except (ValidationError, ObjectNotFoundError, InvalidOperationError) as exc:
                logger.warning("Failed to delete order", order_id=order_id, error=_error_text(exc))
                outcomes.append(ItemOutcome(order_id=order_id, succeeded=False, error=_error_text(exc)))

        result = BulkResult(outcomes=tuple(outcomes), skipped=tuple(skipped))
        logger.info(
            "Bulk delete complete",
            deleted=result.succeeded,
            failed=result.failed,
            skipped=result.skipped_count,
        )
        return result

    def render_documents(self, order_ids, document_type) -> BulkDocuments:
        repo = current_domain.repository_for(Order)
        documents, missing = [], []
        for order_id in _unique(order_ids):
            try:
                documents.append(render_document(repo.get(order_id), document_type))
            except ObjectNotFoundError:
                missing.append(order_id)
        return BulkDocuments(documents=tuple(documents), missing=tuple(missing))
