"""Order queries: back-office listings, status counts and customer tracking."""

from dataclasses import dataclass
from datetime import datetime

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.order.order import Order, OrderStatus, parse_status
from ordering.utils.dates import as_naive_utc


@dataclass(frozen=True)
class OrderFilter:
    status: str | None = None
    customer_id: str | None = None
    search: str | None = None  # fragment of the order id
    created_from: datetime | None = None
    created_to: datetime | None = None
    min_total: float | None = None
    max_total: float | None = None

    def matches(self, order) -> bool:
        if self.status and order.status != parse_status(self.status).value:
            return False
        if self.customer_id and str(order.customer_id) != str(self.customer_id):
            return False
        if self.search and self.search.strip().lower() not in str(order.id).lower():
            return False

        created_at = as_naive_utc(order.created_at)
        if self.created_from and (created_at is None or created_at < as_naive_utc(self.created_from)):
            return False
        if self.created_to and (created_at is None or created_at > as_naive_utc(self.created_to)):
            return False

        if self.min_total is not None and order.total < self.min_total:
            return False
        if self.max_total is not None and order.total > self.max_total:
            return False
        return True


def find_orders(criteria: OrderFilter | None = None) -> list[Order]:
    """Orders matching ``criteria``, newest first."""
    criteria = criteria or OrderFilter()
    orders = [order for order in current_domain.repository_for(Order).find_all() if criteria.matches(order)]
    return sorted(orders, key=lambda order: as_naive_utc(order.created_at) or datetime.min, reverse=True)


def count_by_status() -> dict[str, int]:
    """Order count per status, every status present, plus an ``all`` total."""
    counts = {status.value: 0 for status in OrderStatus}
    for order in current_domain.repository_for(Order).find_all():
        counts[order.status] = counts.get(order.status, 0) + 1
    counts["all"] = sum(counts.values())
    return counts


# Shortest fragment accepted when tracking by a partial order id
MIN_REFERENCE_LENGTH = 6


def track_order(reference: str) -> Order | None:
    """Find an order from the reference a customer was given.

    The full id matches first. Otherwise a fragment of at least six
    characters matches orders whose id starts with it, and the newest one
    wins. Case and surrounding whitespace are ignored.
    """
    reference = (reference or "").strip().lower()
    if not reference:
        return None

    repo = current_domain.repository_for(Order)
    try:
        return repo.get(reference)
    except ObjectNotFoundError:
        pass  # Fall back to a prefix match

    if len(reference) < MIN_REFERENCE_LENGTH:
        return None
    matches = [order for order in find_orders() if str(order.id).lower().startswith(reference)]
    return matches[0] if matches else None


def open_orders_for_customer(customer_id) -> list[Order]:
    """A customer's orders that have not been delivered yet, newest first."""
    return [
        order
        for order in current_domain.repository_for(Order).find_for_customer(customer_id)
        if order.status != OrderStatus.DELIVERED.value
    ]
