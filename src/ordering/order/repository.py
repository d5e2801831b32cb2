"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.utils.paging import fetch_all


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_idempotency_key(self, key: str) -> Order | None:
        if not key:
            return None
        matches = self._dao.query.filter(idempotency_key=key).all().items
        return matches[0] if matches else None

    def count_for_customer(self, customer_id) -> int:
        return self._dao.query.filter(customer_id=str(customer_id)).all().total

    def find_all(self) -> list[Order]:
        """Every order, newest first."""
        return fetch_all(self._dao.query.order_by("-created_at"))

    def find_for_customer(self, customer_id) -> list[Order]:
        return fetch_all(self._dao.query.filter(customer_id=str(customer_id)).order_by("-created_at"))
