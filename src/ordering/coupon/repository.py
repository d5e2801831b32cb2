"""Repositories for the Coupon and CouponUsage aggregates."""

from ordering.coupon.coupon import Coupon, CouponUsage, normalize_code
from ordering.domain import ordering


@ordering.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        """Case-insensitive lookup; codes are stored upper-cased."""
        normalized = normalize_code(code)
        if not normalized:
            return None
        matches = self._dao.query.filter(code=normalized).all().items
        return matches[0] if matches else None


@ordering.repository(part_of=CouponUsage)
class CouponUsageRepository:
    def count_for_customer(self, coupon_id, customer_id) -> int:
        return self._dao.query.filter(coupon_id=str(coupon_id), customer_id=str(customer_id)).all().total

    def find_for_order(self, coupon_id, order_id) -> CouponUsage | None:
        matches = self._dao.query.filter(coupon_id=str(coupon_id), order_id=str(order_id)).all().items
        return matches[0] if matches else None
