"""CouponValidator: decides whether a code may be applied to a cart.

Rules run in a fixed order and the first failing rule wins. Every rule has
its own ``RejectionReason`` with a message fit to show a shopper. A
rejection is an ordinary return value: checkout can always go ahead without
the coupon.

The validator only reads. Redemption is the ledger's job.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon, CouponScope, CouponUsage, normalize_code
from ordering.order.order import Order
from ordering.utils.dates import as_naive_utc


class RejectionReason(Enum):
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    NOT_YET_ACTIVE = "not_yet_active"
    USAGE_LIMIT_REACHED = "usage_limit_reached"
    BELOW_MINIMUM = "below_minimum"
    PER_USER_LIMIT_REACHED = "per_user_limit_reached"
    NOT_NEW_CUSTOMER = "not_new_customer"
    CUSTOMER_NOT_ELIGIBLE = "customer_not_eligible"
    NO_ELIGIBLE_PRODUCTS = "no_eligible_products"


_MESSAGES = {
    RejectionReason.INVALID_CODE: "Invalid promo code",
    RejectionReason.EXPIRED: "This promo code has expired",
    RejectionReason.NOT_YET_ACTIVE: "This promo code is not yet active",
    RejectionReason.USAGE_LIMIT_REACHED: "This promo code has reached its usage limit",
    RejectionReason.BELOW_MINIMUM: "Minimum order amount is {minimum:.2f}",
    RejectionReason.PER_USER_LIMIT_REACHED: "You have already used this promo code",
    RejectionReason.NOT_NEW_CUSTOMER: "This promo is for new customers only",
    RejectionReason.CUSTOMER_NOT_ELIGIBLE: "This promo code is not available for your account",
    RejectionReason.NO_ELIGIBLE_PRODUCTS: "This promo does not apply to your cart items",
}


@dataclass(frozen=True)
class AppliedCoupon:
    """A coupon that passed every rule, with its discount already computed."""

    coupon_id: str
    code: str
    discount: float
    summary: str


@dataclass(frozen=True)
class CouponRejection:
    code: str
    reason: RejectionReason
    message: str

    error_kind = "coupon_rejected"


class CouponValidator:
    """Applies the coupon rules against the stored coupons, usages and orders."""

    def validate(
        self,
        code: str,
        subtotal: float,
        product_ids=(),
        customer_id: str | None = None,
        as_of: datetime | None = None,
    ) -> AppliedCoupon | CouponRejection:
        normalized = normalize_code(code)
        now = as_naive_utc(as_of or datetime.now(UTC))

        coupon = current_domain.repository_for(Coupon).find_by_code(normalized)
        if coupon is None or not coupon.is_active:
            return self._reject(normalized, RejectionReason.INVALID_CODE)

        if coupon.end_date and as_naive_utc(coupon.end_date) < now:
            return self._reject(normalized, RejectionReason.EXPIRED)

        if coupon.start_date and as_naive_utc(coupon.start_date) > now:
            return self._reject(normalized, RejectionReason.NOT_YET_ACTIVE)

        if coupon.usage_limit and (coupon.usage_count or 0) >= coupon.usage_limit:
            return self._reject(normalized, RejectionReason.USAGE_LIMIT_REACHED)

        if coupon.min_order_amount and subtotal < coupon.min_order_amount:
            return self._reject(normalized, RejectionReason.BELOW_MINIMUM, minimum=coupon.min_order_amount)

        if customer_id and coupon.per_user_limit:
            used = current_domain.repository_for(CouponUsage).count_for_customer(coupon.id, customer_id)
            if used >= coupon.per_user_limit:
                return self._reject(normalized, RejectionReason.PER_USER_LIMIT_REACHED)

        scope = CouponScope(coupon.applies_to)
        if scope == CouponScope.NEW_CUSTOMERS and customer_id:
            if current_domain.repository_for(Order).count_for_customer(customer_id) > 0:
                return self._reject(normalized, RejectionReason.NOT_NEW_CUSTOMER)

        if scope == CouponScope.SELECTED_CUSTOMERS and str(customer_id) not in coupon.customer_ids:
            return self._reject(normalized, RejectionReason.CUSTOMER_NOT_ELIGIBLE)

        if scope == CouponScope.SELECTED_PRODUCTS:
            if not {str(product_id) for product_id in product_ids} & coupon.product_ids:
                return self._reject(normalized, RejectionReason.NO_ELIGIBLE_PRODUCTS)

        discount = coupon.discount_for(subtotal)
        return AppliedCoupon(
            coupon_id=str(coupon.id),
            code=coupon.code,
            discount=discount,
            summary=coupon.summary(discount),
        )

    @staticmethod
    def _reject(code, reason, **details) -> CouponRejection:
        return CouponRejection(code=code, reason=reason, message=_MESSAGES[reason].format(**details))
