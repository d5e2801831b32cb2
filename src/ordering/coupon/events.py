"""Domain events for the Coupon and CouponUsage aggregates."""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Coupon")
class CouponCreated:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)
    applies_to = String(required=True)


@ordering.event(part_of="Coupon")
class CouponTermsUpdated:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    changed_fields = String(required=True)  # comma-separated field names


@ordering.event(part_of="Coupon")
class CouponActivationChanged:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    is_active = Boolean()


@ordering.event(part_of="Coupon")
class CouponRedeemed:
    """A coupon was consumed by an order; usage_count went up by one."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier()
    usage_count = Integer(required=True)
    redeemed_at = DateTime(required=True)
