"""CouponUsageLedger: records that a coupon was consumed.

Redemption appends a ``CouponUsage`` row and bumps the coupon's
``usage_count`` in the same unit of work. Redeeming the same coupon twice for
one order is a no-op.

The count is read from the loaded coupon and written back incremented. Two
redemptions racing on a nearly exhausted coupon can both pass validation and
push ``usage_count`` past ``usage_limit`` by at most the number of racing
requests.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.coupon.coupon import Coupon, CouponUsage
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Coupon")
class RedeemCoupon:
    coupon_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier()


@ordering.command_handler(part_of=Coupon)
class CouponLedgerHandler:
    @handle(RedeemCoupon)
    def redeem_coupon(self, command):
        usage_repo = current_domain.repository_for(CouponUsage)
        if command.order_id and usage_repo.find_for_order(command.coupon_id, command.order_id):
            logger.info(
                "Coupon already redeemed for order",
                coupon_id=str(command.coupon_id),
                order_id=str(command.order_id),
            )
            return False

        coupon_repo = current_domain.repository_for(Coupon)
        coupon = coupon_repo.get(command.coupon_id)

        usage_repo.add(
            CouponUsage(
                coupon_id=command.coupon_id,
                customer_id=command.customer_id,
                order_id=command.order_id,
                used_at=datetime.now(UTC),
            )
        )
        coupon.record_redemption(customer_id=command.customer_id, order_id=command.order_id)
        coupon_repo.add(coupon)

        logger.info(
            "Coupon redeemed",
            coupon_id=str(coupon.id),
            code=coupon.code,
            customer_id=str(command.customer_id),
            order_id=str(command.order_id) if command.order_id else None,
            usage_count=coupon.usage_count,
        )
        return True
