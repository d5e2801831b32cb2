"""Two-phase order placement: create the order, then redeem its coupon.

The two writes are separate units of work. The order is written first and
the coupon is redeemed only once the order exists. When redemption fails the
order stays in place and the result says so explicitly; nothing is rolled
back.

A draft whose idempotency key already produced an order is answered with
that order, flagged as reused, so callers can avoid repeating side effects.
"""

import json

import structlog
from protean.utils.globals import current_domain

from ordering.checkout.draft import CheckoutDraft
from ordering.checkout.outcomes import (
    CheckoutError,
    CreationFailed,
    ErrorKind,
    OrderCreated,
    OrderCreatedCouponFailed,
    PlacementResult,
)
from ordering.checkout.quote import CheckoutQuote
from ordering.coupon.ledger import RedeemCoupon
from ordering.order.order import Order
from ordering.order.placement import PlaceOrder

logger = structlog.get_logger(__name__)


def place_order(
    draft: CheckoutDraft,
    quote: CheckoutQuote,
    payment_method: str,
    cash_on_delivery: bool = False,
    notes: str | None = None,
    transaction_id: str | None = None,
) -> PlacementResult:
    shipping = draft.address.to_dict()
    shipping["delivery_area"] = quote.shipping.area_name if quote.shipping else "Standard"

    command = PlaceOrder(
        customer_id=draft.customer.customer_id,
        items=json.dumps([line.to_dict() for line in draft.lines]),
        shipping=json.dumps(shipping),
        subtotal=quote.breakdown.subtotal,
        shipping_charge=quote.breakdown.shipping,
        discount=quote.breakdown.discount,
        total=quote.breakdown.grand_total,
        payment_method=payment_method,
        cash_on_delivery=cash_on_delivery,
        notes=notes,
        coupon_code=quote.coupon.code if quote.coupon else None,
        transaction_id=transaction_id,
        idempotency_key=draft.idempotency_key,
    )

    try:
        existing = current_domain.repository_for(Order).find_by_idempotency_key(draft.idempotency_key)
        if existing is not None:
            order_id, reused = str(existing.id), True
            logger.info("Checkout resubmitted, reusing order", order_id=order_id, idempotency_key=draft.idempotency_key)
        else:
            order_id, reused = current_domain.process(command, asynchronous=False), False
    except Exception as exc:
        logger.error(
            "Order creation failed",
            customer_id=draft.customer.customer_id,
            idempotency_key=draft.idempotency_key,
            error=str(exc),
        )
        return CreationFailed(error=CheckoutError(kind=ErrorKind.PERSISTENCE_ERROR, message=str(exc)))

    if quote.coupon is None:
        return OrderCreated(order_id=order_id, reused=reused)

    try:
        current_domain.process(
            RedeemCoupon(
                coupon_id=quote.coupon.coupon_id,
                customer_id=draft.customer.customer_id,
                order_id=order_id,
            ),
            asynchronous=False,
        )
    except Exception as exc:
        logger.warning(
            "Coupon redemption failed after order creation",
            order_id=order_id,
            coupon_code=quote.coupon.code,
            error=str(exc),
        )
        return OrderCreatedCouponFailed(
            order_id=order_id,
            error=CheckoutError(kind=ErrorKind.PERSISTENCE_ERROR, message=str(exc)),
            reused=reused,
        )

    return OrderCreated(order_id=order_id, reused=reused)
