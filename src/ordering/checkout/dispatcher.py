"""PaymentDispatcher: routes a validated draft to its payment handler.

One handler per payment method variant, all sharing the
``initiate(draft, quote) -> PaymentOutcome`` contract:

- cash on delivery: the order is created confirmed, the cart is cleared and
  nothing asynchronous follows;
- manual payment: the order is created pending with the shopper's proof in
  its notes, waiting for staff review;
- redirect gateways: the order is created pending, then the gateway is asked
  for a hosted payment page; its callback settles payment later;
- SDK gateways: the order is created pending and exchanged for a gateway
  handle; a second round trip captures the approved payment.

The cart is cleared only after the order is known to exist, and never for a
buy-now checkout. A redirect gateway that cannot be started leaves the order
pending and the cart untouched so the shopper can retry.

A resubmitted draft reuses its order. Cash on delivery and manual payment
answer again without touching the cart. Gateway methods answer
``PaymentAlreadySettled`` once the order's payment is no longer open, and
only start the gateway again while it is.
"""

import json
from abc import ABC, abstractmethod

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.cart.items import ClearCart
from ordering.checkout.draft import CheckoutDraft, validate_draft
from ordering.checkout.methods import (
    CashOnDelivery,
    ManualPayment,
    RedirectGateway,
    SdkGateway,
    parse_payment_method,
)
from ordering.checkout.outcomes import (
    AwaitingReview,
    CaptureFailed,
    CheckoutError,
    CheckoutRejected,
    CreationFailed,
    ErrorKind,
    InitiationFailed,
    OrderCreatedCouponFailed,
    OrderNotCreated,
    OrderSettled,
    PaymentAlreadySettled,
    PaymentCaptured,
    PaymentOutcome,
    RedirectRequired,
    SdkHandleIssued,
)
from ordering.checkout.placement import place_order
from ordering.checkout.quote import CheckoutQuote, quote_checkout
from ordering.order.order import Order
from ordering.order.payment import AssignGatewayReference, RecordPaymentResult
from ordering.shipping.rates import load_shipping_catalog
from ordering.utils.logging import bind_order_context, clear_order_context
from payments.gateway import get_capturer, get_initiator

logger = structlog.get_logger(__name__)


def _coupon_error(result):
    return result.error if isinstance(result, OrderCreatedCouponFailed) else None


def _already_settled(order_id) -> PaymentAlreadySettled | None:
    order = current_domain.repository_for(Order).get(order_id)
    if order.awaiting_payment:
        return None
    logger.info(
        "Payment already settled, gateway not restarted",
        order_id=order_id,
        payment_status=order.payment_status,
    )
    return PaymentAlreadySettled(order_id=order_id, payment_status=order.payment_status)


def clear_cart_after_order(customer_id, buy_now: bool) -> bool:
    """Empty the customer's cart once their order exists. False when skipped or failed."""
    if buy_now:
        return False
    try:
        current_domain.process(ClearCart(customer_id=customer_id), asynchronous=False)
    except Exception as exc:
        logger.warning("Failed to clear cart after order", customer_id=customer_id, error=str(exc))
        return False
    return True


class PaymentHandler(ABC):
    @abstractmethod
    def initiate(self, draft: CheckoutDraft, quote: CheckoutQuote) -> PaymentOutcome: ...


class CashOnDeliveryHandler(PaymentHandler):
    def __init__(self, method: CashOnDelivery):
        self.method = method

    def initiate(self, draft, quote):
        result = place_order(
            draft,
            quote,
            payment_method=self.method.key,
            cash_on_delivery=True,
            notes=quote.coupon.summary if quote.coupon else None,
        )
        if isinstance(result, CreationFailed):
            return OrderNotCreated(error=result.error)

        cart_cleared = not result.reused and clear_cart_after_order(draft.customer.customer_id, draft.buy_now)
        return OrderSettled(order_id=result.order_id, cart_cleared=cart_cleared, coupon_error=_coupon_error(result))


class ManualPaymentHandler(PaymentHandler):
    def __init__(self, method: ManualPayment):
        self.method = method

    def initiate(self, draft, quote):
        proof = draft.manual_proof
        notes = json.dumps(
            {
                "manual_method": proof.method_name,
                "account_number": proof.account_number,
                "transaction_id": proof.transaction_id.strip(),
                "screenshot_url": proof.screenshot_url,
                "expected_amount": quote.breakdown.grand_total,
                "promo": quote.coupon.code if quote.coupon else None,
            }
        )
        result = place_order(
            draft,
            quote,
            payment_method=self.method.key,
            notes=notes,
            transaction_id=proof.transaction_id.strip(),
        )
        if isinstance(result, CreationFailed):
            return OrderNotCreated(error=result.error)

        cart_cleared = not result.reused and clear_cart_after_order(draft.customer.customer_id, draft.buy_now)
        return AwaitingReview(order_id=result.order_id, cart_cleared=cart_cleared, coupon_error=_coupon_error(result))


class RedirectGatewayHandler(PaymentHandler):
    def __init__(self, method: RedirectGateway):
        self.method = method

    def initiate(self, draft, quote):
        result = place_order(
            draft,
            quote,
            payment_method=self.method.key,
            notes=quote.coupon.summary if quote.coupon else None,
        )
        if isinstance(result, CreationFailed):
            return OrderNotCreated(error=result.error)
        settled = _already_settled(result.order_id) if result.reused else None
        if settled is not None:
            return settled

        initiation = get_initiator(self.method.kind.value).initiate(result.order_id)
        if not initiation.success or not initiation.redirect_url:
            logger.warning(
                "Gateway initiation failed, order left pending",
                order_id=result.order_id,
                gateway=self.method.key,
                error=initiation.error,
            )
            return InitiationFailed(
                order_id=result.order_id,
                error=CheckoutError(
                    kind=ErrorKind.GATEWAY_INITIATION_FAILED,
                    message=initiation.error or "Payment gateway did not return a payment page",
                    details=initiation.details,
                ),
            )

        cart_cleared = clear_cart_after_order(draft.customer.customer_id, draft.buy_now)
        return RedirectRequired(
            order_id=result.order_id,
            redirect_url=initiation.redirect_url,
            cart_cleared=cart_cleared,
            coupon_error=_coupon_error(result),
        )


class SdkGatewayHandler(PaymentHandler):
    def __init__(self, method: SdkGateway):
        self.method = method

    def initiate(self, draft, quote):
        result = place_order(
            draft,
            quote,
            payment_method=self.method.key,
            notes=quote.coupon.summary if quote.coupon else None,
        )
        if isinstance(result, CreationFailed):
            return OrderNotCreated(error=result.error)
        settled = _already_settled(result.order_id) if result.reused else None
        if settled is not None:
            return settled

        initiation = get_initiator(self.method.kind.value).initiate(result.order_id)
        if not initiation.success or not initiation.handle:
            logger.warning(
                "Gateway order creation failed, order left pending",
                order_id=result.order_id,
                gateway=self.method.key,
                error=initiation.error,
            )
            return InitiationFailed(
                order_id=result.order_id,
                error=CheckoutError(
                    kind=ErrorKind.GATEWAY_INITIATION_FAILED,
                    message=initiation.error or "Payment gateway did not return an order handle",
                    details=initiation.details,
                ),
            )

        try:
            current_domain.process(
                AssignGatewayReference(order_id=result.order_id, transaction_id=initiation.handle),
                asynchronous=False,
            )
        except Exception as exc:
            logger.error("Failed to store gateway handle", order_id=result.order_id, error=str(exc))
            return InitiationFailed(
                order_id=result.order_id,
                error=CheckoutError(kind=ErrorKind.PERSISTENCE_ERROR, message=str(exc)),
            )
        return SdkHandleIssued(order_id=result.order_id, handle=initiation.handle, coupon_error=_coupon_error(result))

    def capture(self, order_id: str, handle: str, customer_id: str, buy_now: bool = False) -> PaymentOutcome:
        """Second round trip: settle the payment the shopper approved."""
        settled = _already_settled(order_id)
        if settled is not None:
            return settled

        capture = get_capturer(self.method.kind.value).capture(handle, order_id)

        try:
            recorded = current_domain.process(
                RecordPaymentResult(
                    order_id=order_id,
                    success=capture.success,
                    transaction_id=capture.transaction_id or handle,
                ),
                asynchronous=False,
            )
        except Exception as exc:
            logger.error("Failed to record capture result", order_id=order_id, captured=capture.success, error=str(exc))
            return CaptureFailed(
                order_id=order_id,
                error=CheckoutError(kind=ErrorKind.PERSISTENCE_ERROR, message=str(exc)),
            )

        if not capture.success:
            logger.warning("Payment capture failed", order_id=order_id, gateway=self.method.key, error=capture.error)
            return CaptureFailed(
                order_id=order_id,
                error=CheckoutError(
                    kind=ErrorKind.GATEWAY_CAPTURE_FAILED,
                    message=capture.error or "Payment capture failed",
                ),
            )

        cart_cleared = bool(recorded) and clear_cart_after_order(customer_id, buy_now)
        return PaymentCaptured(order_id=order_id, cart_cleared=cart_cleared)


_HANDLERS = {
    CashOnDelivery: CashOnDeliveryHandler,
    ManualPayment: ManualPaymentHandler,
    RedirectGateway: RedirectGatewayHandler,
    SdkGateway: SdkGatewayHandler,
}


class PaymentDispatcher:
    """Entry point for submitting a checkout and completing SDK payments."""

    def handler_for(self, method) -> PaymentHandler:
        return _HANDLERS[type(method)](method)

    def submit(self, draft: CheckoutDraft) -> PaymentOutcome:
        catalog = load_shipping_catalog()
        problems = validate_draft(draft, catalog)
        if problems:
            logger.info(
                "Checkout rejected",
                customer_id=draft.customer.customer_id,
                problems=[problem.code.value for problem in problems],
            )
            return CheckoutRejected(problems=tuple(problems))

        method = parse_payment_method(draft.payment_method)
        quote = quote_checkout(draft, catalog)

        bind_order_context(customer_id=draft.customer.customer_id, idempotency_key=draft.idempotency_key)
        try:
            return self.handler_for(method).initiate(draft, quote)
        finally:
            clear_order_context()

    def capture(self, order_id: str, handle: str, buy_now: bool = False) -> PaymentOutcome:
        order = current_domain.repository_for(Order).get(order_id)
        method = parse_payment_method(order.payment_method)
        if not isinstance(method, SdkGateway):
            raise ValidationError({"payment_method": [f"Order {order_id} was not paid through an SDK gateway"]})

        return self.handler_for(method).capture(
            order_id=order_id,
            handle=handle,
            customer_id=str(order.customer_id),
            buy_now=buy_now,
        )
