"""FastAPI routes for the Ordering domain: checkout, orders, coupons, shipping and carts."""

import json
import os
from datetime import datetime

from fastapi import APIRouter, Header, HTTPException, Request
from protean.utils.globals import current_domain

from ordering.admin.bulk import BulkOrderOperator, BulkResult
from ordering.api.schemas import (
    ActivationRequest,
    AddRateRequest,
    AddToCartRequest,
    BulkDeleteRequest,
    BulkDocumentsRequest,
    BulkDocumentsResponse,
    BulkResultResponse,
    BulkStatusRequest,
    CaptureRequest,
    CartItemIdResponse,
    ChangePaymentStatusRequest,
    ChangeStatusRequest,
    CheckoutRequest,
    CheckoutResponse,
    ConfigureGatewayRequest,
    CouponIdResponse,
    CreateCouponRequest,
    CreateZoneRequest,
    DocumentResponse,
    GatewayConfigResponse,
    OrderResponse,
    PaymentCallbackRequest,
    PaymentCallbackResponse,
    QuoteResponse,
    RateIdResponse,
    RateOptionResponse,
    StatusResponse,
    UpdateCouponRequest,
    ZoneIdResponse,
)
from ordering.cart.cart import ShoppingCart
from ordering.cart.items import AddToCart, RemoveFromCart
from ordering.checkout.draft import (
    CheckoutDraft,
    CustomerIdentity,
    DeliveryAddress,
    DraftLine,
    ManualPaymentProof,
    validate_draft,
)
from ordering.checkout.dispatcher import PaymentDispatcher
from ordering.checkout.methods import RedirectGateway, SdkGateway, parse_payment_method
from ordering.checkout.quote import apply_coupon, quote_checkout
from ordering.coupon.management import CreateCoupon, SetCouponActive, UpdateCouponTerms
from ordering.order.deletion import DeleteOrder
from ordering.order.documents import DocumentType, render_document
from ordering.order.order import Order
from ordering.order.payment import RecordPaymentResult
from ordering.order.queries import (
    OrderFilter,
    count_by_status,
    find_orders,
    open_orders_for_customer,
    track_order,
)
from ordering.order.status import ChangeOrderStatus, ChangePaymentStatus
from ordering.shipping.management import (
    AddShippingRate,
    CreateShippingZone,
    RemoveShippingRate,
    SetShippingZoneActive,
)
from ordering.shipping.rates import load_shipping_catalog
from payments.gateway import get_capturer, get_initiator
from payments.gateway.fake_adapter import FakeCapturer, FakeInitiator


# ---------------------------------------------------------------------------
# Translation helpers
# ---------------------------------------------------------------------------
def _build_draft(body: CheckoutRequest) -> CheckoutDraft:
    customer = CustomerIdentity(customer_id=body.customer_id, email_verified=body.email_verified)
    extra = {
        "address": DeliveryAddress(**body.address.model_dump()) if body.address else None,
        "shipping_rate_id": body.shipping_rate_id,
        "payment_method": body.payment_method,
        "manual_proof": ManualPaymentProof(**body.manual_proof.model_dump()) if body.manual_proof else None,
    }
    if body.idempotency_key:
        extra["idempotency_key"] = body.idempotency_key

    if body.buy_now:
        if body.buy_now_item is None:
            return CheckoutDraft(customer=customer, buy_now=True, **extra)
        return CheckoutDraft.for_single_item(customer, DraftLine(**body.buy_now_item.model_dump()), **extra)

    cart = None
    if body.customer_id:
        cart = current_domain.repository_for(ShoppingCart).find_for_customer(body.customer_id)
    return CheckoutDraft.from_cart(customer, cart, **extra)


def _apply_coupon(draft, code):
    if not code:
        return draft, None
    return apply_coupon(draft, code)


def _rejection_payload(rejection):
    if rejection is None:
        return None
    return {"code": rejection.code, "reason": rejection.reason.value, "message": rejection.message}


def _error_payload(error):
    if error is None:
        return None
    return {"kind": error.kind.value, "message": error.message, "details": error.details}


def _checkout_response(outcome, rejection=None) -> CheckoutResponse:
    problems = getattr(outcome, "problems", ())
    return CheckoutResponse(
        outcome=outcome.outcome,
        order_id=getattr(outcome, "order_id", None),
        redirect_url=getattr(outcome, "redirect_url", None),
        handle=getattr(outcome, "handle", None),
        cart_cleared=getattr(outcome, "cart_cleared", False),
        payment_status=getattr(outcome, "payment_status", None),
        error=_error_payload(getattr(outcome, "error", None)),
        coupon_error=_error_payload(getattr(outcome, "coupon_error", None)),
        coupon_rejection=_rejection_payload(rejection),
        problems=[{"code": problem.code.value, "message": problem.message} for problem in problems],
    )


def _order_response(order) -> OrderResponse:
    shipping = order.shipping
    return OrderResponse(
        order_id=str(order.id),
        customer_id=str(order.customer_id),
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        subtotal=order.subtotal,
        discount=order.discount,
        total=order.total,
        coupon_code=order.coupon_code,
        notes=order.notes,
        transaction_id=order.transaction_id,
        shipping={
            "address": shipping.address,
            "recipient_name": shipping.recipient_name,
            "phone": shipping.phone,
            "city": shipping.city,
            "postal_code": shipping.postal_code,
            "delivery_area": shipping.delivery_area,
            "delivery_charge": shipping.delivery_charge,
        }
        if shipping
        else None,
        items=[
            {
                "product_id": str(item.product_id),
                "product_name": item.product_name,
                "unit_price": item.unit_price,
                "quantity": item.quantity,
                "line_total": item.line_total,
                "variation": item.variation,
            }
            for item in order.items
        ],
        created_at=order.created_at,
    )


def _bulk_response(result: BulkResult) -> BulkResultResponse:
    return BulkResultResponse(
        succeeded=result.succeeded,
        failed=result.failed,
        skipped=result.skipped_count,
        outcomes=[
            {"order_id": outcome.order_id, "succeeded": outcome.succeeded, "error": outcome.error}
            for outcome in result.outcomes
        ],
        skipped_ids=list(result.skipped),
    )


def _document_type(value: str) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown document type: {value}") from None


def _document_response(document) -> DocumentResponse:
    return DocumentResponse(
        order_id=document.order_id,
        document_type=document.document_type.value,
        title=document.title,
        body=document.body,
    )


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("/quote", response_model=QuoteResponse)
async def quote(body: CheckoutRequest) -> QuoteResponse:
    """Price a checkout without writing anything."""
    draft, rejection = _apply_coupon(_build_draft(body), body.coupon_code)
    catalog = load_shipping_catalog()
    checkout_quote = quote_checkout(draft, catalog)
    problems = validate_draft(draft, catalog)

    return QuoteResponse(
        subtotal=checkout_quote.breakdown.subtotal,
        shipping=checkout_quote.breakdown.shipping,
        discount=checkout_quote.breakdown.discount,
        total=checkout_quote.breakdown.grand_total,
        delivery_area=checkout_quote.shipping.area_name if checkout_quote.shipping else None,
        coupon={
            "code": draft.coupon.code,
            "discount": draft.coupon.discount,
            "summary": draft.coupon.summary,
        }
        if draft.coupon
        else None,
        coupon_rejection=_rejection_payload(rejection),
        problems=[{"code": problem.code.value, "message": problem.message} for problem in problems],
    )


@checkout_router.post("/submit", response_model=CheckoutResponse)
async def submit(body: CheckoutRequest) -> CheckoutResponse:
    draft, rejection = _apply_coupon(_build_draft(body), body.coupon_code)
    outcome = PaymentDispatcher().submit(draft)
    return _checkout_response(outcome, rejection)


@checkout_router.post("/capture", response_model=CheckoutResponse)
async def capture(body: CaptureRequest) -> CheckoutResponse:
    outcome = PaymentDispatcher().capture(order_id=body.order_id, handle=body.handle, buy_now=body.buy_now)
    return _checkout_response(outcome)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(
    status: str | None = None,
    customer_id: str | None = None,
    search: str | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    min_total: float | None = None,
    max_total: float | None = None,
) -> list[OrderResponse]:
    criteria = OrderFilter(
        status=status,
        customer_id=customer_id,
        search=search,
        created_from=created_from,
        created_to=created_to,
        min_total=min_total,
        max_total=max_total,
    )
    return [_order_response(order) for order in find_orders(criteria)]


@order_router.get("/status-counts", response_model=dict[str, int])
async def status_counts() -> dict[str, int]:
    return count_by_status()


@order_router.get("/track/{reference}", response_model=OrderResponse)
async def track(reference: str) -> OrderResponse:
    """Look an order up by its full id or by the short reference printed on receipts."""
    order = track_order(reference)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return _order_response(order)


@order_router.get("/customers/{customer_id}/open", response_model=list[OrderResponse])
async def customer_open_orders(customer_id: str) -> list[OrderResponse]:
    return [_order_response(order) for order in open_orders_for_customer(customer_id)]


@order_router.post("/bulk/status", response_model=BulkResultResponse)
async def bulk_change_status(body: BulkStatusRequest) -> BulkResultResponse:
    result = BulkOrderOperator().change_status(body.order_ids, body.status, changed_by=body.changed_by)
    return _bulk_response(result)


@order_router.post("/bulk/delete", response_model=BulkResultResponse)
async def bulk_delete(body: BulkDeleteRequest) -> BulkResultResponse:
    return _bulk_response(BulkOrderOperator().delete_cancelled(body.order_ids))


@order_router.post("/bulk/documents", response_model=BulkDocumentsResponse)
async def bulk_documents(body: BulkDocumentsRequest) -> BulkDocumentsResponse:
    result = BulkOrderOperator().render_documents(body.order_ids, _document_type(body.document_type))
    return BulkDocumentsResponse(
        documents=[_document_response(document) for document in result.documents],
        missing=list(result.missing),
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return _order_response(current_domain.repository_for(Order).get(order_id))


@order_router.put("/{order_id}/status", response_model=StatusResponse)
async def change_status(order_id: str, body: ChangeStatusRequest) -> StatusResponse:
    command = ChangeOrderStatus(order_id=order_id, new_status=body.status, changed_by=body.changed_by)
    new_status = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=new_status)


@order_router.put("/{order_id}/payment-status", response_model=StatusResponse)
async def change_payment_status(order_id: str, body: ChangePaymentStatusRequest) -> StatusResponse:
    command = ChangePaymentStatus(
        order_id=order_id,
        new_status=body.payment_status,
        transaction_id=body.transaction_id,
    )
    new_status = current_domain.process(command, asynchronous=False)
    return StatusResponse(status=new_status)


@order_router.post("/{order_id}/payment-callback", response_model=PaymentCallbackResponse)
async def payment_callback(
    order_id: str,
    body: PaymentCallbackRequest,
    request: Request,
    x_gateway_signature: str = Header(default=""),
) -> PaymentCallbackResponse:
    """Gateway callback: settles payment_status, never fulfillment status."""
    order = current_domain.repository_for(Order).get(order_id)
    method = parse_payment_method(order.payment_method)
    if not isinstance(method, (RedirectGateway, SdkGateway)):
        raise HTTPException(status_code=400, detail="Order was not paid through a payment gateway")

    payload = (await request.body()).decode()
    initiator = get_initiator(method.key)
    if not initiator.verify_callback_signature(payload, x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid callback signature")

    recorded = current_domain.process(
        RecordPaymentResult(order_id=order_id, success=body.success, transaction_id=body.transaction_id),
        asynchronous=False,
    )
    order = current_domain.repository_for(Order).get(order_id)
    return PaymentCallbackResponse(recorded=bool(recorded), payment_status=order.payment_status)


@order_router.delete("/{order_id}", response_model=StatusResponse)
async def delete_order(order_id: str) -> StatusResponse:
    current_domain.process(DeleteOrder(order_id=order_id), asynchronous=False)
    return StatusResponse(status="deleted")


@order_router.get("/{order_id}/documents/{document_type}", response_model=DocumentResponse)
async def get_document(order_id: str, document_type: str) -> DocumentResponse:
    kind = _document_type(document_type)
    order = current_domain.repository_for(Order).get(order_id)
    return _document_response(render_document(order, kind))


# ---------------------------------------------------------------------------
# Coupon Router
# ---------------------------------------------------------------------------
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])


@coupon_router.post("", status_code=201, response_model=CouponIdResponse)
async def create_coupon(body: CreateCouponRequest) -> CouponIdResponse:
    data = body.model_dump()
    data["selected_customer_ids"] = json.dumps(data["selected_customer_ids"])
    data["selected_product_ids"] = json.dumps(data["selected_product_ids"])
    coupon_id = current_domain.process(CreateCoupon(**data), asynchronous=False)
    return CouponIdResponse(coupon_id=coupon_id)


@coupon_router.put("/{coupon_id}", response_model=StatusResponse)
async def update_coupon(coupon_id: str, body: UpdateCouponRequest) -> StatusResponse:
    data = body.model_dump(exclude_none=True)
    for field_name in ("selected_customer_ids", "selected_product_ids"):
        if field_name in data:
            data[field_name] = json.dumps(data[field_name])
    current_domain.process(UpdateCouponTerms(coupon_id=coupon_id, **data), asynchronous=False)
    return StatusResponse()


@coupon_router.put("/{coupon_id}/activation", response_model=StatusResponse)
async def set_coupon_activation(coupon_id: str, body: ActivationRequest) -> StatusResponse:
    current_domain.process(SetCouponActive(coupon_id=coupon_id, is_active=body.is_active), asynchronous=False)
    return StatusResponse(status="active" if body.is_active else "inactive")


# ---------------------------------------------------------------------------
# Shipping Router
# ---------------------------------------------------------------------------
shipping_router = APIRouter(prefix="/shipping-zones", tags=["shipping"])


@shipping_router.get("/rates", response_model=list[RateOptionResponse])
async def list_rates() -> list[RateOptionResponse]:
    """Delivery areas currently offered at checkout."""
    return [
        RateOptionResponse(
            rate_id=option.rate_id,
            zone_id=option.zone_id,
            zone_name=option.zone_name,
            area_name=option.area_name,
            charge=option.charge,
            free_shipping_threshold=option.free_shipping_threshold,
        )
        for option in load_shipping_catalog().options
    ]


@shipping_router.post("", status_code=201, response_model=ZoneIdResponse)
async def create_zone(body: CreateZoneRequest) -> ZoneIdResponse:
    zone_id = current_domain.process(
        CreateShippingZone(name=body.name, zone_type=body.zone_type),
        asynchronous=False,
    )
    return ZoneIdResponse(zone_id=zone_id)


@shipping_router.post("/{zone_id}/rates", status_code=201, response_model=RateIdResponse)
async def add_rate(zone_id: str, body: AddRateRequest) -> RateIdResponse:
    rate_id = current_domain.process(AddShippingRate(zone_id=zone_id, **body.model_dump()), asynchronous=False)
    return RateIdResponse(rate_id=rate_id)


@shipping_router.delete("/{zone_id}/rates/{rate_id}", response_model=StatusResponse)
async def remove_rate(zone_id: str, rate_id: str) -> StatusResponse:
    current_domain.process(RemoveShippingRate(zone_id=zone_id, rate_id=rate_id), asynchronous=False)
    return StatusResponse(status="removed")


@shipping_router.put("/{zone_id}/activation", response_model=StatusResponse)
async def set_zone_activation(zone_id: str, body: ActivationRequest) -> StatusResponse:
    current_domain.process(SetShippingZoneActive(zone_id=zone_id, is_active=body.is_active), asynchronous=False)
    return StatusResponse(status="active" if body.is_active else "inactive")


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.post("/{customer_id}/items", status_code=201, response_model=CartItemIdResponse)
async def add_cart_item(customer_id: str, body: AddToCartRequest) -> CartItemIdResponse:
    command = AddToCart(
        customer_id=customer_id,
        product_id=body.product_id,
        product_name=body.product_name,
        unit_price=body.unit_price,
        quantity=body.quantity,
        variation=json.dumps(body.variation) if body.variation else None,
    )
    item_id = current_domain.process(command, asynchronous=False)
    return CartItemIdResponse(item_id=item_id)


@cart_router.delete("/{customer_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(customer_id: str, item_id: str) -> StatusResponse:
    current_domain.process(RemoveFromCart(customer_id=customer_id, item_id=item_id), asynchronous=False)
    return StatusResponse(status="removed")


# ---------------------------------------------------------------------------
# Gateway Router (non-production)
# ---------------------------------------------------------------------------
gateway_router = APIRouter(prefix="/gateways", tags=["gateways"])


@gateway_router.post("/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure fake gateway behavior (non-production only).

    This endpoint is only available when PROTEAN_ENV is not 'production'.
    It allows toggling success/failure behavior for manual API testing.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    adapter = get_capturer(body.kind) if body.stage == "capture" else get_initiator(body.kind)
    if not isinstance(adapter, (FakeInitiator, FakeCapturer)):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for fake gateways")

    adapter.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return GatewayConfigResponse(
        kind=body.kind,
        stage=body.stage,
        gateway=type(adapter).__name__,
        should_succeed=adapter.should_succeed,
        failure_reason=adapter.failure_reason,
    )
