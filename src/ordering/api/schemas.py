"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer): separate from
internal Protean commands and checkout value objects.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    address: str = ""
    recipient_name: str | None = None
    phone: str | None = None
    city: str | None = None
    postal_code: str | None = None


class CheckoutLineSchema(BaseModel):
    product_id: str
    product_name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    variation: dict | None = None


class ManualProofSchema(BaseModel):
    method_name: str
    account_number: str
    transaction_id: str = ""
    screenshot_url: str | None = None


class ErrorSchema(BaseModel):
    kind: str
    message: str
    details: str | None = None


class ProblemSchema(BaseModel):
    code: str
    message: str


class CouponRejectionSchema(BaseModel):
    code: str
    reason: str
    message: str


class AppliedCouponSchema(BaseModel):
    code: str
    discount: float
    summary: str


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class CheckoutRequest(BaseModel):
    customer_id: str | None = None
    email_verified: bool = False
    buy_now: bool = False
    buy_now_item: CheckoutLineSchema | None = None
    address: AddressSchema | None = None
    shipping_rate_id: str | None = None
    payment_method: str | None = None
    coupon_code: str | None = None
    manual_proof: ManualProofSchema | None = None
    idempotency_key: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": "cust-001",
                    "email_verified": True,
                    "address": {
                        "address": "House 12, Road 5",
                        "recipient_name": "Rahim Uddin",
                        "phone": "+8801700000000",
                        "city": "Dhaka",
                        "postal_code": "1207",
                    },
                    "shipping_rate_id": "rate-001",
                    "payment_method": "cod",
                    "coupon_code": "SAVE10",
                }
            ]
        }
    }


class QuoteResponse(BaseModel):
    subtotal: float
    shipping: float
    discount: float
    total: float
    delivery_area: str | None = None
    coupon: AppliedCouponSchema | None = None
    coupon_rejection: CouponRejectionSchema | None = None
    problems: list[ProblemSchema] = []


class CheckoutResponse(BaseModel):
    outcome: str
    order_id: str | None = None
    redirect_url: str | None = None
    handle: str | None = None
    cart_cleared: bool = False
    payment_status: str | None = None
    error: ErrorSchema | None = None
    coupon_error: ErrorSchema | None = None
    coupon_rejection: CouponRejectionSchema | None = None
    problems: list[ProblemSchema] = []


class CaptureRequest(BaseModel):
    order_id: str
    handle: str
    buy_now: bool = False


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class ChangeStatusRequest(BaseModel):
    status: str
    changed_by: str | None = None


class ChangePaymentStatusRequest(BaseModel):
    payment_status: str
    transaction_id: str | None = None


class PaymentCallbackRequest(BaseModel):
    success: bool
    transaction_id: str | None = None


class PaymentCallbackResponse(BaseModel):
    recorded: bool
    payment_status: str


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    unit_price: float
    quantity: int
    line_total: float
    variation: str | None = None


class ShippingResponse(BaseModel):
    address: str
    recipient_name: str | None = None
    phone: str | None = None
    city: str | None = None
    postal_code: str | None = None
    delivery_area: str
    delivery_charge: float


class OrderResponse(BaseModel):
    order_id: str
    customer_id: str
    status: str
    payment_status: str
    payment_method: str
    subtotal: float
    discount: float
    total: float
    coupon_code: str | None = None
    notes: str | None = None
    transaction_id: str | None = None
    shipping: ShippingResponse | None = None
    items: list[OrderItemResponse] = []
    created_at: datetime | None = None


class BulkStatusRequest(BaseModel):
    order_ids: list[str] = Field(min_length=1)
    status: str
    changed_by: str | None = None


class BulkDeleteRequest(BaseModel):
    order_ids: list[str] = Field(min_length=1)


class BulkDocumentsRequest(BaseModel):
    order_ids: list[str] = Field(min_length=1)
    document_type: str = "invoice"


class ItemOutcomeResponse(BaseModel):
    order_id: str
    succeeded: bool
    error: str | None = None


class BulkResultResponse(BaseModel):
    succeeded: int
    failed: int
    skipped: int
    outcomes: list[ItemOutcomeResponse] = []
    skipped_ids: list[str] = []


class DocumentResponse(BaseModel):
    order_id: str
    document_type: str
    title: str
    body: str


class BulkDocumentsResponse(BaseModel):
    documents: list[DocumentResponse] = []
    missing: list[str] = []


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class CreateCouponRequest(BaseModel):
    code: str
    description: str | None = None
    discount_type: str = "percentage"
    discount_value: float = Field(ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=0)
    per_user_limit: int | None = Field(default=None, ge=0)
    applies_to: str = "all"
    selected_customer_ids: list[str] = []
    selected_product_ids: list[str] = []
    is_active: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "SAVE10",
                    "discount_type": "fixed",
                    "discount_value": 10.0,
                    "min_order_amount": 50.0,
                    "usage_limit": 100,
                    "per_user_limit": 1,
                }
            ]
        }
    }


class UpdateCouponRequest(BaseModel):
    description: str | None = None
    discount_type: str | None = None
    discount_value: float | None = Field(default=None, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=0)
    per_user_limit: int | None = Field(default=None, ge=0)
    applies_to: str | None = None
    selected_customer_ids: list[str] | None = None
    selected_product_ids: list[str] | None = None


class ActivationRequest(BaseModel):
    is_active: bool


class CouponIdResponse(BaseModel):
    coupon_id: str


# ---------------------------------------------------------------------------
# Shipping
# ---------------------------------------------------------------------------
class CreateZoneRequest(BaseModel):
    name: str
    zone_type: str = "region"


class AddRateRequest(BaseModel):
    area_name: str
    rate: float = Field(ge=0)
    free_shipping_threshold: float | None = Field(default=None, ge=0)
    country: str | None = None


class ZoneIdResponse(BaseModel):
    zone_id: str


class RateIdResponse(BaseModel):
    rate_id: str


class RateOptionResponse(BaseModel):
    rate_id: str
    zone_id: str
    zone_name: str
    area_name: str
    charge: float
    free_shipping_threshold: float | None = None


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    product_name: str
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    variation: dict | None = None


class CartItemIdResponse(BaseModel):
    item_id: str


# ---------------------------------------------------------------------------
# Gateway configuration (non-production)
# ---------------------------------------------------------------------------
class ConfigureGatewayRequest(BaseModel):
    kind: str
    stage: str = "initiate"  # or "capture"
    should_succeed: bool
    failure_reason: str = "Gateway unavailable"


class GatewayConfigResponse(BaseModel):
    kind: str
    stage: str
    gateway: str
    should_succeed: bool
    failure_reason: str


# ---------------------------------------------------------------------------
# Generic
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"
