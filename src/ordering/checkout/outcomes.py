"""Checkout results as tagged variants.

The two-phase placement answers with ``OrderCreated``,
``OrderCreatedCouponFailed`` or ``CreationFailed``. The dispatcher wraps that
into a payment outcome telling the caller what happens next. Failures carry
a ``CheckoutError`` whose ``kind`` is one of the ``ErrorKind`` values.
"""

from dataclasses import dataclass
from enum import Enum

from ordering.checkout.draft import CheckoutProblem


class ErrorKind(Enum):
    VALIDATION_ERROR = "validation_error"
    COUPON_REJECTED = "coupon_rejected"
    GATEWAY_INITIATION_FAILED = "gateway_initiation_failed"
    GATEWAY_CAPTURE_FAILED = "gateway_capture_failed"
    PERSISTENCE_ERROR = "persistence_error"


@dataclass(frozen=True)
class CheckoutError:
    kind: ErrorKind
    message: str
    details: str | None = None


# ---------------------------------------------------------------------------
# Two-phase placement
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderCreated:
    order_id: str
    reused: bool = False  # an earlier submit with the same idempotency key wrote it


@dataclass(frozen=True)
class OrderCreatedCouponFailed:
    """The order exists but recording the coupon's use did not succeed."""

    order_id: str
    error: CheckoutError
    reused: bool = False


@dataclass(frozen=True)
class CreationFailed:
    error: CheckoutError


PlacementResult = OrderCreated | OrderCreatedCouponFailed | CreationFailed


# ---------------------------------------------------------------------------
# Payment outcomes
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CheckoutRejected:
    """The draft failed validation; nothing was written."""

    problems: tuple[CheckoutProblem, ...]

    outcome = "rejected"


@dataclass(frozen=True)
class OrderNotCreated:
    error: CheckoutError

    outcome = "not_created"


@dataclass(frozen=True)
class OrderSettled:
    """Cash on delivery: confirmed immediately, nothing left to do."""

    order_id: str
    cart_cleared: bool
    coupon_error: CheckoutError | None = None

    outcome = "settled"


@dataclass(frozen=True)
class AwaitingReview:
    """Manual payment: the order waits for staff to check the proof."""

    order_id: str
    cart_cleared: bool
    coupon_error: CheckoutError | None = None

    outcome = "awaiting_review"


@dataclass(frozen=True)
class RedirectRequired:
    order_id: str
    redirect_url: str
    cart_cleared: bool
    coupon_error: CheckoutError | None = None

    outcome = "redirect"


@dataclass(frozen=True)
class SdkHandleIssued:
    order_id: str
    handle: str
    coupon_error: CheckoutError | None = None

    outcome = "sdk_handle"


@dataclass(frozen=True)
class PaymentAlreadySettled:
    """A repeated submit for an order whose payment is no longer open."""

    order_id: str
    payment_status: str

    outcome = "already_settled"


@dataclass(frozen=True)
class InitiationFailed:
    """The order exists in pending but the gateway could not be started."""

    order_id: str
    error: CheckoutError

    outcome = "initiation_failed"


@dataclass(frozen=True)
class PaymentCaptured:
    order_id: str
    cart_cleared: bool

    outcome = "captured"


@dataclass(frozen=True)
class CaptureFailed:
    order_id: str
    error: CheckoutError

    outcome = "capture_failed"


PaymentOutcome = (
    CheckoutRejected
    | OrderNotCreated
    | OrderSettled
    | AwaitingReview
    | RedirectRequired
    | SdkHandleIssued
    | PaymentAlreadySettled
    | InitiationFailed
    | PaymentCaptured
    | CaptureFailed
)
