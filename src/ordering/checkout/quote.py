"""Checkout quote: shipping, coupon and pricing for a draft, without writes."""

from dataclasses import dataclass
from datetime import datetime

from ordering.checkout.draft import CheckoutDraft
from ordering.checkout.pricing import PriceBreakdown, calculate_totals
from ordering.coupon.validation import AppliedCoupon, CouponRejection, CouponValidator
from ordering.shipping.rates import ShippingCatalog, ShippingQuote, load_shipping_catalog, resolve_shipping


@dataclass(frozen=True)
class CheckoutQuote:
    breakdown: PriceBreakdown
    shipping: ShippingQuote | None
    coupon: AppliedCoupon | None = None

    @property
    def shipping_resolved(self) -> bool:
        return self.shipping is not None


def apply_coupon(
    draft: CheckoutDraft,
    code: str,
    as_of: datetime | None = None,
) -> tuple[CheckoutDraft, CouponRejection | None]:
    """Validate ``code`` against the draft and attach it when accepted.

    A rejected code leaves the draft without any coupon.
    """
    result = CouponValidator().validate(
        code,
        subtotal=draft.subtotal,
        product_ids=draft.product_ids,
        customer_id=draft.customer.customer_id,
        as_of=as_of,
    )
    if isinstance(result, CouponRejection):
        return draft.with_coupon(None), result
    return draft.with_coupon(result), None


def quote_checkout(draft: CheckoutDraft, catalog: ShippingCatalog | None = None) -> CheckoutQuote:
    """Price the draft. Shipping counts as zero until an area resolves."""
    catalog = catalog if catalog is not None else load_shipping_catalog()
    shipping = resolve_shipping(draft.shipping_rate_id, catalog, draft.subtotal)
    discount = draft.coupon.discount if draft.coupon else 0.0

    breakdown = calculate_totals(
        draft.lines,
        shipping=shipping.charge if shipping else 0.0,
        discount=discount,
    )
    return CheckoutQuote(breakdown=breakdown, shipping=shipping, coupon=draft.coupon)
