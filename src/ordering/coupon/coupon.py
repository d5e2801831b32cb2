"""Coupon aggregates: promotional codes and the ledger of their use.

A ``Coupon`` carries the promotion terms. Codes are unique regardless of
case and are stored upper-cased. ``usage_count`` only ever goes up, and only
when a ``CouponUsage`` row is written for the same coupon.

``CouponUsage`` is append-only. Per-customer limits are enforced by counting
its rows, never by a cached counter.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from ordering.coupon.events import (
    CouponActivationChanged,
    CouponCreated,
    CouponRedeemed,
    CouponTermsUpdated,
)
from ordering.domain import ordering
from ordering.utils.dates import as_naive_utc


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class CouponScope(Enum):
    ALL = "all"
    NEW_CUSTOMERS = "new_customers"
    SELECTED_CUSTOMERS = "selected_customers"
    SELECTED_PRODUCTS = "selected_products"


# Terms staff may edit after creation. usage_count is not editable.
EDITABLE_TERMS = (
    "description",
    "discount_type",
    "discount_value",
    "max_discount_amount",
    "min_order_amount",
    "start_date",
    "end_date",
    "usage_limit",
    "per_user_limit",
    "applies_to",
    "selected_customer_ids",
    "selected_product_ids",
)


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


@ordering.aggregate
class Coupon:
    code = String(required=True, max_length=50)
    description = Text()
    discount_type = String(choices=DiscountType, default=DiscountType.PERCENTAGE.value)
    discount_value = Float(required=True, min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    start_date = DateTime()
    end_date = DateTime()
    usage_limit = Integer(min_value=0)
    per_user_limit = Integer(min_value=0)
    applies_to = String(choices=CouponScope, default=CouponScope.ALL.value)
    selected_customer_ids = Text()  # JSON array of customer ids
    selected_product_ids = Text()  # JSON array of product ids
    usage_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.start_date and self.end_date and as_naive_utc(self.end_date) < as_naive_utc(self.start_date):
            raise ValidationError({"end_date": ["End date must not be before start date"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, code, discount_type, discount_value, **terms):
        now = datetime.now(UTC)
        terms.setdefault("is_active", True)
        coupon = cls(
            code=normalize_code(code),
            discount_type=discount_type,
            discount_value=discount_value,
            usage_count=0,
            created_at=now,
            updated_at=now,
            **_encode_id_sets(terms),
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
                applies_to=coupon.applies_to,
            )
        )
        return coupon

    # -------------------------------------------------------------------
    # Read helpers
    # -------------------------------------------------------------------
    @property
    def customer_ids(self) -> set[str]:
        return {str(value) for value in json.loads(self.selected_customer_ids or "[]")}

    @property
    def product_ids(self) -> set[str]:
        return {str(value) for value in json.loads(self.selected_product_ids or "[]")}

    def discount_for(self, subtotal: float) -> float:
        """Currency amount this coupon takes off ``subtotal``.

        Percentage coupons are capped by ``max_discount_amount``; fixed
        coupons use their value verbatim. The result never exceeds the
        subtotal.
        """
        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = subtotal * self.discount_value / 100
            if self.max_discount_amount:
                discount = min(discount, self.max_discount_amount)
        else:
            discount = self.discount_value

        return round(max(min(discount, subtotal), 0.0), 2)

    def summary(self, discount: float) -> str:
        """Promo note stored on the order, frozen at checkout."""
        if self.discount_type == DiscountType.PERCENTAGE.value:
            terms = f"{self.discount_value:g}% off"
        else:
            terms = f"{self.discount_value:.2f} off"
        return f"Promo: {self.code} ({terms}, -{discount:.2f})"

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def update_terms(self, **terms):
        unknown = set(terms) - set(EDITABLE_TERMS)
        if unknown:
            raise ValidationError({"terms": [f"Cannot edit coupon fields: {', '.join(sorted(unknown))}"]})

        changes = _encode_id_sets(terms)
        for field_name, value in changes.items():
            setattr(self, field_name, value)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CouponTermsUpdated(
                coupon_id=str(self.id),
                code=self.code,
                changed_fields=",".join(sorted(changes)),
            )
        )

    def set_active(self, is_active: bool):
        if bool(self.is_active) == bool(is_active):
            return

        self.is_active = bool(is_active)
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CouponActivationChanged(
                coupon_id=str(self.id),
                code=self.code,
                is_active=self.is_active,
            )
        )

    # -------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------
    def record_redemption(self, customer_id, order_id=None):
        """Bump usage_count for a usage row written for this coupon."""
        now = datetime.now(UTC)
        self.usage_count = (self.usage_count or 0) + 1
        self.updated_at = now

        self.raise_(
            CouponRedeemed(
                coupon_id=str(self.id),
                code=self.code,
                customer_id=str(customer_id),
                order_id=str(order_id) if order_id else None,
                usage_count=self.usage_count,
                redeemed_at=now,
            )
        )


@ordering.aggregate
class CouponUsage:
    """One consumption of a coupon by a customer, optionally tied to an order."""

    coupon_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    order_id = Identifier()
    used_at = DateTime()


def _encode_id_sets(terms):
    encoded = dict(terms)
    for field_name in ("selected_customer_ids", "selected_product_ids"):
        value = encoded.get(field_name)
        if value is not None and not isinstance(value, str):
            encoded[field_name] = json.dumps(sorted(str(v) for v in value))
    return encoded
