"""Coupon administration: commands and handler.

Staff create coupons, edit their terms and switch them on or off. None of
these touch ``usage_count``; only redemption does.
"""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.coupon.coupon import EDITABLE_TERMS, Coupon, CouponScope, DiscountType
from ordering.domain import ordering


@ordering.command(part_of="Coupon")
class CreateCoupon:
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
    selected_customer_ids = Text()  # JSON array
    selected_product_ids = Text()  # JSON array
    is_active = Boolean(default=True)


@ordering.command(part_of="Coupon")
class UpdateCouponTerms:
    coupon_id = Identifier(required=True)
    description = Text()
    discount_type = String(choices=DiscountType)
    discount_value = Float(min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    start_date = DateTime()
    end_date = DateTime()
    usage_limit = Integer(min_value=0)
    per_user_limit = Integer(min_value=0)
    applies_to = String(choices=CouponScope)
    selected_customer_ids = Text()  # JSON array
    selected_product_ids = Text()  # JSON array


@ordering.command(part_of="Coupon")
class SetCouponActive:
    coupon_id = Identifier(required=True)
    is_active = Boolean(default=False)


def _decode_id_set(value):
    if value is None:
        return None
    return json.loads(value) if isinstance(value, str) else value


@ordering.command_handler(part_of=Coupon)
class CouponManagementHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Coupon code {command.code.upper()} already exists"]})

        coupon = Coupon.create(
            code=command.code,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            description=command.description,
            max_discount_amount=command.max_discount_amount,
            min_order_amount=command.min_order_amount,
            start_date=command.start_date,
            end_date=command.end_date,
            usage_limit=command.usage_limit,
            per_user_limit=command.per_user_limit,
            applies_to=command.applies_to,
            selected_customer_ids=_decode_id_set(command.selected_customer_ids) or [],
            selected_product_ids=_decode_id_set(command.selected_product_ids) or [],
            is_active=command.is_active if command.is_active is not None else True,
        )
        repo.add(coupon)
        return str(coupon.id)

    @handle(UpdateCouponTerms)
    def update_coupon_terms(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)

        terms = {}
        for field_name in EDITABLE_TERMS:
            value = getattr(command, field_name)
            if value is None:
                continue
            if field_name in ("selected_customer_ids", "selected_product_ids"):
                value = _decode_id_set(value)
            terms[field_name] = value

        if terms:
            coupon.update_terms(**terms)
            repo.add(coupon)

    @handle(SetCouponActive)
    def set_coupon_active(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.get(command.coupon_id)
        coupon.set_active(bool(command.is_active))
        repo.add(coupon)
