"""Application tests for the coupon validator against stored coupons, usages and orders."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from ordering.coupon.coupon import Coupon
from ordering.coupon.ledger import RedeemCoupon
from ordering.coupon.management import CreateCoupon, SetCouponActive
from ordering.coupon.validation import (
    _MESSAGES,
    AppliedCoupon,
    CouponRejection,
    CouponValidator,
    RejectionReason,
)
from ordering.order.placement import PlaceOrder
from protean import current_domain


def _create_coupon(code="SAVE10", **terms):
    terms.setdefault("discount_type", "fixed")
    terms.setdefault("discount_value", 10.0)
    for field_name in ("selected_customer_ids", "selected_product_ids"):
        if field_name in terms:
            terms[field_name] = json.dumps(terms[field_name])
    return current_domain.process(CreateCoupon(code=code, **terms), asynchronous=False)


def _redeem(coupon_id, customer_id, order_id):
    current_domain.process(
        RedeemCoupon(coupon_id=coupon_id, customer_id=customer_id, order_id=order_id),
        asynchronous=False,
    )


def _place_order_for(customer_id):
    return current_domain.process(
        PlaceOrder(
            customer_id=customer_id,
            items=json.dumps([{"product_id": "p1", "product_name": "Mug", "unit_price": 10.0, "quantity": 1}]),
            shipping=json.dumps({"address": "1 Main St"}),
            subtotal=10.0,
            total=10.0,
            payment_method="cod",
            cash_on_delivery=True,
        ),
        asynchronous=False,
    )


def _validate(code="SAVE10", subtotal=100.0, **kwargs):
    return CouponValidator().validate(code, subtotal=subtotal, **kwargs)


def _reason(result):
    assert isinstance(result, CouponRejection), result
    return result.reason


class TestAccepted:
    def test_valid_fixed_coupon(self):
        coupon_id = _create_coupon()
        result = _validate(subtotal=120.0, customer_id="cust-001")
        assert isinstance(result, AppliedCoupon)
        assert result.coupon_id == coupon_id
        assert result.code == "SAVE10"
        assert result.discount == 10.0
        assert result.summary == "Promo: SAVE10 (10.00 off, -10.00)"

    def test_code_lookup_ignores_case(self):
        _create_coupon()
        assert isinstance(_validate(code=" save10 "), AppliedCoupon)

    def test_percentage_capped(self):
        _create_coupon(code="SPRING20", discount_type="percentage", discount_value=20, max_discount_amount=10.0)
        result = _validate(code="SPRING20", subtotal=100.0)
        assert result.discount == 10.0


class TestRejections:
    def test_unknown_code(self):
        result = _validate(code="NOPE")
        assert _reason(result) == RejectionReason.INVALID_CODE
        assert result.message == "Invalid promo code"
        assert result.error_kind == "coupon_rejected"

    def test_inactive_coupon_reads_as_invalid(self):
        coupon_id = _create_coupon()
        current_domain.process(SetCouponActive(coupon_id=coupon_id, is_active=False), asynchronous=False)
        assert _reason(_validate()) == RejectionReason.INVALID_CODE

    def test_expired(self):
        now = datetime.now(UTC)
        _create_coupon(start_date=now - timedelta(days=10), end_date=now - timedelta(days=1))
        assert _reason(_validate()) == RejectionReason.EXPIRED

    def test_not_yet_active(self):
        now = datetime.now(UTC)
        _create_coupon(start_date=now + timedelta(days=1))
        assert _reason(_validate()) == RejectionReason.NOT_YET_ACTIVE

    def test_window_evaluated_at_given_moment(self):
        now = datetime.now(UTC)
        _create_coupon(start_date=now + timedelta(days=1), end_date=now + timedelta(days=5))
        assert isinstance(_validate(as_of=now + timedelta(days=2)), AppliedCoupon)

    def test_usage_limit_reached(self):
        coupon_id = _create_coupon(usage_limit=1)
        assert isinstance(_validate(customer_id="cust-001"), AppliedCoupon)

        _redeem(coupon_id, "cust-001", "ord-001")

        assert _reason(_validate(customer_id="cust-002")) == RejectionReason.USAGE_LIMIT_REACHED

    def test_below_minimum(self):
        _create_coupon(min_order_amount=50.0)
        result = _validate(subtotal=49.99)
        assert _reason(result) == RejectionReason.BELOW_MINIMUM
        assert result.message == "Minimum order amount is 50.00"

    def test_minimum_is_inclusive(self):
        _create_coupon(min_order_amount=50.0)
        assert isinstance(_validate(subtotal=50.0), AppliedCoupon)

    def test_per_user_limit(self):
        coupon_id = _create_coupon(per_user_limit=1)
        _redeem(coupon_id, "cust-A", "ord-001")

        assert _reason(_validate(customer_id="cust-A")) == RejectionReason.PER_USER_LIMIT_REACHED
        assert isinstance(_validate(customer_id="cust-B"), AppliedCoupon)

    def test_new_customers_only(self):
        _create_coupon(code="WELCOME", applies_to="new_customers")
        _place_order_for("cust-returning")

        assert _reason(_validate(code="WELCOME", customer_id="cust-returning")) == RejectionReason.NOT_NEW_CUSTOMER
        assert isinstance(_validate(code="WELCOME", customer_id="cust-new"), AppliedCoupon)

    def test_new_customer_rule_skipped_for_guests(self):
        _create_coupon(code="WELCOME", applies_to="new_customers")
        assert isinstance(_validate(code="WELCOME"), AppliedCoupon)

    def test_selected_customers(self):
        _create_coupon(code="VIP", applies_to="selected_customers", selected_customer_ids=["cust-vip"])
        assert isinstance(_validate(code="VIP", customer_id="cust-vip"), AppliedCoupon)
        assert _reason(_validate(code="VIP", customer_id="cust-001")) == RejectionReason.CUSTOMER_NOT_ELIGIBLE
        assert _reason(_validate(code="VIP")) == RejectionReason.CUSTOMER_NOT_ELIGIBLE

    def test_selected_products(self):
        _create_coupon(code="MUGS", applies_to="selected_products", selected_product_ids=["prod-mug"])
        assert isinstance(_validate(code="MUGS", product_ids={"prod-mug", "prod-tee"}), AppliedCoupon)
        assert _reason(_validate(code="MUGS", product_ids={"prod-tee"})) == RejectionReason.NO_ELIGIBLE_PRODUCTS

    def test_first_failing_rule_wins(self):
        now = datetime.now(UTC)
        _create_coupon(end_date=now - timedelta(days=1), min_order_amount=500.0)
        assert _reason(_validate(subtotal=10.0)) == RejectionReason.EXPIRED

    @pytest.mark.parametrize("reason", list(RejectionReason))
    def test_every_reason_has_a_message(self, reason):
        assert _MESSAGES[reason]

    def test_validation_never_writes(self):
        coupon_id = _create_coupon()
        _validate(customer_id="cust-001")
        assert current_domain.repository_for(Coupon).get(coupon_id).usage_count == 0
