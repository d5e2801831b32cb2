"""Tests for parsing payment method keys into variants."""

import pytest
from ordering.checkout.methods import (
    CashOnDelivery,
    GatewayKind,
    ManualPayment,
    RedirectGateway,
    SdkGateway,
    parse_payment_method,
)


class TestParsePaymentMethod:
    def test_cash_on_delivery(self):
        assert parse_payment_method("cod") == CashOnDelivery()

    def test_manual_payment(self):
        assert parse_payment_method("manual_payment") == ManualPayment()

    @pytest.mark.parametrize("key", ["sslcommerz", "bkash", "nagad", "stripe"])
    def test_redirect_gateways(self, key):
        method = parse_payment_method(key)
        assert method == RedirectGateway(GatewayKind(key))
        assert method.key == key

    def test_sdk_gateway(self):
        assert parse_payment_method("paypal") == SdkGateway(GatewayKind.PAYPAL)

    def test_case_and_whitespace_insensitive(self):
        assert parse_payment_method(" BKash ") == RedirectGateway(GatewayKind.BKASH)

    @pytest.mark.parametrize("key", [None, "", "bitcoin"])
    def test_unknown_keys(self, key):
        assert parse_payment_method(key) is None
