"""Tests for the payment gateway registry and its fake adapters."""

from payments.gateway import (
    get_capturer,
    get_initiator,
    reset_gateways,
    set_capturer,
    set_initiator,
)
from payments.gateway.fake_adapter import FakeCapturer, FakeInitiator
from payments.gateway.port import CaptureResult, InitiationResult


class TestFakeInitiator:
    def test_redirect_gateway_returns_payment_page(self):
        initiator = FakeInitiator("bkash")
        result = initiator.initiate("ord-001")
        assert isinstance(result, InitiationResult)
        assert result.success is True
        assert result.redirect_url == "https://pay.example.test/bkash/checkout/ord-001"
        assert result.handle is None

    def test_sdk_gateway_returns_handle(self):
        initiator = FakeInitiator("paypal", issues_handle=True)
        result = initiator.initiate("ord-001")
        assert result.success is True
        assert result.handle.startswith("fake_paypal_")
        assert result.redirect_url is None

    def test_configured_failure(self):
        initiator = FakeInitiator("stripe")
        initiator.configure(should_succeed=False, failure_reason="Merchant suspended", failure_details="code 42")
        result = initiator.initiate("ord-001")
        assert result.success is False
        assert result.error == "Merchant suspended"
        assert result.details == "code 42"

    def test_records_calls(self):
        initiator = FakeInitiator("nagad")
        initiator.initiate("ord-001")
        initiator.initiate("ord-002")
        assert [call["order_id"] for call in initiator.calls] == ["ord-001", "ord-002"]

    def test_callback_signature(self):
        initiator = FakeInitiator("bkash")
        assert initiator.verify_callback_signature("{}", "test-signature") is True
        assert initiator.verify_callback_signature("{}", "forged") is False


class TestFakeCapturer:
    def test_default_capture_succeeds(self):
        result = FakeCapturer().capture("handle-1", "ord-001")
        assert isinstance(result, CaptureResult)
        assert result.success is True
        assert result.transaction_id.startswith("fake_cap_")

    def test_configured_capture_fails(self):
        capturer = FakeCapturer()
        capturer.configure(should_succeed=False, failure_reason="Card declined")
        result = capturer.capture("handle-1", "ord-001")
        assert result.success is False
        assert result.error == "Card declined"


class TestGatewayRegistry:
    def test_default_initiators_are_fakes(self):
        assert isinstance(get_initiator("sslcommerz"), FakeInitiator)
        assert get_initiator("paypal").issues_handle is True
        assert get_initiator("bkash").issues_handle is False

    def test_same_instance_per_kind(self):
        assert get_initiator("bkash") is get_initiator("bkash")
        assert get_initiator("bkash") is not get_initiator("nagad")

    def test_override_and_reset(self):
        custom = FakeInitiator("bkash")
        custom.configure(should_succeed=False)
        set_initiator("bkash", custom)
        assert get_initiator("bkash") is custom

        reset_gateways()
        assert get_initiator("bkash") is not custom
        assert get_initiator("bkash").should_succeed is True

    def test_override_capturer(self):
        custom = FakeCapturer()
        set_capturer("paypal", custom)
        assert get_capturer("paypal") is custom
