"""Application tests for quoting a checkout against stored zones and coupons."""

from ordering.cart.items import AddToCart
from ordering.cart.cart import ShoppingCart
from ordering.checkout.draft import CheckoutDraft, CustomerIdentity, DeliveryAddress
from ordering.checkout.quote import apply_coupon, quote_checkout
from ordering.coupon.management import CreateCoupon
from ordering.coupon.validation import RejectionReason
from ordering.shipping.management import AddShippingRate, CreateShippingZone, SetShippingZoneActive
from ordering.shipping.rates import load_shipping_catalog
from protean import current_domain

_CUSTOMER = CustomerIdentity(customer_id="cust-001", email_verified=True)


def _zone_with_rate(name="Dhaka", area="Inside Dhaka", rate=5.0, threshold=100.0):
    zone_id = current_domain.process(CreateShippingZone(name=name), asynchronous=False)
    rate_id = current_domain.process(
        AddShippingRate(zone_id=zone_id, area_name=area, rate=rate, free_shipping_threshold=threshold),
        asynchronous=False,
    )
    return zone_id, rate_id


def _draft_with(unit_price, quantity=1, rate_id=None):
    current_domain.process(
        AddToCart(
            customer_id="cust-001",
            product_id="prod-001",
            product_name="Desk Lamp",
            unit_price=unit_price,
            quantity=quantity,
        ),
        asynchronous=False,
    )
    cart = current_domain.repository_for(ShoppingCart).find_for_customer("cust-001")
    return CheckoutDraft.from_cart(
        _CUSTOMER,
        cart,
        address=DeliveryAddress(address="House 12, Road 5"),
        shipping_rate_id=rate_id,
        payment_method="cod",
    )


class TestQuote:
    def test_shipping_below_threshold(self):
        _, rate_id = _zone_with_rate()
        quote = quote_checkout(_draft_with(40.0, rate_id=rate_id))
        assert quote.breakdown.subtotal == 40.0
        assert quote.breakdown.shipping == 5.0
        assert quote.breakdown.grand_total == 45.0
        assert quote.shipping.area_name == "Inside Dhaka"

    def test_threshold_with_coupon(self):
        _, rate_id = _zone_with_rate(threshold=100.0)
        current_domain.process(
            CreateCoupon(code="SAVE10", discount_type="fixed", discount_value=10.0),
            asynchronous=False,
        )
        draft, rejection = apply_coupon(_draft_with(60.0, quantity=2, rate_id=rate_id), "SAVE10")

        quote = quote_checkout(draft)

        assert rejection is None
        assert quote.breakdown.subtotal == 120.0
        assert quote.breakdown.shipping == 0.0
        assert quote.breakdown.discount == 10.0
        assert quote.breakdown.grand_total == 110.0
        assert quote.coupon.code == "SAVE10"

    def test_unresolved_area_counts_zero_shipping(self):
        _zone_with_rate()
        quote = quote_checkout(_draft_with(40.0, rate_id=None))
        assert quote.shipping_resolved is False
        assert quote.breakdown.shipping == 0.0
        assert quote.breakdown.grand_total == 40.0

    def test_no_zones_ship_free(self):
        quote = quote_checkout(_draft_with(40.0))
        assert quote.shipping_resolved is True
        assert quote.shipping.area_name == "Standard"
        assert quote.breakdown.shipping == 0.0


class TestApplyCoupon:
    def test_rejection_leaves_no_coupon(self):
        draft, rejection = apply_coupon(_draft_with(40.0), "NOPE")
        assert rejection.reason == RejectionReason.INVALID_CODE
        assert draft.coupon is None
        assert quote_checkout(draft).breakdown.discount == 0.0


class TestShippingCatalog:
    def test_only_active_zones_are_offered(self):
        zone_id, rate_id = _zone_with_rate()
        _, other_rate_id = _zone_with_rate(name="Chattogram", area="Port Area", rate=8.0)

        current_domain.process(SetShippingZoneActive(zone_id=zone_id, is_active=False), asynchronous=False)

        catalog = load_shipping_catalog()
        assert catalog.find(rate_id) is None
        assert catalog.find(other_rate_id).charge == 8.0
