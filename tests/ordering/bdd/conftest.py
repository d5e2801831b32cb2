"""Shared BDD fixtures and Given steps for checkout scenarios."""

import pytest
from ordering.cart.items import AddToCart
from ordering.coupon.management import CreateCoupon
from ordering.shipping.management import AddShippingRate, CreateShippingZone
from payments.gateway import get_initiator
from protean import current_domain
from pytest_bdd import given, parsers


@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def shop():
    """Mutable scenario state: the rate on offer and the last checkout result."""
    return {"rate_id": None, "outcome": None, "rejection": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a delivery area "{area}" charging {rate:f} free from {threshold:f}'))
def delivery_area(shop, area, rate, threshold):
    zone_id = current_domain.process(CreateShippingZone(name="Dhaka"), asynchronous=False)
    shop["rate_id"] = current_domain.process(
        AddShippingRate(zone_id=zone_id, area_name=area, rate=rate, free_shipping_threshold=threshold),
        asynchronous=False,
    )


@given(parsers.cfparse('a fixed coupon "{code}" worth {value:f}'))
def fixed_coupon(code, value):
    current_domain.process(CreateCoupon(code=code, discount_type="fixed", discount_value=value), asynchronous=False)


@given(parsers.cfparse('a fixed coupon "{code}" worth {value:f} for orders of at least {minimum:f}'))
def fixed_coupon_with_minimum(code, value, minimum):
    current_domain.process(
        CreateCoupon(code=code, discount_type="fixed", discount_value=value, min_order_amount=minimum),
        asynchronous=False,
    )


@given(parsers.cfparse('the cart holds {quantity:d} of "{product}" at {price:f}'))
def cart_holds(customer_id, quantity, product, price):
    current_domain.process(
        AddToCart(
            customer_id=customer_id,
            product_id=f"prod-{product.lower()}",
            product_name=product,
            unit_price=price,
            quantity=quantity,
        ),
        asynchronous=False,
    )


@given(parsers.cfparse('the "{kind}" gateway is unavailable'))
def gateway_unavailable(kind):
    get_initiator(kind).configure(should_succeed=False)
