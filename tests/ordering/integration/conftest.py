import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api import (
    cart_router,
    checkout_router,
    coupon_router,
    gateway_router,
    order_router,
    shipping_router,
)
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    for router in (checkout_router, order_router, coupon_router, shipping_router, cart_router, gateway_router):
        app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def rate_id(client):
    """A single delivery area: 5.00, free from 100.00."""
    zone_id = client.post("/shipping-zones", json={"name": "Dhaka", "zone_type": "city"}).json()["zone_id"]
    response = client.post(
        f"/shipping-zones/{zone_id}/rates",
        json={"area_name": "Inside Dhaka", "rate": 5.0, "free_shipping_threshold": 100.0},
    )
    return response.json()["rate_id"]


@pytest.fixture()
def fill_cart(client):
    def _fill(customer_id="cust-api-001", unit_price=20.0, quantity=2):
        response = client.post(
            f"/carts/{customer_id}/items",
            json={"product_id": "prod-tee", "product_name": "T-Shirt", "unit_price": unit_price, "quantity": quantity},
        )
        assert response.status_code == 201
        return response.json()["item_id"]

    return _fill


@pytest.fixture()
def checkout_body(rate_id):
    def _body(payment_method="cod", customer_id="cust-api-001", **overrides):
        body = {
            "customer_id": customer_id,
            "email_verified": True,
            "address": {"address": "House 12, Road 5", "recipient_name": "Rahim Uddin", "city": "Dhaka"},
            "shipping_rate_id": rate_id,
            "payment_method": payment_method,
        }
        body.update(overrides)
        return body

    return _body


@pytest.fixture()
def place_order(client, fill_cart, checkout_body):
    """Submit a 45.00 checkout (two 20.00 items plus 5.00 shipping) and return the order id."""

    def _place(payment_method="cod", customer_id="cust-api-001"):
        fill_cart(customer_id)
        response = client.post("/checkout/submit", json=checkout_body(payment_method, customer_id))
        assert response.status_code == 200
        return response.json()["order_id"]

    return _place
