"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the checkout rules (non-empty
address, a positive quantity, coupon terms within range) and match the exact
field names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

PRODUCTS = [
    ("prod-tee", "Cotton T-Shirt", 18.5),
    ("prod-mug", "Ceramic Mug", 9.0),
    ("prod-bag", "Canvas Tote Bag", 24.0),
    ("prod-cap", "Baseball Cap", 15.75),
    ("prod-hoodie", "Zip Hoodie", 52.0),
]

REDIRECT_GATEWAYS = ["sslcommerz", "bkash", "nagad", "stripe"]


def customer_id() -> str:
    """Generate unique customer ids like 'cust-lt-a1b2c3d4'."""
    return f"cust-lt-{uuid.uuid4().hex[:8]}"


def address_data() -> dict:
    """Generate an AddressSchema payload."""
    return {
        "address": fake.street_address()[:255],
        "recipient_name": fake.name()[:255],
        "phone": fake.msisdn()[:15],
        "city": fake.city()[:100],
        "postal_code": fake.postcode()[:20],
    }


def cart_item_data() -> dict:
    """Generate an AddToCartRequest payload for one catalogue product."""
    product_id, name, price = random.choice(PRODUCTS)
    payload = {
        "product_id": product_id,
        "product_name": name,
        "unit_price": price,
        "quantity": random.randint(1, 3),
    }
    if product_id in ("prod-tee", "prod-hoodie"):
        payload["variation"] = {"size": random.choice(["S", "M", "L", "XL"])}
    return payload


def checkout_data(customer: str, payment_method: str, rate_id: str | None = None, coupon_code=None) -> dict:
    """Generate a CheckoutRequest payload for a signed-in, verified customer."""
    return {
        "customer_id": customer,
        "email_verified": True,
        "address": address_data(),
        "shipping_rate_id": rate_id,
        "payment_method": payment_method,
        "coupon_code": coupon_code,
        "idempotency_key": uuid.uuid4().hex,
    }


def coupon_data() -> dict:
    """Generate a CreateCouponRequest payload with a unique code."""
    if random.random() < 0.5:
        terms = {"discount_type": "percentage", "discount_value": random.choice([5, 10, 15, 20])}
        terms["max_discount_amount"] = random.choice([None, 10.0, 25.0])
    else:
        terms = {"discount_type": "fixed", "discount_value": random.choice([2.5, 5.0, 10.0])}
    return {
        "code": f"LT{uuid.uuid4().hex[:6].upper()}",
        "description": fake.catch_phrase()[:255],
        "min_order_amount": random.choice([None, 20.0, 50.0]),
        **terms,
    }


def zone_data() -> dict:
    return {"name": f"{fake.state()} {uuid.uuid4().hex[:4]}", "zone_type": "region"}


def rate_data() -> dict:
    """Generate an AddRateRequest payload."""
    return {
        "area_name": f"{fake.city()} {uuid.uuid4().hex[:4]}"[:255],
        "rate": random.choice([3.0, 5.0, 7.5, 12.0]),
        "free_shipping_threshold": random.choice([None, 75.0, 100.0]),
    }
