"""Checkout load test scenarios.

Stateful SequentialTaskSet journeys: a cash-on-delivery shopper, a shopper
paying through a redirect gateway whose callback settles the payment, and a
back-office user managing shipping, coupons and order statuses.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    REDIRECT_GATEWAYS,
    cart_item_data,
    checkout_data,
    coupon_data,
    customer_id,
    rate_data,
    zone_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import BackOfficeState, CheckoutState


class _ShopperJourney(SequentialTaskSet):
    payment_method = "cod"

    def on_start(self):
        self.state = CheckoutState(customer_id=customer_id())

    @task
    def pick_delivery_area(self):
        with self.client.get("/shipping-zones/rates", catch_response=True, name="GET /shipping-zones/rates") as resp:
            if resp.status_code != 200:
                resp.failure(f"List rates failed: {resp.status_code} - {extract_error_detail(resp)}")
                return
            rates = resp.json()
            self.state.rate_id = random.choice(rates)["rate_id"] if rates else None

    @task
    def fill_cart(self):
        for _ in range(random.randint(1, 3)):
            with self.client.post(
                f"/carts/{self.state.customer_id}/items",
                json=cart_item_data(),
                catch_response=True,
                name="POST /carts/{id}/items",
            ) as resp:
                if resp.status_code == 201:
                    self.state.item_count += 1
                else:
                    resp.failure(f"Add cart item failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def quote(self):
        payload = checkout_data(self.state.customer_id, self.payment_method, self.state.rate_id)
        with self.client.post("/checkout/quote", json=payload, catch_response=True, name="POST /checkout/quote") as resp:
            if resp.status_code != 200:
                resp.failure(f"Quote failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def submit(self):
        payload = checkout_data(self.state.customer_id, self.payment_method, self.state.rate_id)
        with self.client.post(
            "/checkout/submit", json=payload, catch_response=True, name="POST /checkout/submit"
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Submit failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()
                return
            body = resp.json()
            self.state.order_id = body.get("order_id")
            self.state.outcome = body["outcome"]
            if body["outcome"] in ("rejected", "not_created"):
                resp.failure(f"Checkout {body['outcome']}: {body.get('problems') or body.get('error')}")
                self.interrupt()


class CashOnDeliveryJourney(_ShopperJourney):
    """Rates -> Cart -> Quote -> Submit (cod). Ends confirmed with the cart cleared."""

    payment_method = "cod"

    @task
    def done(self):
        self.interrupt()


class RedirectGatewayJourney(_ShopperJourney):
    """Rates -> Cart -> Quote -> Submit (gateway) -> Callback."""

    def on_start(self):
        super().on_start()
        self.payment_method = random.choice(REDIRECT_GATEWAYS)

    @task
    def callback(self):
        if self.state.outcome != "redirect":
            self.interrupt()
            return
        with self.client.post(
            f"/orders/{self.state.order_id}/payment-callback",
            json={"success": random.random() < 0.9, "transaction_id": f"lt-{self.state.order_id[:8]}"},
            headers={"X-Gateway-Signature": "test-signature"},
            catch_response=True,
            name="POST /orders/{id}/payment-callback",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Callback failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class BackOfficeJourney(SequentialTaskSet):
    """Zone -> Rates -> Coupon -> Status counts -> Bulk confirm pending orders."""

    def on_start(self):
        self.state = BackOfficeState()

    @task
    def create_zone(self):
        with self.client.post("/shipping-zones", json=zone_data(), catch_response=True, name="POST /shipping-zones") as resp:
            if resp.status_code == 201:
                self.state.zone_id = resp.json()["zone_id"]
            else:
                resp.failure(f"Create zone failed: {resp.status_code} - {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def add_rates(self):
        for _ in range(2):
            with self.client.post(
                f"/shipping-zones/{self.state.zone_id}/rates",
                json=rate_data(),
                catch_response=True,
                name="POST /shipping-zones/{id}/rates",
            ) as resp:
                if resp.status_code == 201:
                    self.state.rate_ids.append(resp.json()["rate_id"])
                else:
                    resp.failure(f"Add rate failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def create_coupon(self):
        payload = coupon_data()
        with self.client.post("/coupons", json=payload, catch_response=True, name="POST /coupons") as resp:
            if resp.status_code == 201:
                self.state.coupon_codes.append(payload["code"])
            else:
                resp.failure(f"Create coupon failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def review_pending_orders(self):
        with self.client.get(
            "/orders", params={"status": "pending"}, catch_response=True, name="GET /orders?status=pending"
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"List orders failed: {resp.status_code} - {extract_error_detail(resp)}")
                return
            self.state.order_ids = [order["order_id"] for order in resp.json()[:20]]

    @task
    def bulk_confirm(self):
        if not self.state.order_ids:
            return
        with self.client.post(
            "/orders/bulk/status",
            json={"order_ids": self.state.order_ids, "status": "confirmed", "changed_by": "loadtest"},
            catch_response=True,
            name="POST /orders/bulk/status",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Bulk status failed: {resp.status_code} - {extract_error_detail(resp)}")

    @task
    def status_counts(self):
        self.client.get("/orders/status-counts", name="GET /orders/status-counts")

    @task
    def done(self):
        self.interrupt()


class ShopperUser(HttpUser):
    wait_time = between(1, 3)
    tasks = {CashOnDeliveryJourney: 3, RedirectGatewayJourney: 2}


class BackOfficeUser(HttpUser):
    wait_time = between(2, 5)
    weight = 1
    tasks = [BackOfficeJourney]
