"""Integration tests for the checkout endpoints via TestClient."""

from ordering.cart.cart import ShoppingCart
from ordering.order.order import Order
from protean import current_domain


def _cart_size(customer_id="cust-api-001"):
    cart = current_domain.repository_for(ShoppingCart).find_for_customer(customer_id)
    return len(cart.items) if cart else 0


class TestQuoteEndpoint:
    def test_free_shipping_and_coupon(self, client, fill_cart, checkout_body):
        client.post("/coupons", json={"code": "save10", "discount_type": "fixed", "discount_value": 10.0})
        fill_cart(unit_price=60.0, quantity=2)

        response = client.post("/checkout/quote", json=checkout_body(coupon_code="SAVE10"))

        assert response.status_code == 200
        data = response.json()
        assert data["subtotal"] == 120.0
        assert data["shipping"] == 0.0
        assert data["discount"] == 10.0
        assert data["total"] == 110.0
        assert data["delivery_area"] == "Inside Dhaka"
        assert data["coupon"]["code"] == "SAVE10"
        assert data["problems"] == []

    def test_unknown_coupon_is_reported(self, client, fill_cart, checkout_body):
        fill_cart()

        data = client.post("/checkout/quote", json=checkout_body(coupon_code="NOPE")).json()

        assert data["coupon"] is None
        assert data["coupon_rejection"]["reason"] == "invalid_code"
        assert data["coupon_rejection"]["code"] == "NOPE"
        assert data["total"] == 45.0

    def test_problems_listed(self, client, rate_id):
        data = client.post("/checkout/quote", json={"customer_id": "cust-api-001", "payment_method": "cheque"}).json()

        codes = {problem["code"] for problem in data["problems"]}
        assert codes == {
            "email_unverified",
            "address_required",
            "delivery_area_required",
            "unknown_payment_method",
            "empty_cart",
        }

    def test_quote_writes_nothing(self, client, fill_cart, checkout_body):
        fill_cart()
        client.post("/checkout/quote", json=checkout_body())
        assert current_domain.repository_for(Order).find_all() == []


class TestSubmitEndpoint:
    def test_cash_on_delivery(self, client, fill_cart, checkout_body):
        fill_cart()

        response = client.post("/checkout/submit", json=checkout_body())

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "settled"
        assert data["cart_cleared"] is True
        order = current_domain.repository_for(Order).get(data["order_id"])
        assert order.status == "confirmed"
        assert order.payment_status == "cod"
        assert order.total == 45.0
        assert _cart_size() == 0

    def test_rejected_without_address(self, client, fill_cart, checkout_body):
        fill_cart()

        data = client.post("/checkout/submit", json=checkout_body(address=None)).json()

        assert data["outcome"] == "rejected"
        assert [problem["code"] for problem in data["problems"]] == ["address_required"]
        assert _cart_size() == 1

    def test_redirect_gateway(self, client, fill_cart, checkout_body):
        fill_cart()

        data = client.post("/checkout/submit", json=checkout_body("bkash")).json()

        assert data["outcome"] == "redirect"
        assert data["redirect_url"].endswith(f"/bkash/checkout/{data['order_id']}")
        assert current_domain.repository_for(Order).get(data["order_id"]).status == "pending"

    def test_gateway_failure_keeps_cart(self, client, fill_cart, checkout_body):
        client.post("/gateways/configure", json={"kind": "nagad", "should_succeed": False})
        fill_cart()

        data = client.post("/checkout/submit", json=checkout_body("nagad")).json()

        assert data["outcome"] == "initiation_failed"
        assert data["error"]["kind"] == "gateway_initiation_failed"
        assert data["error"]["message"] == "Gateway unavailable"
        assert _cart_size() == 1

    def test_manual_payment(self, client, fill_cart, checkout_body):
        fill_cart()
        body = checkout_body(
            "manual_payment",
            manual_proof={"method_name": "bKash Personal", "account_number": "01700000000", "transaction_id": "TX9"},
        )

        data = client.post("/checkout/submit", json=body).json()

        assert data["outcome"] == "awaiting_review"
        assert current_domain.repository_for(Order).get(data["order_id"]).transaction_id == "TX9"

    def test_buy_now_item(self, client, fill_cart, checkout_body):
        fill_cart()
        body = checkout_body(
            buy_now=True,
            buy_now_item={"product_id": "prod-mug", "product_name": "Mug", "unit_price": 12.0, "quantity": 1},
        )

        data = client.post("/checkout/submit", json=body).json()

        order = current_domain.repository_for(Order).get(data["order_id"])
        assert [item.product_name for item in order.items] == ["Mug"]
        assert _cart_size() == 1

    def test_resubmission_with_same_key(self, client, fill_cart, checkout_body):
        fill_cart()
        body = checkout_body(idempotency_key="chk-api-1")

        first = client.post("/checkout/submit", json=body).json()
        fill_cart()
        second = client.post("/checkout/submit", json=body).json()

        assert first["order_id"] == second["order_id"]
        assert len(current_domain.repository_for(Order).find_all()) == 1
        assert second["cart_cleared"] is False
        assert _cart_size() == 1

    def test_resubmission_after_gateway_payment(self, client, fill_cart, checkout_body):
        fill_cart()
        body = checkout_body("bkash", idempotency_key="chk-api-2")
        order_id = client.post("/checkout/submit", json=body).json()["order_id"]
        callback = client.post(
            f"/orders/{order_id}/payment-callback",
            json={"success": True, "transaction_id": "BK-9"},
            headers={"X-Gateway-Signature": "test-signature"},
        )
        assert callback.json()["recorded"] is True
        fill_cart()

        second = client.post("/checkout/submit", json=body).json()

        assert second["outcome"] == "already_settled"
        assert second["order_id"] == order_id
        assert second["payment_status"] == "paid"
        assert second["redirect_url"] is None
        assert _cart_size() == 1


class TestCaptureEndpoint:
    def test_sdk_capture(self, client, fill_cart, checkout_body):
        fill_cart()
        issued = client.post("/checkout/submit", json=checkout_body("paypal")).json()
        assert issued["outcome"] == "sdk_handle"
        assert _cart_size() == 1

        response = client.post("/checkout/capture", json={"order_id": issued["order_id"], "handle": issued["handle"]})

        data = response.json()
        assert data["outcome"] == "captured"
        assert data["cart_cleared"] is True
        assert current_domain.repository_for(Order).get(issued["order_id"]).payment_status == "paid"
        assert _cart_size() == 0

    def test_capture_declined(self, client, fill_cart, checkout_body):
        client.post(
            "/gateways/configure",
            json={"kind": "paypal", "stage": "capture", "should_succeed": False, "failure_reason": "Card declined"},
        )
        fill_cart()
        issued = client.post("/checkout/submit", json=checkout_body("paypal")).json()

        data = client.post("/checkout/capture", json={"order_id": issued["order_id"], "handle": issued["handle"]}).json()

        assert data["outcome"] == "capture_failed"
        assert data["error"]["message"] == "Card declined"
        assert current_domain.repository_for(Order).get(issued["order_id"]).payment_status == "unpaid"

    def test_capture_of_cod_order(self, client, place_order):
        order_id = place_order("cod")
        response = client.post("/checkout/capture", json={"order_id": order_id, "handle": "fake"})
        assert response.status_code == 400
