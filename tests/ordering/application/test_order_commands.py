"""Application tests for placing orders, staff status changes, gateway callbacks and deletion."""

import json

import pytest
from ordering.order.deletion import DeleteOrder
from ordering.order.order import Order, OrderStatus, PaymentStatus
from ordering.order.payment import AssignGatewayReference, RecordPaymentResult
from ordering.order.placement import PlaceOrder
from ordering.order.status import ChangeOrderStatus, ChangePaymentStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _place(payment_method="bkash", idempotency_key=None, **overrides):
    kwargs = {
        "customer_id": "cust-001",
        "items": json.dumps(
            [
                {"product_id": "prod-tee", "product_name": "T-Shirt", "unit_price": 20.0, "quantity": 2},
                {"product_id": "prod-mug", "product_name": "Mug", "unit_price": 10.0, "quantity": 1},
            ]
        ),
        "shipping": json.dumps({"address": "House 12, Road 5", "delivery_area": "Inside Dhaka"}),
        "subtotal": 50.0,
        "shipping_charge": 5.0,
        "total": 55.0,
        "payment_method": payment_method,
        "cash_on_delivery": payment_method == "cod",
        "idempotency_key": idempotency_key,
    }
    kwargs.update(overrides)
    return current_domain.process(PlaceOrder(**kwargs), asynchronous=False)


def _change_status(order_id, new_status):
    return current_domain.process(
        ChangeOrderStatus(order_id=order_id, new_status=new_status, changed_by="staff@example.test"),
        asynchronous=False,
    )


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestPlaceOrder:
    def test_persists(self):
        order_id = _place()
        order = _order(order_id)
        assert order.total == 55.0
        assert order.shipping_charge == 5.0
        assert len(order.items) == 2

    def test_idempotency_key_reused(self):
        first = _place(idempotency_key="chk-123")
        second = _place(idempotency_key="chk-123")
        assert first == second
        assert len(current_domain.repository_for(Order).find_all()) == 1

    def test_orders_without_key_are_distinct(self):
        assert _place() != _place()


class TestChangeOrderStatus:
    def test_forward_step(self):
        order_id = _place()
        assert _change_status(order_id, "confirmed") == "confirmed"
        assert _order(order_id).status == OrderStatus.CONFIRMED.value

    def test_alias_accepted(self):
        order_id = _place()
        for step in ("confirmed", "processing", "shipped"):
            _change_status(order_id, step)
        assert _order(order_id).status == OrderStatus.SEND_TO_COURIER.value

    def test_illegal_transition_leaves_order_unchanged(self):
        order_id = _place()
        for step in ("confirmed", "processing", "send_to_courier", "delivered"):
            _change_status(order_id, step)

        with pytest.raises(ValidationError):
            _change_status(order_id, "pending")
        assert _order(order_id).status == OrderStatus.DELIVERED.value

    def test_unknown_order(self):
        with pytest.raises(ObjectNotFoundError):
            _change_status("missing-order", "confirmed")


class TestChangePaymentStatus:
    def test_staff_marks_cod_paid(self):
        order_id = _place(payment_method="cod")
        result = current_domain.process(
            ChangePaymentStatus(order_id=order_id, new_status="paid", transaction_id="CASH-001"),
            asynchronous=False,
        )
        assert result == "paid"
        order = _order(order_id)
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.transaction_id == "CASH-001"

    def test_illegal_payment_change(self):
        order_id = _place(payment_method="cod")
        with pytest.raises(ValidationError):
            current_domain.process(ChangePaymentStatus(order_id=order_id, new_status="refunded"), asynchronous=False)


class TestRecordPaymentResult:
    def test_success_then_duplicate(self):
        order_id = _place()
        first = current_domain.process(
            RecordPaymentResult(order_id=order_id, success=True, transaction_id="GW-1"),
            asynchronous=False,
        )
        second = current_domain.process(
            RecordPaymentResult(order_id=order_id, success=True, transaction_id="GW-1"),
            asynchronous=False,
        )
        assert first is True
        assert second is False
        order = _order(order_id)
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.status == OrderStatus.PENDING.value

    def test_failure_marks_unpaid(self):
        order_id = _place()
        current_domain.process(RecordPaymentResult(order_id=order_id, success=False), asynchronous=False)
        assert _order(order_id).payment_status == PaymentStatus.UNPAID.value


class TestAssignGatewayReference:
    def test_stores_handle(self):
        order_id = _place(payment_method="paypal")
        current_domain.process(
            AssignGatewayReference(order_id=order_id, transaction_id="PP-ORDER-1"),
            asynchronous=False,
        )
        assert _order(order_id).transaction_id == "PP-ORDER-1"


class TestDeleteOrder:
    def test_cancelled_order_is_deleted(self):
        order_id = _place()
        _change_status(order_id, "cancelled")

        assert current_domain.process(DeleteOrder(order_id=order_id), asynchronous=False) == order_id

        with pytest.raises(ObjectNotFoundError):
            _order(order_id)

    def test_open_order_cannot_be_deleted(self):
        order_id = _place()
        with pytest.raises(ValidationError) as exc:
            current_domain.process(DeleteOrder(order_id=order_id), asynchronous=False)
        assert "Only cancelled orders can be deleted" in exc.value.messages["status"][0]
        assert _order(order_id).status == OrderStatus.PENDING.value

    def test_deleting_one_order_leaves_the_others(self):
        kept, dropped = _place(), _place()
        _change_status(dropped, "cancelled")

        current_domain.process(DeleteOrder(order_id=dropped), asynchronous=False)

        remaining = current_domain.repository_for(Order).find_all()
        assert [order.id for order in remaining] == [kept]
        assert len(_order(kept).items) == 2
