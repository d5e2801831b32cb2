"""Application tests for order listings and status counts."""

import json
from datetime import UTC, datetime, timedelta

from ordering.order.order import OrderStatus
from ordering.order.placement import PlaceOrder
from ordering.order.queries import (
    OrderFilter,
    count_by_status,
    find_orders,
    open_orders_for_customer,
    track_order,
)
from ordering.order.status import ChangeOrderStatus
from protean import current_domain


def _place(total=10.0, payment_method="bkash", customer_id="cust-001"):
    return current_domain.process(
        PlaceOrder(
            customer_id=customer_id,
            items=json.dumps([{"product_id": "p1", "product_name": "Item", "unit_price": total, "quantity": 1}]),
            shipping=json.dumps({"address": "1 Main St"}),
            subtotal=total,
            total=total,
            payment_method=payment_method,
            cash_on_delivery=payment_method == "cod",
        ),
        asynchronous=False,
    )


def _ids(orders):
    return {str(order.id) for order in orders}


class TestFindOrders:
    def test_all_newest_first(self):
        ids = {_place(), _place(), _place()}
        orders = find_orders()
        assert _ids(orders) == ids
        created = [order.created_at for order in orders]
        assert created == sorted(created, reverse=True)

    def test_by_status(self):
        pending = _place()
        confirmed = _place(payment_method="cod")
        assert _ids(find_orders(OrderFilter(status="pending"))) == {pending}
        assert _ids(find_orders(OrderFilter(status="confirmed"))) == {confirmed}

    def test_by_status_alias(self):
        order_id = _place()
        for step in ("confirmed", "processing", "send_to_courier"):
            current_domain.process(ChangeOrderStatus(order_id=order_id, new_status=step), asynchronous=False)
        _place()
        assert _ids(find_orders(OrderFilter(status="shipped"))) == {order_id}

    def test_by_customer(self):
        mine = {_place(customer_id="cust-777"), _place(customer_id="cust-777")}
        _place(customer_id="cust-other")
        assert _ids(find_orders(OrderFilter(customer_id="cust-777"))) == mine

    def test_listing_is_not_capped_at_one_page(self):
        ids = {_place() for _ in range(130)}
        orders = find_orders()
        assert len(orders) == 130
        assert _ids(orders) == ids

    def test_by_id_fragment(self):
        order_id = _place()
        _place()
        assert _ids(find_orders(OrderFilter(search=order_id[:8].upper()))) == {order_id}

    def test_by_total_range(self):
        small, medium, large = _place(10.0), _place(50.0), _place(200.0)
        assert _ids(find_orders(OrderFilter(min_total=20.0, max_total=100.0))) == {medium}
        assert _ids(find_orders(OrderFilter(min_total=50.0))) == {medium, large}
        assert small not in _ids(find_orders(OrderFilter(min_total=11.0)))

    def test_by_date_range(self):
        order_id = _place()
        now = datetime.now(UTC)
        assert _ids(find_orders(OrderFilter(created_from=now - timedelta(hours=1)))) == {order_id}
        assert find_orders(OrderFilter(created_to=now - timedelta(hours=1))) == []


class TestCountByStatus:
    def test_counts(self):
        _place()
        _place()
        _place(payment_method="cod")

        counts = count_by_status()

        assert counts["pending"] == 2
        assert counts["confirmed"] == 1
        assert counts["all"] == 3
        assert set(counts) == {status.value for status in OrderStatus} | {"all"}
        assert counts["delivered"] == 0

    def test_counts_past_one_page(self):
        for _ in range(130):
            _place()
        counts = count_by_status()
        assert counts["pending"] == 130
        assert counts["all"] == 130


class TestTrackOrder:
    def test_by_full_id(self):
        order_id = _place()
        _place()
        assert str(track_order(order_id).id) == order_id

    def test_full_id_ignores_case_and_whitespace(self):
        order_id = _place()
        assert str(track_order(f"  {order_id.upper()} ").id) == order_id

    def test_by_short_reference(self):
        order_id = _place()
        assert str(track_order(order_id[:8].upper()).id) == order_id

    def test_reference_must_be_long_enough(self):
        order_id = _place()
        assert track_order(order_id[:5]) is None

    def test_reference_must_be_a_prefix(self):
        order_id = _place()
        assert track_order(order_id[2:10]) is None

    def test_unknown_reference(self):
        _place()
        assert track_order("zzzzzzzz") is None
        assert track_order("") is None


class TestOpenOrdersForCustomer:
    def test_excludes_delivered_and_other_customers(self):
        open_order = _place(customer_id="cust-555")
        delivered = _place(customer_id="cust-555")
        for step in ("confirmed", "delivered"):
            current_domain.process(ChangeOrderStatus(order_id=delivered, new_status=step), asynchronous=False)
        _place(customer_id="cust-other")

        assert _ids(open_orders_for_customer("cust-555")) == {open_order}

    def test_customer_without_orders(self):
        assert open_orders_for_customer("cust-nobody") == []
