"""
Order component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from src.adapters.clock import FixedClock
from src.components.orders import (
    Customer,
    GetOrderStatusInput,
    ListOrdersInput,
    Order,
    OrderStatus,
    UpdateOrderStatusInput,
    can_transition,
    get_status_display,
    mark_paid,
    run,
    summarize_orders,
)

NOW = datetime(2025, 5, 5, 9, 30, tzinfo=UTC)


class MockOrderRepo:
    def __init__(self) -> None:
        self.orders: dict[UUID, Order] = {}

    def get_by_id(self, order_id: UUID) -> Order | None:
        return self.orders.get(order_id)

    def get_by_payment_intent(self, payment_intent_id: str) -> Order | None:
        return next(
            (o for o in self.orders.values() if o.payment_intent_id == payment_intent_id), None
        )

    def list_orders(self, status=None, limit: int = 50, offset: int = 0) -> list[Order]:
        items = [o for o in self.orders.values() if status is None or o.status == status]
        return items[offset : offset + limit]

    def count(self, status=None) -> int:
        return len([o for o in self.orders.values() if status is None or o.status == status])

    def list_all(self) -> list[Order]:
        return list(self.orders.values())

    def save(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order


class MockCustomerRepo:
    def __init__(self) -> None:
        self.customers: dict[UUID, Customer] = {}

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        return self.customers.get(customer_id)

    def get_by_email(self, email: str) -> Customer | None:
        return next((c for c in self.customers.values() if c.email == email), None)

    def save(self, customer: Customer) -> Customer:
        self.customers[customer.id] = customer
        return customer


class RecordingNotifier:
    def __init__(self) -> None:
        self.shipped: list[UUID] = []

    def order_shipped(self, order: Order, customer: Customer) -> None:
        self.shipped.append(order.id)


def setup_order(status: OrderStatus = OrderStatus.PAID):
    orders, customers = MockOrderRepo(), MockCustomerRepo()
    customer = customers.save(Customer(id=uuid4(), email="ana@example.com", name="Ana Diaz"))
    order = orders.save(Order(id=uuid4(), customer_id=customer.id, status=status, total=5000))
    return orders, customers, order


class TestStatusMachine:
    def test_transitions(self) -> None:
        assert can_transition(OrderStatus.PENDING, OrderStatus.PAID)
        assert can_transition(OrderStatus.SHIPPED, OrderStatus.DELIVERED)
        assert not can_transition(OrderStatus.DELIVERED, OrderStatus.CANCELLED)
        assert not can_transition(OrderStatus.PENDING, OrderStatus.SHIPPED)

    def test_status_display(self) -> None:
        assert get_status_display("paid").label == "Payment Confirmed"
        assert get_status_display("on_hold").label == "on_hold"


class TestUpdateStatus:
    def test_ship_requires_tracking(self) -> None:
        orders, _, order = setup_order()
        result = run(
            UpdateOrderStatusInput(order_id=order.id, status="shipped"),
            repo=orders,
            time=FixedClock(NOW),
        )
        assert not result.success
        assert result.errors[0].code == "TRACKING_REQUIRED"

    def test_ship_notifies_customer(self) -> None:
        orders, customers, order = setup_order()
        notifier = RecordingNotifier()
        result = run(
            UpdateOrderStatusInput(
                order_id=order.id, status="shipped", tracking_number="1Z999", carrier="UPS"
            ),
            repo=orders,
            customer_repo=customers,
            time=FixedClock(NOW),
            notifier=notifier,
        )
        assert result.success
        assert order.shipped_at == NOW
        assert order.tracking_number == "1Z999"
        assert notifier.shipped == [order.id]

    def test_invalid_transition(self) -> None:
        orders, _, order = setup_order(OrderStatus.DELIVERED)
        result = run(
            UpdateOrderStatusInput(order_id=order.id, status="paid"),
            repo=orders,
            time=FixedClock(NOW),
        )
        assert result.errors[0].code == "INVALID_TRANSITION"

    def test_same_status_is_noop(self) -> None:
        orders, _, order = setup_order()
        result = run(
            UpdateOrderStatusInput(order_id=order.id, status="paid"),
            repo=orders,
            time=FixedClock(NOW),
        )
        assert result.success and result.unchanged

    def test_mark_paid_idempotent(self) -> None:
        orders, _, order = setup_order(OrderStatus.PENDING)
        assert mark_paid(order, orders, FixedClock(NOW)) is True
        assert mark_paid(order, orders, FixedClock(NOW)) is False
        assert order.paid_at == NOW


class TestPublicLookup:
    def test_email_must_match(self) -> None:
        orders, customers, order = setup_order()
        ok = run(
            GetOrderStatusInput(order_id=order.id, email=" ANA@example.com "),
            repo=orders,
            customer_repo=customers,
        )
        assert ok.success
        assert ok.label == "Payment Confirmed"

        wrong = run(
            GetOrderStatusInput(order_id=order.id, email="eve@example.com"),
            repo=orders,
            customer_repo=customers,
        )
        assert not wrong.success


class TestListingAndSummary:
    def test_filter_by_status(self) -> None:
        orders, _, _ = setup_order()
        orders.save(Order(id=uuid4(), customer_id=uuid4(), status=OrderStatus.PENDING))
        result = run(ListOrdersInput(status="pending"), repo=orders)
        assert result.total == 1

    def test_summary_counts_revenue(self) -> None:
        summary = summarize_orders(
            [
                Order(id=uuid4(), customer_id=uuid4(), status=OrderStatus.PAID, total=1000),
                Order(id=uuid4(), customer_id=uuid4(), status=OrderStatus.SHIPPED, total=2000),
                Order(id=uuid4(), customer_id=uuid4(), status=OrderStatus.PENDING, total=9999),
            ]
        )
        assert summary.revenue == 3000
        assert summary.by_status["pending"] == 1
        assert summary.by_status["cancelled"] == 0
