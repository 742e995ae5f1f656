"""
Order component.

Order status transitions, the public order-status lookup and dashboard
summaries.
"""

from __future__ import annotations

import logging
from collections import Counter

from src.components.orders.models import (
    REVENUE_STATUSES,
    STATUS_DISPLAY,
    GetOrderStatusInput,
    ListOrdersInput,
    ListOrdersOutput,
    Order,
    OrderOutput,
    OrderStatus,
    OrderStatusOutput,
    OrderSummary,
    StatusDisplay,
    UpdateOrderStatusInput,
    ValidationError,
    can_transition,
)
from src.components.orders.ports import (
    CustomerRepoPort,
    OrderNotifierPort,
    OrderRepoPort,
    TimePort,
)

logger = logging.getLogger(__name__)


def get_status_display(status: str) -> StatusDisplay:
    """Label and subtext for a status; unknown statuses echo the raw value."""
    return STATUS_DISPLAY.get(status, StatusDisplay(status, ""))


def summarize_orders(orders: list[Order]) -> OrderSummary:
    counts = Counter(o.status.value for o in orders)
    revenue = sum(o.total for o in orders if o.status in REVENUE_STATUSES)
    return OrderSummary(
        revenue=revenue,
        order_count=len(orders),
        by_status={s.value: counts.get(s.value, 0) for s in OrderStatus},
    )


def mark_paid(order: Order, repo: OrderRepoPort, time: TimePort) -> bool:
    """
    Move a pending order to paid.

    Returns False when the order was already paid (or further along), so
    payment webhooks can be replayed safely.
    """
    if order.status != OrderStatus.PENDING:
        return False
    now = time.now_utc()
    order.status = OrderStatus.PAID
    order.paid_at = now
    order.updated_at = now
    repo.save(order)
    logger.info(f"Order {order.id} paid")
    return True


# --- Component Entry Points ---


def run_update_order_status(
    inp: UpdateOrderStatusInput,
    repo: OrderRepoPort,
    time: TimePort,
    customer_repo: CustomerRepoPort | None = None,
    notifier: OrderNotifierPort | None = None,
) -> OrderOutput:
    order = repo.get_by_id(inp.order_id)
    if order is None:
        return OrderOutput(success=False, errors=[ValidationError("NOT_FOUND", "Order not found")])

    try:
        target = OrderStatus(inp.status)
    except ValueError:
        return OrderOutput(
            success=False,
            errors=[ValidationError("INVALID_STATUS", f"Unknown status: {inp.status}", "status")],
        )

    if target == order.status:
        return OrderOutput(success=True, order=order, unchanged=True)

    if not can_transition(order.status, target):
        return OrderOutput(
            success=False,
            errors=[
                ValidationError(
                    "INVALID_TRANSITION",
                    f"Cannot move order from {order.status.value} to {target.value}",
                    "status",
                )
            ],
        )

    tracking = (inp.tracking_number or "").strip()
    if target == OrderStatus.SHIPPED and not tracking:
        return OrderOutput(
            success=False,
            errors=[
                ValidationError(
                    "TRACKING_REQUIRED",
                    "A tracking number is required to ship an order",
                    "tracking_number",
                )
            ],
        )

    now = time.now_utc()
    order.status = target
    order.updated_at = now
    if target == OrderStatus.PAID:
        order.paid_at = now
    elif target == OrderStatus.SHIPPED:
        order.tracking_number = tracking
        order.carrier = inp.carrier
        order.shipped_at = now
    elif target == OrderStatus.DELIVERED:
        order.delivered_at = now
    elif target == OrderStatus.CANCELLED:
        order.cancelled_at = now

    repo.save(order)
    logger.info(f"Order {order.id} moved to {target.value}")

    if target == OrderStatus.SHIPPED and notifier and customer_repo:
        customer = customer_repo.get_by_id(order.customer_id)
        if customer:
            notifier.order_shipped(order, customer)

    return OrderOutput(success=True, order=order)


def run_get_order_status(
    inp: GetOrderStatusInput,
    repo: OrderRepoPort,
    customer_repo: CustomerRepoPort,
) -> OrderStatusOutput:
    """Public lookup. A wrong email looks the same as a missing order."""
    not_found = OrderStatusOutput(
        success=False, errors=[ValidationError("NOT_FOUND", "Order not found")]
    )

    order = repo.get_by_id(inp.order_id)
    if order is None:
        return not_found

    customer = customer_repo.get_by_id(order.customer_id)
    if customer is None or customer.email != inp.email.strip().lower():
        return not_found

    display = get_status_display(order.status.value)
    return OrderStatusOutput(
        success=True, order=order, label=display.label, subtext=display.subtext
    )


def run_list_orders(inp: ListOrdersInput, repo: OrderRepoPort) -> ListOrdersOutput:
    status = None
    if inp.status:
        try:
            status = OrderStatus(inp.status)
        except ValueError:
            return ListOrdersOutput(orders=[], total=0)
    orders = repo.list_orders(status=status, limit=inp.limit, offset=inp.offset)
    return ListOrdersOutput(orders=orders, total=repo.count(status))


def run(
    inp: UpdateOrderStatusInput | GetOrderStatusInput | ListOrdersInput,
    *,
    repo: OrderRepoPort,
    customer_repo: CustomerRepoPort | None = None,
    time: TimePort | None = None,
    notifier: OrderNotifierPort | None = None,
) -> OrderOutput | OrderStatusOutput | ListOrdersOutput:
    """Order component entry point."""
    if isinstance(inp, UpdateOrderStatusInput):
        assert time is not None
        return run_update_order_status(inp, repo, time, customer_repo, notifier)
    if isinstance(inp, GetOrderStatusInput):
        assert customer_repo is not None
        return run_get_order_status(inp, repo, customer_repo)
    if isinstance(inp, ListOrdersInput):
        return run_list_orders(inp, repo)
    raise ValueError(f"Unknown input type: {type(inp)}")
