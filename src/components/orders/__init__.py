"""
Order component.

Order lifecycle (pending → paid → shipped → delivered, or cancelled),
customer-facing status wording and dashboard summaries.
"""

from src.components.orders.component import (
    get_status_display,
    mark_paid,
    run,
    run_get_order_status,
    run_list_orders,
    run_update_order_status,
    summarize_orders,
)
from src.components.orders.models import (
    REVENUE_STATUSES,
    STATUS_DISPLAY,
    VALID_TRANSITIONS,
    Customer,
    GetOrderStatusInput,
    ListOrdersInput,
    ListOrdersOutput,
    Order,
    OrderItem,
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
)

__all__ = [
    "run",
    "run_update_order_status",
    "run_get_order_status",
    "run_list_orders",
    "get_status_display",
    "mark_paid",
    "summarize_orders",
    "Customer",
    "Order",
    "OrderItem",
    "OrderStatus",
    "StatusDisplay",
    "STATUS_DISPLAY",
    "REVENUE_STATUSES",
    "VALID_TRANSITIONS",
    "can_transition",
    "UpdateOrderStatusInput",
    "GetOrderStatusInput",
    "ListOrdersInput",
    "OrderOutput",
    "OrderStatusOutput",
    "ListOrdersOutput",
    "OrderSummary",
    "ValidationError",
    "OrderRepoPort",
    "CustomerRepoPort",
    "OrderNotifierPort",
]
