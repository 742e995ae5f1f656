"""
Order component models.

State machine (Order):
- pending → paid (payment confirmed)
- pending → cancelled
- paid → shipped (requires tracking number)
- paid → cancelled
- shipped → delivered
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


VALID_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Statuses that count as collected revenue
REVENUE_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED}
)


def can_transition(from_status: OrderStatus, to_status: OrderStatus) -> bool:
    """Check if an order status change is allowed."""
    return to_status in VALID_TRANSITIONS.get(from_status, set())


@dataclass(frozen=True)
class StatusDisplay:
    """Customer-facing wording for an order status."""

    label: str
    subtext: str


STATUS_DISPLAY: dict[str, StatusDisplay] = {
    "pending": StatusDisplay(
        "Order Received", "We've received your order and are processing it."
    ),
    "paid": StatusDisplay(
        "Payment Confirmed", "Your payment was successful. We're preparing your order."
    ),
    "shipped": StatusDisplay("Shipped", "Your order is on its way."),
    "delivered": StatusDisplay("Delivered", "Your order has been delivered. Enjoy!"),
    "cancelled": StatusDisplay("Cancelled", "This order has been cancelled."),
}


# --- Entities ---


@dataclass
class Customer:
    id: UUID
    email: str  # normalized lowercase
    name: str
    phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def first_name(self) -> str:
        parts = self.name.split()
        return parts[0] if parts else ""

    @property
    def last_name(self) -> str:
        parts = self.name.split()
        return " ".join(parts[1:]) if len(parts) > 1 else ""


@dataclass
class OrderItem:
    id: UUID
    order_id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    unit_price: int  # cents, after product-level discounts
    sku: str | None = None

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class Order:
    id: UUID
    customer_id: UUID
    status: OrderStatus = OrderStatus.PENDING
    items: list[OrderItem] = field(default_factory=list)
    subtotal: int = 0
    affiliate_discount: int = 0
    coupon_discount: int = 0
    tax_amount: int = 0
    shipping_amount: int = 0
    total: int = 0
    currency: str = "USD"
    affiliate_id: UUID | None = None
    affiliate_code: str | None = None
    affiliate_session_id: str | None = None
    coupon_code: str | None = None
    payment_intent_id: str | None = None
    marketing_consent_granted: bool = False
    client_ip: str | None = None
    client_user_agent: str | None = None
    fbp: str | None = None
    fbc: str | None = None
    tracking_number: str | None = None
    carrier: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    paid_at: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


# --- Inputs ---


@dataclass(frozen=True)
class UpdateOrderStatusInput:
    order_id: UUID
    status: str
    tracking_number: str | None = None
    carrier: str | None = None


@dataclass(frozen=True)
class GetOrderStatusInput:
    """Public order lookup; the email must match the order's customer."""

    order_id: UUID
    email: str


@dataclass(frozen=True)
class ListOrdersInput:
    status: str | None = None
    limit: int = 50
    offset: int = 0


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class OrderOutput:
    success: bool
    order: Order | None = None
    errors: list[ValidationError] = field(default_factory=list)
    unchanged: bool = False  # Same status requested again


@dataclass(frozen=True)
class OrderStatusOutput:
    success: bool
    order: Order | None = None
    label: str = ""
    subtext: str = ""
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ListOrdersOutput:
    orders: list[Order]
    total: int


@dataclass(frozen=True)
class OrderSummary:
    """Dashboard figures."""

    revenue: int
    order_count: int
    by_status: dict[str, int]
