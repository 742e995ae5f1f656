"""
Order component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.orders.models import Customer, Order, OrderStatus


class OrderRepoPort(Protocol):
    def get_by_id(self, order_id: UUID) -> Order | None:
        """Get order with its items."""
        ...

    def get_by_payment_intent(self, payment_intent_id: str) -> Order | None: ...

    def list_orders(
        self, status: OrderStatus | None = None, limit: int = 50, offset: int = 0
    ) -> list[Order]: ...

    def count(self, status: OrderStatus | None = None) -> int: ...

    def list_all(self) -> list[Order]: ...

    def save(self, order: Order) -> Order:
        """Insert or update order and replace its items."""
        ...


class CustomerRepoPort(Protocol):
    def get_by_id(self, customer_id: UUID) -> Customer | None: ...

    def get_by_email(self, email: str) -> Customer | None: ...

    def save(self, customer: Customer) -> Customer: ...


class OrderNotifierPort(Protocol):
    """Sends customer emails on order lifecycle events."""

    def order_shipped(self, order: Order, customer: Customer) -> None: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
