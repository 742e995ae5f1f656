"""
Refund component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.orders.models import Order
from src.components.refunds.models import Refund


class RefundRepoPort(Protocol):
    def get_by_id(self, refund_id: UUID) -> Refund | None: ...

    def get_by_gateway_id(self, gateway_refund_id: str) -> Refund | None: ...

    def list_for_order(self, order_id: UUID) -> list[Refund]: ...

    def save(self, refund: Refund) -> Refund: ...


class RefundEventsPort(Protocol):
    """Follow-up work for a refund that reached `processed` (CAPI event, customer email)."""

    def refund_processed(self, refund: Refund, order: Order) -> None: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
