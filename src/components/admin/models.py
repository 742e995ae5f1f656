"""
Admin component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.components.capi.models import QueueStats
from src.components.newsletter.models import SubscriberCounts


@dataclass(frozen=True)
class DashboardInput:
    recent_limit: int = 5


@dataclass(frozen=True)
class RecentOrder:
    id: str
    customer_id: str
    total: int
    status: str
    created_at: str


@dataclass(frozen=True)
class DashboardSummary:
    """Money fields are in cents."""

    revenue: int
    order_count: int
    orders_by_status: dict[str, int]
    average_order_value: int
    pending_referrals: int
    pending_commission: int
    subscribers: SubscriberCounts
    capi: QueueStats | None = None
    recent_orders: list[RecentOrder] = field(default_factory=list)
