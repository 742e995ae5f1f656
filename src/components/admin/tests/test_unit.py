"""
Unit tests for the admin dashboard summary.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.adapters.clock import FixedClock
from src.components.admin import DashboardInput, run, run_dashboard_summary
from src.components.affiliates.models import Referral, ReferralStatus
from src.components.capi.models import CapiEvent, CapiEventStatus
from src.components.newsletter.models import SubscriberStatus
from src.components.orders.models import Order, OrderStatus

NOW = datetime(2026, 5, 1, 10, 0, tzinfo=UTC)


class MockOrderRepo:
    def __init__(self, orders: list[Order]) -> None:
        self.orders = orders

    def list_all(self) -> list[Order]:
        return list(self.orders)


class MockAffiliateRepo:
    def __init__(self, referrals: list[Referral]) -> None:
        self.referrals = referrals

    def list_referrals(self, affiliate_id=None, status: ReferralStatus | None = None) -> list[Referral]:
        return [r for r in self.referrals if status is None or r.status == status]


class MockNewsletterRepo:
    def __init__(self, counts: dict[SubscriberStatus, int]) -> None:
        self.counts = counts

    def count_by_status(self, status: SubscriberStatus | None = None) -> int:
        if status is None:
            return sum(self.counts.values())
        return self.counts.get(status, 0)


class MockCapiRepo:
    def __init__(self, events: list[CapiEvent]) -> None:
        self.events = events

    def count_by_status(self) -> dict[CapiEventStatus, int]:
        counts: dict[CapiEventStatus, int] = {}
        for e in self.events:
            counts[e.status] = counts.get(e.status, 0) + 1
        return counts

    def oldest_queued_at(self) -> datetime | None:
        queued = [e.created_at for e in self.events if e.status == CapiEventStatus.QUEUED]
        return min(queued) if queued else None

    def last_sent_at(self) -> datetime | None:
        return None


def _order(status: OrderStatus, total: int, minutes_ago: int = 0) -> Order:
    return Order(
        id=uuid4(),
        customer_id=uuid4(),
        status=status,
        total=total,
        created_at=NOW - timedelta(minutes=minutes_ago),
    )


def _referral(status: ReferralStatus, commission: int) -> Referral:
    return Referral(
        id=uuid4(),
        affiliate_id=uuid4(),
        order_id=uuid4(),
        order_amount=commission * 10,
        commission_amount=commission,
        commission_rate=10,
        status=status,
    )


def _summary(orders: list[Order], referrals=(), capi_events=None, recent_limit: int = 5):
    return run_dashboard_summary(
        DashboardInput(recent_limit=recent_limit),
        orders=MockOrderRepo(orders),
        affiliates=MockAffiliateRepo(list(referrals)),
        newsletter=MockNewsletterRepo(
            {SubscriberStatus.CONFIRMED: 4, SubscriberStatus.PENDING: 2}
        ),
        time=FixedClock(NOW),
        capi=MockCapiRepo(capi_events) if capi_events is not None else None,
    )


def test_revenue_counts_paid_and_later() -> None:
    out = _summary(
        [
            _order(OrderStatus.PAID, 10000),
            _order(OrderStatus.SHIPPED, 20000),
            _order(OrderStatus.DELIVERED, 30000),
            _order(OrderStatus.PENDING, 99999),
            _order(OrderStatus.CANCELLED, 50000),
        ]
    )
    assert out.revenue == 60000
    assert out.order_count == 5
    assert out.average_order_value == 20000
    assert out.orders_by_status["pending"] == 1
    assert out.orders_by_status["cancelled"] == 1


def test_empty_store() -> None:
    out = _summary([])
    assert out.revenue == 0
    assert out.average_order_value == 0
    assert out.orders_by_status == {s.value: 0 for s in OrderStatus}
    assert out.recent_orders == []
    assert out.capi is None


def test_pending_referrals() -> None:
    out = _summary(
        [],
        referrals=[
            _referral(ReferralStatus.PENDING, 500),
            _referral(ReferralStatus.PENDING, 700),
            _referral(ReferralStatus.APPROVED, 900),
        ],
    )
    assert out.pending_referrals == 2
    assert out.pending_commission == 1200


def test_subscriber_counts() -> None:
    out = _summary([])
    assert out.subscribers.confirmed == 4
    assert out.subscribers.pending == 2
    assert out.subscribers.total == 6


def test_capi_stats_included() -> None:
    events = [
        CapiEvent(
            id=uuid4(),
            event_key=f"purchase:{i}",
            event_name="Purchase",
            payload={},
            status=status,
            created_at=NOW - timedelta(minutes=2),
        )
        for i, status in enumerate([CapiEventStatus.QUEUED, CapiEventStatus.SENT, CapiEventStatus.SENT])
    ]
    out = _summary([], capi_events=events)
    assert out.capi.queued == 1
    assert out.capi.sent == 2
    assert out.capi.oldest_queued_age_seconds == 120


def test_recent_orders_newest_first() -> None:
    orders = [_order(OrderStatus.PAID, 100, minutes_ago=m) for m in (30, 10, 20)]
    out = _summary(orders, recent_limit=2)
    assert [o.id for o in out.recent_orders] == [str(orders[1].id), str(orders[2].id)]


def test_run_unknown_input() -> None:
    with pytest.raises(ValueError, match="Unknown input type"):
        run(
            object(),  # type: ignore[arg-type]
            orders=MockOrderRepo([]),
            affiliates=MockAffiliateRepo([]),
            newsletter=MockNewsletterRepo({}),
            time=FixedClock(NOW),
        )
