"""
Admin component - dashboard summary figures.
"""

from __future__ import annotations

from src.components.admin.models import DashboardInput, DashboardSummary, RecentOrder
from src.components.affiliates.models import ReferralStatus
from src.components.affiliates.ports import AffiliateRepoPort
from src.components.capi.component import queue_stats
from src.components.capi.ports import CapiEventRepoPort
from src.components.newsletter.component import subscriber_counts
from src.components.newsletter.ports import NewsletterRepoPort
from src.components.orders.component import summarize_orders
from src.components.orders.models import REVENUE_STATUSES
from src.components.orders.ports import OrderRepoPort, TimePort


def run_dashboard_summary(
    inp: DashboardInput,
    *,
    orders: OrderRepoPort,
    affiliates: AffiliateRepoPort,
    newsletter: NewsletterRepoPort,
    time: TimePort,
    capi: CapiEventRepoPort | None = None,
) -> DashboardSummary:
    all_orders = orders.list_all()
    summary = summarize_orders(all_orders)
    paid_count = sum(1 for o in all_orders if o.status in REVENUE_STATUSES)
    pending = affiliates.list_referrals(status=ReferralStatus.PENDING)

    recent = sorted(all_orders, key=lambda o: o.created_at, reverse=True)[: max(0, inp.recent_limit)]
    return DashboardSummary(
        revenue=summary.revenue,
        order_count=summary.order_count,
        orders_by_status=summary.by_status,
        average_order_value=summary.revenue // paid_count if paid_count else 0,
        pending_referrals=len(pending),
        pending_commission=sum(r.commission_amount for r in pending),
        subscribers=subscriber_counts(newsletter),
        capi=queue_stats(capi, time) if capi is not None else None,
        recent_orders=[
            RecentOrder(
                id=str(o.id),
                customer_id=str(o.customer_id),
                total=o.total,
                status=o.status.value,
                created_at=o.created_at.isoformat(),
            )
            for o in recent
        ],
    )


def run(
    inp: DashboardInput,
    *,
    orders: OrderRepoPort,
    affiliates: AffiliateRepoPort,
    newsletter: NewsletterRepoPort,
    time: TimePort,
    capi: CapiEventRepoPort | None = None,
) -> DashboardSummary:
    """Admin component entry point."""
    if isinstance(inp, DashboardInput):
        return run_dashboard_summary(
            inp, orders=orders, affiliates=affiliates, newsletter=newsletter, time=time, capi=capi
        )
    raise ValueError(f"Unknown input type: {type(inp)}")
