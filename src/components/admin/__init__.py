"""
Admin component - dashboard summary.
"""

from .component import run, run_dashboard_summary
from .models import DashboardInput, DashboardSummary, RecentOrder

__all__ = [
    "run",
    "run_dashboard_summary",
    "DashboardInput",
    "DashboardSummary",
    "RecentOrder",
]
