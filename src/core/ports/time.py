"""
Time port.

All timestamps are stored and compared in UTC. Components receive a
TimePort so sale windows, invite expiry, approval periods and retry
schedules can be tested with a fixed clock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TimePort(Protocol):
    """Time source interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

    def is_past_or_now(self, utc_dt: datetime) -> bool:
        """Check if datetime is at or before now."""
        ...
