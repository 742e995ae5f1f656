"""
Consent component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.components.consent.models import AnalyticsEvent


class EventRepoPort(Protocol):
    def save(self, event: AnalyticsEvent) -> AnalyticsEvent: ...

    def has_event_id(self, event_id: str, since: datetime) -> bool:
        """True if an event with this client id was stored at or after `since`."""
        ...

    def has_transaction(self, transaction_id: str) -> bool: ...

    def count_by_name(
        self, since: datetime | None = None, include_bots: bool = False
    ) -> dict[str, int]: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
