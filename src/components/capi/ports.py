"""
Meta Conversions API component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from src.components.capi.models import CapiEvent, CapiEventStatus


class CapiEventRepoPort(Protocol):
    def get_by_key(self, event_key: str) -> CapiEvent | None: ...

    def save(self, event: CapiEvent) -> CapiEvent:
        """Insert or update by id."""
        ...

    def list_due(self, now: datetime, limit: int) -> list[CapiEvent]:
        """Queued events and retries whose next_attempt_at has passed, oldest first."""
        ...

    def count_by_status(self) -> dict[CapiEventStatus, int]: ...

    def oldest_queued_at(self) -> datetime | None: ...

    def last_sent_at(self) -> datetime | None: ...


class MetaEventSenderPort(Protocol):
    def send_events(
        self,
        pixel_id: str,
        events: list[dict[str, Any]],
        test_event_code: str | None = None,
    ) -> dict[str, Any]:
        """POST events to the pixel; raises MetaGraphError on failure."""
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
