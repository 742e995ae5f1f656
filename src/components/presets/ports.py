"""
Presets component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.presets.models import PresetSnapshot


class SnapshotRepoPort(Protocol):
    def save(self, snapshot: PresetSnapshot) -> PresetSnapshot: ...

    def latest_active(self) -> PresetSnapshot | None:
        """Newest snapshot that has not been rolled back."""
        ...

    def list_recent(self, limit: int = 20) -> list[PresetSnapshot]: ...

    def mark_rolled_back(self, snapshot_id: UUID, at: datetime) -> None: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
