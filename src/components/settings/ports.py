"""
Settings component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.components.settings.models import SiteSettings


class SettingsRepoPort(Protocol):
    def get(self) -> SiteSettings | None:
        """Current settings, or None if never saved."""
        ...

    def save(self, settings: SiteSettings) -> SiteSettings:
        """Upsert the single settings row."""
        ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
