"""
Themes component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.components.themes.models import ThemePack


class ThemeRepoPort(Protocol):
    """Custom theme packs. Built-in packs live in code."""

    def get(self, theme_id: str) -> ThemePack | None: ...

    def list_all(self) -> list[ThemePack]: ...

    def save(self, theme: ThemePack) -> ThemePack: ...

    def delete(self, theme_id: str) -> bool: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
