"""
CMS component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.cms.models import Page, PageStatus


class PageRepoPort(Protocol):
    def get_by_id(self, page_id: UUID) -> Page | None: ...

    def get_by_slug(self, slug: str) -> Page | None: ...

    def get_home(self) -> Page | None: ...

    def get_shop(self) -> Page | None: ...

    def list_pages(self, status: PageStatus | None = None) -> list[Page]: ...

    def save(self, page: Page) -> Page: ...

    def delete(self, page_id: UUID) -> bool: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
