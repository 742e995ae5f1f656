"""
Catalog component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.catalog.models import Product


class ProductRepoPort(Protocol):
    """Product persistence interface."""

    def get_by_id(self, product_id: UUID) -> Product | None: ...

    def get_by_slug(self, slug: str) -> Product | None: ...

    def get_by_sku(self, sku: str) -> Product | None: ...

    def get_many(self, product_ids: list[UUID]) -> list[Product]: ...

    def list_all(self) -> list[Product]: ...

    def save(self, product: Product) -> Product: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
