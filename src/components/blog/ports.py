"""
Blog component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.blog.models import Post, PostStatus


class PostRepoPort(Protocol):
    def get_by_id(self, post_id: UUID) -> Post | None: ...

    def get_by_slug(self, slug: str) -> Post | None: ...

    def list_posts(self, status: PostStatus | None = None) -> list[Post]: ...

    def save(self, post: Post) -> Post: ...

    def delete(self, post_id: UUID) -> bool: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
