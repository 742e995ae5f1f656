"""
Blog component models.

Posts are markdown bodies with tags and categories. Status machine:
- draft → published
- published → draft (unpublish)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class PostStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


VALID_TRANSITIONS: dict[PostStatus, set[PostStatus]] = {
    PostStatus.DRAFT: {PostStatus.PUBLISHED},
    PostStatus.PUBLISHED: {PostStatus.DRAFT},
}


def can_transition(from_status: PostStatus, to_status: PostStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, set())


@dataclass
class Post:
    id: UUID
    slug: str
    title: str
    excerpt: str = ""
    body: str = ""
    cover_image: str | None = None
    author_name: str | None = None
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    featured: bool = False
    published_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "slug",
        "title",
        "excerpt",
        "body",
        "cover_image",
        "author_name",
        "tags",
        "categories",
        "featured",
    }
)


# --- Inputs ---


@dataclass(frozen=True)
class CreatePostInput:
    title: str
    slug: str
    excerpt: str = ""
    body: str = ""
    cover_image: str | None = None
    author_name: str | None = None
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    featured: bool = False


@dataclass(frozen=True)
class UpdatePostInput:
    post_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class PublishPostInput:
    post_id: UUID
    to_status: str
    actor_id: UUID | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class DeletePostInput:
    post_id: UUID


@dataclass(frozen=True)
class ListPublicPostsInput:
    q: str | None = None
    tag: str | None = None
    category: str | None = None
    page: int = 1
    page_size: int = 12


@dataclass(frozen=True)
class GetPublicPostInput:
    slug: str


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class PostOutput:
    success: bool
    post: Post | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class PostListOutput:
    posts: list[Post]
    total: int
    page: int
    page_size: int
    total_pages: int


@dataclass(frozen=True)
class TermCount:
    name: str
    count: int
