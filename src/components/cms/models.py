"""
CMS component models.

Pages are built from typed blocks (see blocks.py).

State transitions:
- draft → published, draft → scheduled
- scheduled → published, scheduled → draft
- published → draft (unpublish)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class PageStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    SCHEDULED = "scheduled"


class PageType(Enum):
    HOME = "home"
    SHOP = "shop"
    LANDING = "landing"
    PAGE = "page"


VALID_TRANSITIONS: dict[PageStatus, set[PageStatus]] = {
    PageStatus.DRAFT: {PageStatus.PUBLISHED, PageStatus.SCHEDULED},
    PageStatus.SCHEDULED: {PageStatus.PUBLISHED, PageStatus.DRAFT},
    PageStatus.PUBLISHED: {PageStatus.DRAFT},
}


def can_transition(from_status: PageStatus, to_status: PageStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, set())


@dataclass
class Page:
    id: UUID
    slug: str
    title: str
    page_type: PageType = PageType.PAGE
    content_json: dict[str, Any] = field(default_factory=lambda: {"version": 1, "blocks": []})
    status: PageStatus = PageStatus.DRAFT
    template: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    og_image: str | None = None
    show_in_nav: bool = False
    nav_order: int = 0
    is_home: bool = False
    is_shop: bool = False
    published_at: datetime | None = None
    scheduled_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "slug",
        "title",
        "page_type",
        "content_json",
        "template",
        "seo_title",
        "seo_description",
        "og_image",
        "show_in_nav",
        "nav_order",
    }
)


@dataclass(frozen=True)
class NavLink:
    label: str
    href: str


@dataclass(frozen=True)
class CmsConfig:
    """Limits from the blocks and store sections of the rules file."""

    max_blocks: int = 60
    allowed_types: tuple[str, ...] | None = None
    reserved_slugs: tuple[str, ...] = ()


# --- Inputs ---


@dataclass(frozen=True)
class CreatePageInput:
    title: str
    slug: str
    page_type: str = "page"
    content_json: Any = None
    template: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    show_in_nav: bool = False
    nav_order: int = 0
    actor_id: UUID | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class UpdatePageInput:
    page_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class TransitionPageInput:
    page_id: UUID
    to_status: str
    publish_at: datetime | None = None
    actor_id: UUID | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class SetSpecialPageInput:
    """Mark a page as the home page or the shop page."""

    page_id: UUID
    role: str  # "home" | "shop"


@dataclass(frozen=True)
class DeletePageInput:
    page_id: UUID
    actor_id: UUID | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class GetPublicPageInput:
    slug: str


@dataclass(frozen=True)
class GetHomePageInput:
    pass


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class PageOutput:
    success: bool
    page: Page | None = None
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
