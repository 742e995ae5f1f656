"""
CMS component - page lifecycle and navigation.

State machine:
- draft → scheduled (scheduled_at in the future)
- scheduled → draft (unschedule)
- draft|scheduled → published (publish now, or publish_due once scheduled_at passes)
- published → draft (unpublish)

Guards:
- publish requires valid block content
- at most one page is flagged home, and at most one shop
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from src.components.audit.component import AuditRecorder
from src.components.cms.blocks import normalize_content, validate_content
from src.components.cms.models import (
    UPDATABLE_FIELDS,
    CmsConfig,
    CreatePageInput,
    DeletePageInput,
    GetHomePageInput,
    GetPublicPageInput,
    NavLink,
    Page,
    PageOutput,
    PageStatus,
    PageType,
    SetSpecialPageInput,
    TransitionPageInput,
    UpdatePageInput,
    ValidationError,
    can_transition,
)
from src.components.cms.ports import PageRepoPort, TimePort

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
MAX_TITLE = 200
SCHEDULE_GRACE_SECONDS = 10


def _not_found(page_id: Any) -> PageOutput:
    return PageOutput(
        success=False,
        errors=[ValidationError("not_found", f"Page {page_id} not found")],
    )


def _validate_slug(
    slug: str,
    repo: PageRepoPort,
    config: CmsConfig,
    current: Page | None = None,
) -> list[ValidationError]:
    if not slug or not slug.strip():
        return [ValidationError("slug_required", "Slug is required", "slug")]
    if not SLUG_PATTERN.match(slug):
        return [
            ValidationError(
                "slug_invalid",
                "Slug must contain only lowercase letters, numbers, and hyphens",
                "slug",
            )
        ]
    if slug in config.reserved_slugs:
        return [ValidationError("slug_reserved", f"Slug '{slug}' is reserved", "slug")]
    existing = repo.get_by_slug(slug)
    if existing is not None and (current is None or existing.id != current.id):
        return [ValidationError("slug_taken", f"Slug '{slug}' is already in use", "slug")]
    return []


def _validate_title(title: str) -> list[ValidationError]:
    if not title or not title.strip():
        return [ValidationError("title_required", "Title is required", "title")]
    if len(title) > MAX_TITLE:
        return [
            ValidationError("title_too_long", f"Title must not exceed {MAX_TITLE} characters", "title")
        ]
    return []


def _parse_page_type(value: Any) -> PageType | None:
    if isinstance(value, PageType):
        return value
    try:
        return PageType(value)
    except ValueError:
        return None


def _validate_schedule(scheduled_at: datetime | None, now: datetime) -> list[ValidationError]:
    if scheduled_at is None:
        return [
            ValidationError("publish_at_required", "publish_at is required for scheduling", "publish_at")
        ]
    if scheduled_at.tzinfo is None:
        scheduled_at = scheduled_at.replace(tzinfo=UTC)
    if scheduled_at < now + timedelta(seconds=SCHEDULE_GRACE_SECONDS):
        return [
            ValidationError(
                "publish_at_past",
                f"publish_at must be at least {SCHEDULE_GRACE_SECONDS} seconds in the future",
                "publish_at",
            )
        ]
    return []


def _content_errors(content: dict[str, Any], config: CmsConfig) -> list[ValidationError]:
    return validate_content(
        content, max_blocks=config.max_blocks, allowed_types=config.allowed_types
    )


# --- Component Entry Points ---


def run_create_page(
    inp: CreatePageInput,
    *,
    repo: PageRepoPort,
    time: TimePort,
    config: CmsConfig | None = None,
    audit: AuditRecorder | None = None,
) -> PageOutput:
    config = config or CmsConfig()
    errors = _validate_title(inp.title) + _validate_slug(inp.slug, repo, config)

    page_type = _parse_page_type(inp.page_type)
    if page_type is None:
        errors.append(
            ValidationError("invalid_page_type", f"Unknown page type: {inp.page_type}", "page_type")
        )

    normalized = normalize_content(inp.content_json)
    errors.extend(_content_errors(normalized.content, config))
    if errors:
        return PageOutput(success=False, errors=errors, warnings=normalized.warnings)

    now = time.now_utc()
    page = Page(
        id=uuid4(),
        slug=inp.slug,
        title=inp.title.strip(),
        page_type=page_type or PageType.PAGE,
        content_json=normalized.content,
        template=inp.template,
        seo_title=inp.seo_title,
        seo_description=inp.seo_description,
        show_in_nav=inp.show_in_nav,
        nav_order=inp.nav_order,
        created_at=now,
        updated_at=now,
    )
    saved = repo.save(page)
    logger.info(f"Page created: {saved.slug}")
    if audit is not None:
        audit.record(
            "create",
            "page",
            str(saved.id),
            description=f"Page '{saved.title}' created",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
        )
    return PageOutput(success=True, page=saved, warnings=normalized.warnings)


def run_update_page(
    inp: UpdatePageInput,
    *,
    repo: PageRepoPort,
    time: TimePort,
    config: CmsConfig | None = None,
) -> PageOutput:
    config = config or CmsConfig()
    page = repo.get_by_id(inp.page_id)
    if page is None:
        return _not_found(inp.page_id)

    errors: list[ValidationError] = []
    unknown = sorted(set(inp.updates) - UPDATABLE_FIELDS)
    for name in unknown:
        errors.append(ValidationError("unknown_field", f"Field '{name}' cannot be updated", name))

    updates = dict(inp.updates)
    if "title" in updates:
        errors.extend(_validate_title(updates["title"]))
    if "slug" in updates and updates["slug"] != page.slug:
        errors.extend(_validate_slug(updates["slug"], repo, config, current=page))
    if "page_type" in updates:
        page_type = _parse_page_type(updates["page_type"])
        if page_type is None:
            errors.append(
                ValidationError(
                    "invalid_page_type", f"Unknown page type: {updates['page_type']}", "page_type"
                )
            )
        else:
            updates["page_type"] = page_type

    warnings: list[str] = []
    if "content_json" in updates:
        normalized = normalize_content(updates["content_json"])
        warnings = normalized.warnings
        errors.extend(_content_errors(normalized.content, config))
        updates["content_json"] = normalized.content

    if errors:
        return PageOutput(success=False, page=page, errors=errors, warnings=warnings)

    for name, value in updates.items():
        setattr(page, name, value.strip() if name == "title" else value)
    page.updated_at = time.now_utc()
    saved = repo.save(page)
    return PageOutput(success=True, page=saved, warnings=warnings)


def run_publish_page(
    inp: TransitionPageInput,
    *,
    repo: PageRepoPort,
    time: TimePort,
    config: CmsConfig | None = None,
    audit: AuditRecorder | None = None,
) -> PageOutput:
    """Move a page between draft, scheduled and published."""
    config = config or CmsConfig()
    now = time.now_utc()
    page = repo.get_by_id(inp.page_id)
    if page is None:
        return _not_found(inp.page_id)

    try:
        to_status = PageStatus(inp.to_status)
    except ValueError:
        return PageOutput(
            success=False,
            page=page,
            errors=[ValidationError("invalid_status", f"Unknown status: {inp.to_status}", "status")],
        )

    if not can_transition(page.status, to_status):
        return PageOutput(
            success=False,
            page=page,
            errors=[
                ValidationError(
                    "invalid_transition",
                    f"Cannot transition from '{page.status.value}' to '{to_status.value}'",
                    "status",
                )
            ],
        )

    if to_status == PageStatus.SCHEDULED:
        errors = _validate_schedule(inp.publish_at, now)
        if errors:
            return PageOutput(success=False, page=page, errors=errors)
    if to_status == PageStatus.PUBLISHED:
        errors = _content_errors(page.content_json, config)
        if errors:
            return PageOutput(success=False, page=page, errors=errors)

    old_status = page.status
    page.status = to_status
    page.updated_at = now
    if to_status == PageStatus.SCHEDULED:
        page.scheduled_at = inp.publish_at
    elif to_status == PageStatus.PUBLISHED:
        page.published_at = now
        page.scheduled_at = None
    else:
        page.scheduled_at = None

    saved = repo.save(page)
    logger.info(f"Page {saved.slug}: {old_status.value} -> {to_status.value}")
    if audit is not None:
        audit.record(
            "publish" if to_status == PageStatus.PUBLISHED else "status_change",
            "page",
            str(saved.id),
            description=f"Page '{saved.title}' {old_status.value} -> {to_status.value}",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
            metadata={"from": old_status.value, "to": to_status.value},
        )
    return PageOutput(success=True, page=saved)


def run_publish_due(*, repo: PageRepoPort, time: TimePort) -> list[Page]:
    """Publish scheduled pages whose time has come. Never publishes early."""
    now = time.now_utc()
    published: list[Page] = []
    for page in repo.list_pages(PageStatus.SCHEDULED):
        due = page.scheduled_at
        if due is None:
            continue
        if due.tzinfo is None:
            due = due.replace(tzinfo=UTC)
        if due > now:
            continue
        page.status = PageStatus.PUBLISHED
        page.published_at = now
        page.scheduled_at = None
        page.updated_at = now
        published.append(repo.save(page))
        logger.info(f"Scheduled page published: {page.slug}")
    return published


def _set_special(inp: SetSpecialPageInput, repo: PageRepoPort, time: TimePort) -> PageOutput:
    if inp.role not in ("home", "shop"):
        return PageOutput(
            success=False,
            errors=[ValidationError("invalid_role", f"Unknown page role: {inp.role}", "role")],
        )
    page = repo.get_by_id(inp.page_id)
    if page is None:
        return _not_found(inp.page_id)

    flag = "is_home" if inp.role == "home" else "is_shop"
    now = time.now_utc()
    current = repo.get_home() if inp.role == "home" else repo.get_shop()
    if current is not None and current.id != page.id:
        setattr(current, flag, False)
        current.updated_at = now
        repo.save(current)

    setattr(page, flag, True)
    page.updated_at = now
    saved = repo.save(page)
    logger.info(f"Page {saved.slug} set as {inp.role} page")
    return PageOutput(success=True, page=saved)


def run_set_home_page(
    inp: SetSpecialPageInput, *, repo: PageRepoPort, time: TimePort
) -> PageOutput:
    return _set_special(SetSpecialPageInput(page_id=inp.page_id, role="home"), repo, time)


def run_set_shop_page(
    inp: SetSpecialPageInput, *, repo: PageRepoPort, time: TimePort
) -> PageOutput:
    return _set_special(SetSpecialPageInput(page_id=inp.page_id, role="shop"), repo, time)


def run_delete_page(
    inp: DeletePageInput,
    *,
    repo: PageRepoPort,
    audit: AuditRecorder | None = None,
) -> PageOutput:
    page = repo.get_by_id(inp.page_id)
    if page is None:
        return _not_found(inp.page_id)
    if page.is_home:
        return PageOutput(
            success=False,
            page=page,
            errors=[ValidationError("home_page", "The home page cannot be deleted")],
        )
    repo.delete(page.id)
    if audit is not None:
        audit.record(
            "delete",
            "page",
            str(page.id),
            description=f"Page '{page.title}' deleted",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
        )
    return PageOutput(success=True, page=page)


def run_get_public_page(inp: GetPublicPageInput, *, repo: PageRepoPort) -> PageOutput:
    page = repo.get_by_slug(inp.slug)
    if page is None or page.status != PageStatus.PUBLISHED:
        return _not_found(inp.slug)
    return PageOutput(success=True, page=page)


def run_get_home_page(inp: GetHomePageInput, *, repo: PageRepoPort) -> PageOutput:
    page = repo.get_home()
    if page is None or page.status != PageStatus.PUBLISHED:
        return _not_found("home")
    return PageOutput(success=True, page=page)


def navigation(pages: list[Page]) -> list[NavLink]:
    """Published pages flagged for the nav, by nav_order then title."""
    visible = [p for p in pages if p.status == PageStatus.PUBLISHED and p.show_in_nav]
    visible.sort(key=lambda p: (p.nav_order, p.title.lower()))
    return [NavLink(label=p.title, href="/" if p.is_home else f"/{p.slug}") for p in visible]


def run(
    inp: CreatePageInput
    | UpdatePageInput
    | TransitionPageInput
    | SetSpecialPageInput
    | DeletePageInput
    | GetPublicPageInput
    | GetHomePageInput,
    *,
    repo: PageRepoPort,
    time: TimePort,
    config: CmsConfig | None = None,
    audit: AuditRecorder | None = None,
) -> PageOutput:
    """CMS component entry point."""
    if isinstance(inp, CreatePageInput):
        return run_create_page(inp, repo=repo, time=time, config=config, audit=audit)
    if isinstance(inp, UpdatePageInput):
        return run_update_page(inp, repo=repo, time=time, config=config)
    if isinstance(inp, TransitionPageInput):
        return run_publish_page(inp, repo=repo, time=time, config=config, audit=audit)
    if isinstance(inp, SetSpecialPageInput):
        return _set_special(inp, repo, time)
    if isinstance(inp, DeletePageInput):
        return run_delete_page(inp, repo=repo, audit=audit)
    if isinstance(inp, GetPublicPageInput):
        return run_get_public_page(inp, repo=repo)
    if isinstance(inp, GetHomePageInput):
        return run_get_home_page(inp, repo=repo)
    raise ValueError(f"Unknown input type: {type(inp)}")
