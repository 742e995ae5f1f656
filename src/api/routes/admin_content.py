"""
Admin content endpoints: pages, blog posts, themes, site presets and site settings.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.adapters.clock import SystemClock
from src.adapters.sqlite.content import (
    SQLitePageRepo,
    SQLitePostRepo,
    SQLiteSnapshotRepo,
    SQLiteThemeRepo,
)
from src.adapters.sqlite.repos import SQLiteSiteSettingsRepo
from src.api.deps import (
    get_audit_recorder,
    get_clock,
    get_cms_config,
    get_page_repo,
    get_post_repo,
    get_site_settings_repo,
    get_snapshot_repo,
    get_theme_repo,
    require_permission,
)
from src.api.errors import raise_for_errors
from src.api.serializers import block_type_view, page_view, plain, post_view, theme_view
from src.components.audit import AuditRecorder
from src.components.blog import (
    CreatePostInput,
    DeletePostInput,
    PublishPostInput,
    UpdatePostInput,
    run_create_post,
    run_delete_post,
    run_publish_post,
    run_update_post,
)
from src.components.cms import (
    CmsConfig,
    CreatePageInput,
    DeletePageInput,
    PageStatus,
    SetSpecialPageInput,
    TransitionPageInput,
    UpdatePageInput,
    blocks_by_category,
    list_block_types,
    run_create_page,
    run_delete_page,
    run_publish_due,
    run_publish_page,
    run_set_home_page,
    run_set_shop_page,
    run_update_page,
)
from src.components.presets import (
    ActivatePresetInput,
    PreviewPresetInput,
    RollbackPresetInput,
    history,
    list_presets,
    run_activate_preset,
    run_preview_preset,
    run_rollback_preset,
)
from src.components.settings import (
    GetSettingsInput,
    UpdateSettingsInput,
    run_get_settings,
    run_update_settings,
)
from src.components.themes import (
    ActivateThemeInput,
    SaveThemeInput,
    list_themes,
    run_activate_theme,
    run_save_theme,
)
from src.domain.entities import User

router = APIRouter()


# --- Request Models ---


class PageCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100)
    page_type: str = "page"
    content_json: Any = None
    template: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    show_in_nav: bool = False
    nav_order: int = 0


class TransitionRequest(BaseModel):
    status: str
    publish_at: datetime | None = None


class SpecialPageRequest(BaseModel):
    role: str = Field(..., pattern="^(home|shop)$")


class PostCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100)
    excerpt: str = ""
    body: str = ""
    cover_image: str | None = None
    author_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    featured: bool = False


class ThemeSaveRequest(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=100)
    tokens: dict[str, Any]
    description: str = ""
    component_variants: dict[str, str] = Field(default_factory=dict)
    block_style_defaults: dict[str, dict[str, Any]] = Field(default_factory=dict)


class PresetActivateRequest(BaseModel):
    home_page_mode: str | None = None
    notes: str | None = Field(None, max_length=500)


# --- Pages ---


@router.get("/pages")
def list_pages(
    status_filter: str | None = Query(None, alias="status"),
    repo: SQLitePageRepo = Depends(get_page_repo),
    _: User = Depends(require_permission("cms:read")),
) -> list[dict[str, Any]]:
    page_status = None
    if status_filter:
        try:
            page_status = PageStatus(status_filter)
        except ValueError:
            raise HTTPException(status_code=400, detail="Unknown page status") from None
    return [page_view(p) for p in repo.list_pages(page_status)]


@router.get("/pages/{page_id}")
def get_page(
    page_id: UUID,
    repo: SQLitePageRepo = Depends(get_page_repo),
    _: User = Depends(require_permission("cms:read")),
) -> dict[str, Any]:
    page = repo.get_by_id(page_id)
    if page is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Page not found")
    return page_view(page)


@router.post("/pages", status_code=status.HTTP_201_CREATED)
def create_page(
    body: PageCreateRequest,
    repo: SQLitePageRepo = Depends(get_page_repo),
    config: CmsConfig = Depends(get_cms_config),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: SystemClock = Depends(get_clock),
    user: User = Depends(require_permission("cms:write")),
) -> dict[str, Any]:
    result = run_create_page(
        CreatePageInput(**body.model_dump(), actor_id=user.id, actor_name=user.display_name),
        repo=repo,
        time=clock,
        config=config,
        audit=audit,
    )
    if not result.success or result.page is None:
        raise_for_errors(result.errors)
    return {**page_view(result.page), "warnings": result.warnings}


@router.patch("/pages/{page_id}")
def update_page(
    page_id: UUID,
    updates: dict[str, Any] = Body(...),
    repo: SQLitePageRepo = Depends(get_page_repo),
    config: CmsConfig = Depends(get_cms_config),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("cms:write")),
) -> dict[str, Any]:
    result = run_update_page(
        UpdatePageInput(page_id=page_id, updates=updates), repo=repo, time=clock, config=config
    )
    if not result.success or result.page is None:
        raise_for_errors(result.errors)
    return {**page_view(result.page), "warnings": result.warnings}


@router.post("/pages/{page_id}/status")
def transition_page(
    page_id: UUID,
    body: TransitionRequest,
    repo: SQLitePageRepo = Depends(get_page_repo),
    config: CmsConfig = Depends(get_cms_config),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: SystemClock = Depends(get_clock),
    user: User = Depends(require_permission("cms:write")),
) -> dict[str, Any]:
    """Publish, unpublish or schedule a page."""
    result = run_publish_page(
        TransitionPageInput(
            page_id=page_id,
            to_status=body.status,
            publish_at=body.publish_at,
            actor_id=user.id,
            actor_name=user.display_name,
        ),
        repo=repo,
        time=clock,
        config=config,
        audit=audit,
    )
    if not result.success or result.page is None:
        raise_for_errors(result.errors)
    return page_view(result.page)


@router.post("/pages/{page_id}/role")
def set_special_page(
    page_id: UUID,
    body: SpecialPageRequest,
    repo: SQLitePageRepo = Depends(get_page_repo),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("cms:write")),
) -> dict[str, Any]:
    inp = SetSpecialPageInput(page_id=page_id, role=body.role)
    if body.role == "home":
        result = run_set_home_page(inp, repo=repo, time=clock)
    else:
        result = run_set_shop_page(inp, repo=repo, time=clock)
    if not result.success or result.page is None:
        raise_for_errors(result.errors)
    return page_view(result.page)


@router.delete("/pages/{page_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_page(
    page_id: UUID,
    repo: SQLitePageRepo = Depends(get_page_repo),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("cms:write")),
) -> None:
    result = run_delete_page(
        DeletePageInput(page_id=page_id, actor_id=user.id, actor_name=user.display_name),
        repo=repo,
        audit=audit,
    )
    if not result.success:
        raise_for_errors(result.errors)


@router.post("/pages/publish-due")
def publish_due_pages(
    repo: SQLitePageRepo = Depends(get_page_repo),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("cms:write")),
) -> dict[str, Any]:
    published = run_publish_due(repo=repo, time=clock)
    return {"published": [str(p.id) for p in published]}


@router.get("/blocks")
def block_types(
    config: CmsConfig = Depends(get_cms_config),
    _: User = Depends(require_permission("cms:read")),
) -> dict[str, Any]:
    grouped = blocks_by_category(config.allowed_types)
    return {
        "blocks": [block_type_view(b) for b in list_block_types(config.allowed_types)],
        "categories": {name: [b.type for b in entries] for name, entries in grouped.items()},
    }


# --- Blog ---


@router.get("/posts")
def list_posts(
    repo: SQLitePostRepo = Depends(get_post_repo),
    _: User = Depends(require_permission("cms:read")),
) -> list[dict[str, Any]]:
    return [post_view(p) for p in repo.list_posts()]


@router.post("/posts", status_code=status.HTTP_201_CREATED)
def create_post(
    body: PostCreateRequest,
    repo: SQLitePostRepo = Depends(get_post_repo),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("cms:write")),
) -> dict[str, Any]:
    result = run_create_post(CreatePostInput(**body.model_dump()), repo=repo, time=clock)
    if not result.success or result.post is None:
        raise_for_errors(result.errors)
    return post_view(result.post)


@router.patch("/posts/{post_id}")
def update_post(
    post_id: UUID,
    updates: dict[str, Any] = Body(...),
    repo: SQLitePostRepo = Depends(get_post_repo),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("cms:write")),
) -> dict[str, Any]:
    result = run_update_post(UpdatePostInput(post_id=post_id, updates=updates), repo=repo, time=clock)
    if not result.success or result.post is None:
        raise_for_errors(result.errors)
    return post_view(result.post)


@router.post("/posts/{post_id}/status")
def transition_post(
    post_id: UUID,
    body: TransitionRequest,
    repo: SQLitePostRepo = Depends(get_post_repo),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: SystemClock = Depends(get_clock),
    user: User = Depends(require_permission("cms:write")),
) -> dict[str, Any]:
    result = run_publish_post(
        PublishPostInput(
            post_id=post_id,
            to_status=body.status,
            actor_id=user.id,
            actor_name=user.display_name,
        ),
        repo=repo,
        time=clock,
        audit=audit,
    )
    if not result.success or result.post is None:
        raise_for_errors(result.errors)
    return post_view(result.post)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: UUID,
    repo: SQLitePostRepo = Depends(get_post_repo),
    _: User = Depends(require_permission("cms:write")),
) -> None:
    result = run_delete_post(DeletePostInput(post_id=post_id), repo=repo)
    if not result.success:
        raise_for_errors(result.errors)


# --- Themes ---


@router.get("/themes")
def get_themes(
    repo: SQLiteThemeRepo = Depends(get_theme_repo),
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    _: User = Depends(require_permission("themes:read")),
) -> dict[str, Any]:
    site = run_get_settings(GetSettingsInput(), repo=settings_repo).settings
    return {
        "active_theme_id": site.active_theme_id,
        "themes": [theme_view(t) for t in list_themes(repo)],
    }


@router.put("/themes/{theme_id}")
def save_theme(
    theme_id: str,
    body: ThemeSaveRequest,
    repo: SQLiteThemeRepo = Depends(get_theme_repo),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("themes:write")),
) -> dict[str, Any]:
    if body.id != theme_id:
        raise HTTPException(status_code=400, detail="Theme id does not match the URL")
    result = run_save_theme(SaveThemeInput(**body.model_dump()), repo=repo, time=clock)
    if not result.success or result.theme is None:
        raise_for_errors(result.errors)
    return theme_view(result.theme)


@router.post("/themes/{theme_id}/activate")
def activate_theme(
    theme_id: str,
    repo: SQLiteThemeRepo = Depends(get_theme_repo),
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: SystemClock = Depends(get_clock),
    user: User = Depends(require_permission("themes:write")),
) -> dict[str, Any]:
    result = run_activate_theme(
        ActivateThemeInput(theme_id=theme_id, actor_id=user.id, actor_name=user.display_name),
        repo=repo,
        settings_repo=settings_repo,
        time=clock,
        audit=audit,
    )
    if not result.success or result.theme is None:
        raise_for_errors(result.errors)
    return theme_view(result.theme)


# --- Presets ---


@router.get("/presets")
def get_presets(
    snapshots: SQLiteSnapshotRepo = Depends(get_snapshot_repo),
    _: User = Depends(require_permission("settings:read")),
) -> dict[str, Any]:
    return {
        "presets": [plain(p) for p in list_presets()],
        "history": [plain(s) for s in history(snapshot_repo=snapshots)],
    }


@router.get("/presets/{preset_id}/preview")
def preview_preset(
    preset_id: str,
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    _: User = Depends(require_permission("settings:read")),
) -> dict[str, Any]:
    result = run_preview_preset(PreviewPresetInput(preset_id=preset_id), settings_repo=settings_repo)
    if not result.success or result.preset is None:
        raise_for_errors(result.errors)
    return {
        "preset": plain(result.preset),
        "current": result.current,
        "diff": plain(result.diff) if result.diff else None,
    }


@router.post("/presets/{preset_id}/activate")
def activate_preset(
    preset_id: str,
    body: PresetActivateRequest,
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    snapshots: SQLiteSnapshotRepo = Depends(get_snapshot_repo),
    pages: SQLitePageRepo = Depends(get_page_repo),
    config: CmsConfig = Depends(get_cms_config),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: SystemClock = Depends(get_clock),
    user: User = Depends(require_permission("settings:write")),
) -> dict[str, Any]:
    result = run_activate_preset(
        ActivatePresetInput(
            preset_id=preset_id,
            home_page_mode=body.home_page_mode,
            notes=body.notes,
            actor_id=user.id,
            actor_name=user.display_name,
        ),
        settings_repo=settings_repo,
        snapshot_repo=snapshots,
        page_repo=pages,
        time=clock,
        audit=audit,
        cms_config=config,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return {
        "preset_id": result.preset_id,
        "snapshot_id": str(result.snapshot_id) if result.snapshot_id else None,
        "changes": result.changes,
        "home_page": page_view(result.home_page) if result.home_page else None,
    }


@router.post("/presets/rollback")
def rollback_preset(
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    snapshots: SQLiteSnapshotRepo = Depends(get_snapshot_repo),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: SystemClock = Depends(get_clock),
    user: User = Depends(require_permission("settings:write")),
) -> dict[str, Any]:
    result = run_rollback_preset(
        RollbackPresetInput(actor_id=user.id, actor_name=user.display_name),
        settings_repo=settings_repo,
        snapshot_repo=snapshots,
        time=clock,
        audit=audit,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return {
        "snapshot_id": str(result.snapshot_id) if result.snapshot_id else None,
        "restored": result.restored,
    }


# --- Site settings ---


@router.get("/settings")
def get_site_settings(
    repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    _: User = Depends(require_permission("settings:read")),
) -> dict[str, Any]:
    return run_get_settings(GetSettingsInput(), repo=repo).settings.model_dump(mode="json")


@router.patch("/settings")
def update_site_settings(
    updates: dict[str, Any] = Body(...),
    repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    audit: AuditRecorder = Depends(get_audit_recorder),
    clock: SystemClock = Depends(get_clock),
    user: User = Depends(require_permission("settings:write")),
) -> dict[str, Any]:
    result = run_update_settings(
        UpdateSettingsInput(updates=updates, actor_id=user.id, actor_name=user.display_name),
        repo=repo,
        time=clock,
        audit=audit,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return result.settings.model_dump(mode="json")
