"""
Public storefront content: pages, navigation, blog, settings and theme.

Endpoints (mounted under /api/public):
- GET /pages/home, /pages/{slug}, /navigation
- GET /blog/posts, /blog/posts/{slug}, /blog/tags, /blog/categories, /blog/rss.xml
- GET /settings, /theme.css
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, Response

from src.adapters.clock import SystemClock
from src.adapters.sqlite.content import SQLitePageRepo, SQLitePostRepo, SQLiteThemeRepo
from src.adapters.sqlite.repos import SQLiteSiteSettingsRepo
from src.api.deps import (
    Settings,
    get_clock,
    get_page_repo,
    get_post_repo,
    get_settings,
    get_site_settings_repo,
    get_theme_repo,
)
from src.api.errors import raise_for_errors
from src.api.serializers import page_view, plain, post_view
from src.components.blog import (
    GetPublicPostInput,
    ListPublicPostsInput,
    build_rss,
    list_categories,
    list_tags,
    run_get_public_post,
    run_list_public_posts,
)
from src.components.cms import (
    GetHomePageInput,
    GetPublicPageInput,
    navigation,
    run_get_home_page,
    run_get_public_page,
)
from src.components.cms.models import PageStatus
from src.components.settings import get_default_settings, public_settings
from src.components.themes import active_theme_css

router = APIRouter()


# --- Pages ---


@router.get("/pages/home")
def get_home_page(repo: SQLitePageRepo = Depends(get_page_repo)) -> dict[str, Any]:
    result = run_get_home_page(GetHomePageInput(), repo=repo)
    if not result.success or result.page is None:
        raise_for_errors(result.errors)
    return page_view(result.page)


@router.get("/pages/{slug}")
def get_page(slug: str, repo: SQLitePageRepo = Depends(get_page_repo)) -> dict[str, Any]:
    result = run_get_public_page(GetPublicPageInput(slug=slug), repo=repo)
    if not result.success or result.page is None:
        raise_for_errors(result.errors)
    return page_view(result.page)


@router.get("/navigation")
def get_navigation(repo: SQLitePageRepo = Depends(get_page_repo)) -> list[dict[str, Any]]:
    links = navigation(repo.list_pages(PageStatus.PUBLISHED))
    return [plain(link) for link in links]


# --- Blog ---


@router.get("/blog/posts")
def list_posts(
    q: str | None = None,
    tag: str | None = None,
    category: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=50),
    repo: SQLitePostRepo = Depends(get_post_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    result = run_list_public_posts(
        ListPublicPostsInput(q=q, tag=tag, category=category, page=page, page_size=page_size),
        repo=repo,
        time=clock,
    )
    return {
        "posts": [post_view(p) for p in result.posts],
        "total": result.total,
        "page": result.page,
        "page_size": result.page_size,
        "total_pages": result.total_pages,
    }


@router.get("/blog/posts/{slug}")
def get_post(
    slug: str,
    repo: SQLitePostRepo = Depends(get_post_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    result = run_get_public_post(GetPublicPostInput(slug=slug), repo=repo, time=clock)
    if not result.success or result.post is None:
        raise_for_errors(result.errors)
    return post_view(result.post)


@router.get("/blog/tags")
def get_tags(
    repo: SQLitePostRepo = Depends(get_post_repo), clock: SystemClock = Depends(get_clock)
) -> list[dict[str, Any]]:
    return [plain(t) for t in list_tags(repo=repo, time=clock)]


@router.get("/blog/categories")
def get_categories(
    repo: SQLitePostRepo = Depends(get_post_repo), clock: SystemClock = Depends(get_clock)
) -> list[dict[str, Any]]:
    return [plain(c) for c in list_categories(repo=repo, time=clock)]


@router.get("/blog/rss.xml")
def get_rss(
    repo: SQLitePostRepo = Depends(get_post_repo),
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
    settings: Settings = Depends(get_settings),
    clock: SystemClock = Depends(get_clock),
) -> Response:
    site = settings_repo.get() or get_default_settings()
    xml = build_rss(
        repo=repo,
        time=clock,
        base_url=settings.base_url,
        title=f"{site.store_name} Blog",
    )
    return Response(content=xml, media_type="application/rss+xml")


# --- Site ---


@router.get("/settings")
def get_public_settings(
    repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
) -> dict[str, Any]:
    return public_settings(repo.get() or get_default_settings())


@router.get("/theme.css")
def get_theme_css(
    repo: SQLiteThemeRepo = Depends(get_theme_repo),
    settings_repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
) -> Response:
    return Response(
        content=active_theme_css(repo, settings_repo),
        media_type="text/css",
        headers={"Cache-Control": "public, max-age=300"},
    )
