"""
SQLite repositories for CMS pages, blog posts, custom themes and preset snapshots.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from src.adapters.sqlite.base import SQLiteRepoBase, dt_str, from_json, parse_dt, to_json
from src.components.blog.models import Post, PostStatus
from src.components.cms.models import Page, PageStatus, PageType
from src.components.presets.models import PresetSnapshot
from src.components.themes.models import ThemePack, ThemeTokens


class SQLitePageRepo(SQLiteRepoBase):
    _COLUMNS = (
        "id, slug, title, page_type, content_json, status, template, seo_title, "
        "seo_description, og_image, show_in_nav, nav_order, is_home, is_shop, "
        "published_at, scheduled_at, created_at, updated_at"
    )

    def get_by_id(self, page_id: UUID) -> Page | None:
        row = self._fetch_one("SELECT * FROM pages WHERE id = ?", (str(page_id),))
        return self._map_row(row) if row else None

    def get_by_slug(self, slug: str) -> Page | None:
        row = self._fetch_one("SELECT * FROM pages WHERE slug = ?", (slug,))
        return self._map_row(row) if row else None

    def get_home(self) -> Page | None:
        row = self._fetch_one("SELECT * FROM pages WHERE is_home = 1 LIMIT 1")
        return self._map_row(row) if row else None

    def get_shop(self) -> Page | None:
        row = self._fetch_one("SELECT * FROM pages WHERE is_shop = 1 LIMIT 1")
        return self._map_row(row) if row else None

    def list_pages(self, status: PageStatus | None = None) -> list[Page]:
        if status is None:
            rows = self._fetch_all("SELECT * FROM pages ORDER BY nav_order, title")
        else:
            rows = self._fetch_all(
                "SELECT * FROM pages WHERE status = ? ORDER BY nav_order, title", (status.value,)
            )
        return [self._map_row(r) for r in rows]

    def save(self, page: Page) -> Page:
        values = (
            str(page.id),
            page.slug,
            page.title,
            page.page_type.value,
            to_json(page.content_json),
            page.status.value,
            page.template,
            page.seo_title,
            page.seo_description,
            page.og_image,
            int(page.show_in_nav),
            page.nav_order,
            int(page.is_home),
            int(page.is_shop),
            dt_str(page.published_at),
            dt_str(page.scheduled_at),
            page.created_at.isoformat(),
            page.updated_at.isoformat(),
        )
        updates = ", ".join(
            f"{c}=excluded.{c}" for c in self._COLUMNS.split(", ") if c not in ("id", "created_at")
        )
        self._execute(
            f"INSERT INTO pages ({self._COLUMNS}) VALUES ({', '.join('?' * len(values))}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}",
            values,
        )
        return page

    def delete(self, page_id: UUID) -> bool:
        return self._execute("DELETE FROM pages WHERE id = ?", (str(page_id),)) > 0

    def _map_row(self, row: dict[str, Any]) -> Page:
        return Page(
            id=UUID(row["id"]),
            slug=row["slug"],
            title=row["title"],
            page_type=PageType(row["page_type"]),
            content_json=from_json(row["content_json"], {"version": 1, "blocks": []}),
            status=PageStatus(row["status"]),
            template=row["template"],
            seo_title=row["seo_title"],
            seo_description=row["seo_description"],
            og_image=row["og_image"],
            show_in_nav=bool(row["show_in_nav"]),
            nav_order=row["nav_order"],
            is_home=bool(row["is_home"]),
            is_shop=bool(row["is_shop"]),
            published_at=parse_dt(row["published_at"]),
            scheduled_at=parse_dt(row["scheduled_at"]),
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
        )


class SQLitePostRepo(SQLiteRepoBase):
    def get_by_id(self, post_id: UUID) -> Post | None:
        row = self._fetch_one("SELECT * FROM posts WHERE id = ?", (str(post_id),))
        return self._map_row(row) if row else None

    def get_by_slug(self, slug: str) -> Post | None:
        row = self._fetch_one("SELECT * FROM posts WHERE slug = ?", (slug,))
        return self._map_row(row) if row else None

    def list_posts(self, status: PostStatus | None = None) -> list[Post]:
        order = "ORDER BY COALESCE(published_at, created_at) DESC"
        if status is None:
            rows = self._fetch_all(f"SELECT * FROM posts {order}")
        else:
            rows = self._fetch_all(f"SELECT * FROM posts WHERE status = ? {order}", (status.value,))
        return [self._map_row(r) for r in rows]

    def save(self, post: Post) -> Post:
        self._execute(
            """
            INSERT INTO posts (
                id, slug, title, excerpt, body, cover_image, author_name, tags_json,
                categories_json, status, featured, published_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                slug=excluded.slug,
                title=excluded.title,
                excerpt=excluded.excerpt,
                body=excluded.body,
                cover_image=excluded.cover_image,
                author_name=excluded.author_name,
                tags_json=excluded.tags_json,
                categories_json=excluded.categories_json,
                status=excluded.status,
                featured=excluded.featured,
                published_at=excluded.published_at,
                updated_at=excluded.updated_at
            """,
            (
                str(post.id),
                post.slug,
                post.title,
                post.excerpt,
                post.body,
                post.cover_image,
                post.author_name,
                to_json(post.tags),
                to_json(post.categories),
                post.status.value,
                int(post.featured),
                dt_str(post.published_at),
                post.created_at.isoformat(),
                post.updated_at.isoformat(),
            ),
        )
        return post

    def delete(self, post_id: UUID) -> bool:
        return self._execute("DELETE FROM posts WHERE id = ?", (str(post_id),)) > 0

    def _map_row(self, row: dict[str, Any]) -> Post:
        return Post(
            id=UUID(row["id"]),
            slug=row["slug"],
            title=row["title"],
            excerpt=row["excerpt"],
            body=row["body"],
            cover_image=row["cover_image"],
            author_name=row["author_name"],
            tags=from_json(row["tags_json"], []),
            categories=from_json(row["categories_json"], []),
            status=PostStatus(row["status"]),
            featured=bool(row["featured"]),
            published_at=parse_dt(row["published_at"]),
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
        )


class SQLiteThemeRepo(SQLiteRepoBase):
    """Custom themes only; built-in packs live in code."""

    def get(self, theme_id: str) -> ThemePack | None:
        row = self._fetch_one("SELECT * FROM themes WHERE id = ?", (theme_id,))
        return self._map_row(row) if row else None

    def list_all(self) -> list[ThemePack]:
        return [self._map_row(r) for r in self._fetch_all("SELECT * FROM themes ORDER BY name")]

    def save(self, theme: ThemePack) -> ThemePack:
        self._execute(
            """
            INSERT INTO themes (
                id, name, description, tokens_json, component_variants_json,
                block_style_defaults_json, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                description=excluded.description,
                tokens_json=excluded.tokens_json,
                component_variants_json=excluded.component_variants_json,
                block_style_defaults_json=excluded.block_style_defaults_json,
                updated_at=excluded.updated_at
            """,
            (
                theme.id,
                theme.name,
                theme.description,
                theme.tokens.model_dump_json(),
                to_json(theme.component_variants),
                to_json(theme.block_style_defaults),
                theme.created_at.isoformat(),
                theme.updated_at.isoformat(),
            ),
        )
        return theme

    def delete(self, theme_id: str) -> bool:
        return self._execute("DELETE FROM themes WHERE id = ?", (theme_id,)) > 0

    def _map_row(self, row: dict[str, Any]) -> ThemePack:
        return ThemePack(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            tokens=ThemeTokens.model_validate_json(row["tokens_json"]),
            component_variants=from_json(row["component_variants_json"], {}),
            block_style_defaults=from_json(row["block_style_defaults_json"], {}),
            built_in=False,
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
        )


class SQLiteSnapshotRepo(SQLiteRepoBase):
    def save(self, snapshot: PresetSnapshot) -> PresetSnapshot:
        self._execute(
            """
            INSERT INTO preset_snapshots (
                id, preset_id, preset_name, settings_json, applied_by, notes,
                changes_json, created_at, rolled_back_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                changes_json=excluded.changes_json,
                notes=excluded.notes,
                rolled_back_at=excluded.rolled_back_at
            """,
            (
                str(snapshot.id),
                snapshot.preset_id,
                snapshot.preset_name,
                to_json(snapshot.settings),
                snapshot.applied_by,
                snapshot.notes,
                to_json(snapshot.changes),
                snapshot.created_at.isoformat(),
                dt_str(snapshot.rolled_back_at),
            ),
        )
        return snapshot

    def latest_active(self) -> PresetSnapshot | None:
        row = self._fetch_one(
            "SELECT * FROM preset_snapshots WHERE rolled_back_at IS NULL "
            "ORDER BY created_at DESC LIMIT 1"
        )
        return self._map_row(row) if row else None

    def list_recent(self, limit: int = 20) -> list[PresetSnapshot]:
        rows = self._fetch_all(
            "SELECT * FROM preset_snapshots ORDER BY created_at DESC LIMIT ?", (limit,)
        )
        return [self._map_row(r) for r in rows]

    def mark_rolled_back(self, snapshot_id: UUID, at: datetime) -> None:
        self._execute(
            "UPDATE preset_snapshots SET rolled_back_at = ? WHERE id = ?",
            (at.isoformat(), str(snapshot_id)),
        )

    def _map_row(self, row: dict[str, Any]) -> PresetSnapshot:
        return PresetSnapshot(
            id=UUID(row["id"]),
            preset_id=row["preset_id"],
            preset_name=row["preset_name"],
            settings=from_json(row["settings_json"], {}),
            applied_by=row["applied_by"],
            notes=row["notes"],
            changes=from_json(row["changes_json"], []),
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            rolled_back_at=parse_dt(row["rolled_back_at"]),
        )
