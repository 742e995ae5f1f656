"""
Unit tests for the presets component.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

import pytest

from src.adapters.clock import FixedClock
from src.components.audit import AuditEntry, AuditRecorder
from src.components.cms import Page, PageStatus
from src.components.presets import (
    BUILT_IN_PRESETS,
    ActivatePresetInput,
    PresetSnapshot,
    PreviewPresetInput,
    RollbackPresetInput,
    history,
    run,
    run_activate_preset,
    run_preview_preset,
    run_rollback_preset,
)
from src.components.settings import NavItem, NavSettings, SiteSettings

NOW = datetime(2026, 6, 1, 15, 30, tzinfo=UTC)


class MockSettingsRepo:
    def __init__(self, settings: SiteSettings | None = None) -> None:
        self.settings = settings

    def get(self) -> SiteSettings | None:
        return self.settings

    def save(self, settings: SiteSettings) -> SiteSettings:
        self.settings = settings
        return settings


class MockSnapshotRepo:
    def __init__(self) -> None:
        self.snapshots: list[PresetSnapshot] = []

    def save(self, snapshot: PresetSnapshot) -> PresetSnapshot:
        self.snapshots.append(snapshot)
        return snapshot

    def latest_active(self) -> PresetSnapshot | None:
        active = [s for s in self.snapshots if s.rolled_back_at is None]
        return active[-1] if active else None

    def list_recent(self, limit: int = 20) -> list[PresetSnapshot]:
        return list(reversed(self.snapshots))[:limit]

    def mark_rolled_back(self, snapshot_id: UUID, at: datetime) -> None:
        for snapshot in self.snapshots:
            if snapshot.id == snapshot_id:
                snapshot.rolled_back_at = at


class MockPageRepo:
    def __init__(self) -> None:
        self.pages: dict[UUID, Page] = {}

    def get_by_id(self, page_id: UUID) -> Page | None:
        return self.pages.get(page_id)

    def get_by_slug(self, slug: str) -> Page | None:
        return next((p for p in self.pages.values() if p.slug == slug), None)

    def get_home(self) -> Page | None:
        return next((p for p in self.pages.values() if p.is_home), None)

    def get_shop(self) -> Page | None:
        return next((p for p in self.pages.values() if p.is_shop), None)

    def list_pages(self, status: PageStatus | None = None) -> list[Page]:
        return [p for p in self.pages.values() if status is None or p.status == status]

    def save(self, page: Page) -> Page:
        self.pages[page.id] = page
        return page

    def delete(self, page_id: UUID) -> bool:
        return self.pages.pop(page_id, None) is not None


class MockAuditRepo:
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def save(self, entry: AuditEntry) -> AuditEntry:
        self.entries.append(entry)
        return entry


class Site:
    def __init__(self, settings: SiteSettings | None = None) -> None:
        self.settings_repo = MockSettingsRepo(settings)
        self.snapshot_repo = MockSnapshotRepo()
        self.page_repo = MockPageRepo()
        self.audit_repo = MockAuditRepo()
        self.clock = FixedClock(NOW)

    def activate(self, preset_id: str, **kwargs):
        return run_activate_preset(
            ActivatePresetInput(preset_id=preset_id, actor_name="owner", **kwargs),
            settings_repo=self.settings_repo,
            snapshot_repo=self.snapshot_repo,
            page_repo=self.page_repo,
            time=self.clock,
            audit=AuditRecorder(self.audit_repo, self.clock),
        )

    def rollback(self):
        return run_rollback_preset(
            RollbackPresetInput(actor_name="owner"),
            settings_repo=self.settings_repo,
            snapshot_repo=self.snapshot_repo,
            time=self.clock,
            audit=AuditRecorder(self.audit_repo, self.clock),
        )


class TestPreview:
    def test_diff_against_defaults(self) -> None:
        site = Site()
        out = run_preview_preset(
            PreviewPresetInput(preset_id="performance-tech-starter"),
            settings_repo=site.settings_repo,
        )
        assert out.success
        assert out.diff.theme_will_change is True
        assert out.diff.nav_will_change is True
        assert out.diff.home_page_action == "createFromTemplate"
        assert out.current["active_theme_id"] == "arctic-default"

    def test_sections_not_in_preset_do_not_change(self) -> None:
        out = run_preview_preset(
            PreviewPresetInput(preset_id="dark-performance-starter"),
            settings_repo=MockSettingsRepo(),
        )
        assert out.diff.nav_will_change is False
        assert out.diff.footer_will_change is False
        assert out.diff.cta_will_change is True

    def test_preview_makes_no_changes(self) -> None:
        site = Site()
        run_preview_preset(
            PreviewPresetInput(preset_id="spa-minimal-starter"), settings_repo=site.settings_repo
        )
        assert site.settings_repo.settings is None

    def test_unknown_preset(self) -> None:
        out = run_preview_preset(PreviewPresetInput(preset_id="nope"), settings_repo=MockSettingsRepo())
        assert out.errors[0].code == "not_found"


class TestActivate:
    def test_applies_settings_sections(self) -> None:
        site = Site()
        out = site.activate("spa-minimal-starter")
        assert out.success
        settings = site.settings_repo.settings
        preset = BUILT_IN_PRESETS["spa-minimal-starter"]
        assert settings.active_theme_id == "spa-minimal"
        assert settings.active_preset_id == "spa-minimal-starter"
        assert settings.nav == preset.nav
        assert settings.footer == preset.footer
        assert settings.seo.title_suffix == " | Power Plunge Wellness"
        assert settings.global_cta.primary_cta_text == "Explore Products"

    def test_snapshot_taken_before_apply(self) -> None:
        site = Site(SiteSettings(active_theme_id="clinical-clean"))
        out = site.activate("spa-minimal-starter")
        snapshot = site.snapshot_repo.snapshots[0]
        assert snapshot.id == out.snapshot_id
        assert snapshot.settings["active_theme_id"] == "clinical-clean"
        assert snapshot.changes == out.changes

    def test_create_from_template_seeds_draft_home(self) -> None:
        site = Site()
        out = site.activate("performance-tech-starter")
        page = out.home_page
        assert page is not None
        assert page.status == PageStatus.DRAFT
        assert page.template == "landing-page-v1"
        assert page.slug == "home-20260601153000"
        assert page.content_json["blocks"][0]["type"] == "hero"
        assert out.changes[-1] == f"New home page created (draft): {page.title}"

    def test_apply_to_existing_home(self) -> None:
        site = Site()
        home = Page(id=uuid4(), slug="home", title="Home", is_home=True)
        site.page_repo.save(home)
        out = site.activate("clinical-clean-starter")
        assert home.template == "landing-page-v1"
        assert out.changes[-1] == "Existing home page template updated to: landing-page-v1"

    def test_apply_to_existing_home_without_home(self) -> None:
        out = Site().activate("clinical-clean-starter")
        assert out.changes[-1] == "No existing home page found; skipped template update"

    def test_mode_override_do_nothing(self) -> None:
        site = Site()
        out = site.activate("performance-tech-starter", home_page_mode="doNothing")
        assert out.home_page is None
        assert site.page_repo.pages == {}
        assert out.changes[-1] == "Home page: no changes (doNothing)"

    def test_invalid_mode(self) -> None:
        out = Site().activate("performance-tech-starter", home_page_mode="replaceEverything")
        assert out.errors[0].code == "invalid_home_page_mode"

    def test_changes_listed_and_audited(self) -> None:
        site = Site()
        out = site.activate("dark-performance-starter")
        assert out.changes[:2] == ["Theme set to: dark-performance", "Global CTA defaults applied"]
        entry = site.audit_repo.entries[0]
        assert entry.action == "activate"
        assert entry.entity_type == "preset"
        assert entry.metadata["changes"] == out.changes


class TestRollback:
    def test_restores_previous_settings(self) -> None:
        original = SiteSettings(
            store_name="Cold Co",
            nav=NavSettings(items=[NavItem(label="Home", href="/")]),
        )
        site = Site(original)
        site.activate("spa-minimal-starter", home_page_mode="doNothing")
        out = site.rollback()

        assert out.success
        settings = site.settings_repo.settings
        assert settings.active_theme_id == "arctic-default"
        assert settings.active_preset_id is None
        assert settings.nav == original.nav
        assert settings.store_name == "Cold Co"
        assert site.audit_repo.entries[-1].action == "rollback"

    def test_rollback_walks_back_one_activation_at_a_time(self) -> None:
        site = Site()
        site.activate("spa-minimal-starter", home_page_mode="doNothing")
        site.activate("dark-performance-starter", home_page_mode="doNothing")
        site.rollback()
        assert site.settings_repo.settings.active_theme_id == "spa-minimal"
        site.rollback()
        assert site.settings_repo.settings.active_theme_id == "arctic-default"
        assert site.rollback().errors[0].code == "no_history"

    def test_empty_theme_falls_back_to_default(self) -> None:
        site = Site()
        site.snapshot_repo.save(
            PresetSnapshot(
                id=uuid4(),
                preset_id="x",
                preset_name="X",
                settings={"active_theme_id": ""},
            )
        )
        out = site.rollback()
        assert out.restored["active_theme_id"] == "arctic-default"

    def test_history_newest_first(self) -> None:
        site = Site()
        site.activate("spa-minimal-starter", home_page_mode="doNothing")
        site.activate("dark-performance-starter", home_page_mode="doNothing")
        entries = history(snapshot_repo=site.snapshot_repo)
        assert [e.preset_id for e in entries] == ["dark-performance-starter", "spa-minimal-starter"]


def test_run_unknown_input() -> None:
    site = Site()
    with pytest.raises(ValueError, match="Unknown input type"):
        run(
            object(),  # type: ignore[arg-type]
            settings_repo=site.settings_repo,
            snapshot_repo=site.snapshot_repo,
            page_repo=site.page_repo,
            time=site.clock,
        )
