"""
Presets component - preview, activate and roll back site presets.

Activation order:
1. snapshot current settings
2. apply theme, nav, footer, SEO and CTA in one settings save
3. seed the home page according to the seed mode
4. audit with the list of changes

Rollback restores the newest snapshot that has not already been rolled back.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from src.components.audit.component import AuditRecorder
from src.components.cms.component import run_create_page
from src.components.cms.models import CmsConfig, CreatePageInput, Page
from src.components.cms.ports import PageRepoPort
from src.components.presets.models import (
    ActivateOutput,
    ActivatePresetInput,
    HomePageSeedMode,
    PresetDiff,
    PresetSnapshot,
    PreviewOutput,
    PreviewPresetInput,
    RollbackOutput,
    RollbackPresetInput,
    SitePreset,
    ValidationError,
)
from src.components.presets.ports import SnapshotRepoPort, TimePort
from src.components.presets.seeds import BUILT_IN_PRESETS, HOME_TEMPLATES
from src.components.settings.component import get_default_settings
from src.components.settings.models import DEFAULT_THEME_ID, SiteSettings
from src.components.settings.ports import SettingsRepoPort

logger = logging.getLogger(__name__)

# Settings fields a preset owns; these are what a snapshot restores
PRESET_FIELDS: tuple[str, ...] = (
    "active_theme_id",
    "active_preset_id",
    "nav",
    "footer",
    "seo",
    "global_cta",
)


def list_presets() -> list[SitePreset]:
    return list(BUILT_IN_PRESETS.values())


def get_preset(preset_id: str) -> SitePreset | None:
    return BUILT_IN_PRESETS.get(preset_id)


def _preset_values(preset: SitePreset) -> dict[str, Any]:
    """Settings values the preset would write, keyed by settings field."""
    values: dict[str, Any] = {"active_theme_id": preset.theme_id}
    for name in ("nav", "footer", "seo", "global_cta"):
        section = getattr(preset, name)
        if section is not None:
            values[name] = section
    return values


def _snapshot_values(settings: SiteSettings) -> dict[str, Any]:
    return settings.model_dump(mode="json", include=set(PRESET_FIELDS))


def _not_found(preset_id: str) -> list[ValidationError]:
    return [ValidationError("not_found", f"Site preset {preset_id} not found", "preset_id")]


def _seed_mode(preset: SitePreset, override: str | None) -> HomePageSeedMode | None:
    if override is None:
        return preset.home_page_seed_mode
    try:
        return HomePageSeedMode(override)
    except ValueError:
        return None


def run_preview_preset(
    inp: PreviewPresetInput, *, settings_repo: SettingsRepoPort
) -> PreviewOutput:
    preset = get_preset(inp.preset_id)
    if preset is None:
        return PreviewOutput(success=False, errors=_not_found(inp.preset_id))

    current = settings_repo.get() or get_default_settings()

    def changes(name: str) -> bool:
        section = getattr(preset, name)
        return section is not None and section != getattr(current, name)

    diff = PresetDiff(
        theme_will_change=current.active_theme_id != preset.theme_id,
        nav_will_change=changes("nav"),
        footer_will_change=changes("footer"),
        seo_will_change=changes("seo"),
        cta_will_change=changes("global_cta"),
        home_page_action=preset.home_page_seed_mode.value,
    )
    return PreviewOutput(success=True, preset=preset, current=_snapshot_values(current), diff=diff)


def _seed_home_page(
    preset: SitePreset,
    mode: HomePageSeedMode,
    *,
    page_repo: PageRepoPort,
    time: TimePort,
    cms_config: CmsConfig | None,
) -> tuple[Page | None, str]:
    template_id = preset.home_template_id
    if mode == HomePageSeedMode.DO_NOTHING or not template_id:
        return None, "Home page: no changes (doNothing)"

    if mode == HomePageSeedMode.CREATE_FROM_TEMPLATE:
        now = time.now_utc()
        out = run_create_page(
            CreatePageInput(
                title=f"{preset.name} Home",
                slug=f"home-{now:%Y%m%d%H%M%S}",
                page_type="home",
                template=template_id,
                content_json={"version": 1, "blocks": HOME_TEMPLATES.get(template_id, [])},
            ),
            repo=page_repo,
            time=time,
            config=cms_config,
        )
        if not out.success or out.page is None:
            logger.error(f"Home page seed failed for preset {preset.id}: {out.errors}")
            return None, "Home page could not be created from template"
        return out.page, f"New home page created (draft): {out.page.title}"

    home = page_repo.get_home()
    if home is None:
        return None, "No existing home page found; skipped template update"
    home.template = template_id
    home.updated_at = time.now_utc()
    return page_repo.save(home), f"Existing home page template updated to: {template_id}"


def run_activate_preset(
    inp: ActivatePresetInput,
    *,
    settings_repo: SettingsRepoPort,
    snapshot_repo: SnapshotRepoPort,
    page_repo: PageRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
    cms_config: CmsConfig | None = None,
) -> ActivateOutput:
    preset = get_preset(inp.preset_id)
    if preset is None:
        return ActivateOutput(success=False, errors=_not_found(inp.preset_id))
    mode = _seed_mode(preset, inp.home_page_mode)
    if mode is None:
        return ActivateOutput(
            success=False,
            errors=[
                ValidationError(
                    "invalid_home_page_mode",
                    f"Unknown home page mode: {inp.home_page_mode}",
                    "home_page_mode",
                )
            ],
        )

    now = time.now_utc()
    current = settings_repo.get() or get_default_settings()
    snapshot = PresetSnapshot(
        id=uuid4(),
        preset_id=preset.id,
        preset_name=preset.name,
        settings=_snapshot_values(current),
        applied_by=inp.actor_name,
        notes=inp.notes,
        created_at=now,
    )

    changes: list[str] = [f"Theme set to: {preset.theme_id}"]
    labels = {
        "nav": "Navigation preset applied",
        "footer": "Footer preset applied",
        "seo": "SEO defaults applied",
        "global_cta": "Global CTA defaults applied",
    }
    values = _preset_values(preset)
    changes.extend(labels[name] for name in labels if name in values)
    settings_repo.save(
        current.model_copy(update={**values, "active_preset_id": preset.id, "updated_at": now})
    )

    home_page, home_change = _seed_home_page(
        preset, mode, page_repo=page_repo, time=time, cms_config=cms_config
    )
    changes.append(home_change)

    snapshot.changes = changes
    snapshot_repo.save(snapshot)
    logger.info(f"Site preset activated: {preset.id} ({len(changes)} changes)")
    if audit is not None:
        audit.record(
            "activate",
            "preset",
            preset.id,
            description=f"Site preset '{preset.name}' activated",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
            metadata={"snapshot_id": str(snapshot.id), "changes": changes},
        )
    return ActivateOutput(
        success=True,
        preset_id=preset.id,
        snapshot_id=snapshot.id,
        changes=changes,
        home_page=home_page,
    )


def run_rollback_preset(
    inp: RollbackPresetInput,
    *,
    settings_repo: SettingsRepoPort,
    snapshot_repo: SnapshotRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
) -> RollbackOutput:
    snapshot = snapshot_repo.latest_active()
    if snapshot is None:
        return RollbackOutput(
            success=False,
            errors=[ValidationError("no_history", "No activation history found to rollback")],
        )

    now = time.now_utc()
    restored = dict(snapshot.settings)
    restored["active_theme_id"] = restored.get("active_theme_id") or DEFAULT_THEME_ID
    current = settings_repo.get() or get_default_settings()
    merged = {**current.model_dump(), **restored, "updated_at": now}
    settings_repo.save(SiteSettings.model_validate(merged))
    snapshot_repo.mark_rolled_back(snapshot.id, now)

    logger.info(f"Site preset rolled back: {snapshot.preset_id}")
    if audit is not None:
        audit.record(
            "rollback",
            "preset",
            snapshot.preset_id,
            description=f"Site preset '{snapshot.preset_name}' rolled back",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
            metadata={"snapshot_id": str(snapshot.id)},
        )
    return RollbackOutput(success=True, snapshot_id=snapshot.id, restored=restored)


def history(*, snapshot_repo: SnapshotRepoPort, limit: int = 20) -> list[PresetSnapshot]:
    return snapshot_repo.list_recent(max(1, min(limit, 100)))


def run(
    inp: PreviewPresetInput | ActivatePresetInput | RollbackPresetInput,
    *,
    settings_repo: SettingsRepoPort,
    snapshot_repo: SnapshotRepoPort,
    page_repo: PageRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
) -> PreviewOutput | ActivateOutput | RollbackOutput:
    """Presets component entry point."""
    if isinstance(inp, PreviewPresetInput):
        return run_preview_preset(inp, settings_repo=settings_repo)
    if isinstance(inp, ActivatePresetInput):
        return run_activate_preset(
            inp,
            settings_repo=settings_repo,
            snapshot_repo=snapshot_repo,
            page_repo=page_repo,
            time=time,
            audit=audit,
        )
    if isinstance(inp, RollbackPresetInput):
        return run_rollback_preset(
            inp, settings_repo=settings_repo, snapshot_repo=snapshot_repo, time=time, audit=audit
        )
    raise ValueError(f"Unknown input type: {type(inp)}")
