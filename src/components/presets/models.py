"""
Presets component models.

A site preset bundles a theme, navigation, footer, SEO defaults, a global
CTA and a home page template. Activation snapshots the current settings
first so it can be rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from src.components.cms.models import Page
from src.components.settings.models import FooterSettings, GlobalCta, NavSettings, SeoDefaults


class HomePageSeedMode(Enum):
    CREATE_FROM_TEMPLATE = "createFromTemplate"
    APPLY_TO_EXISTING_HOME = "applyToExistingHome"
    DO_NOTHING = "doNothing"


@dataclass
class SitePreset:
    id: str
    name: str
    theme_id: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    nav: NavSettings | None = None
    footer: FooterSettings | None = None
    seo: SeoDefaults | None = None
    global_cta: GlobalCta | None = None
    home_template_id: str | None = None
    home_page_seed_mode: HomePageSeedMode = HomePageSeedMode.DO_NOTHING
    built_in: bool = False


@dataclass
class PresetSnapshot:
    """Settings as they were just before a preset was activated."""

    id: UUID
    preset_id: str
    preset_name: str
    settings: dict[str, Any]
    applied_by: str | None = None
    notes: str | None = None
    changes: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    rolled_back_at: datetime | None = None


# --- Inputs ---


@dataclass(frozen=True)
class PreviewPresetInput:
    preset_id: str


@dataclass(frozen=True)
class ActivatePresetInput:
    preset_id: str
    home_page_mode: str | None = None  # overrides the preset's own seed mode
    notes: str | None = None
    actor_id: UUID | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class RollbackPresetInput:
    actor_id: UUID | None = None
    actor_name: str | None = None


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class PresetDiff:
    theme_will_change: bool
    nav_will_change: bool
    footer_will_change: bool
    seo_will_change: bool
    cta_will_change: bool
    home_page_action: str


@dataclass(frozen=True)
class PreviewOutput:
    success: bool
    preset: SitePreset | None = None
    current: dict[str, Any] = field(default_factory=dict)
    diff: PresetDiff | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ActivateOutput:
    success: bool
    preset_id: str | None = None
    snapshot_id: UUID | None = None
    changes: list[str] = field(default_factory=list)
    home_page: Page | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class RollbackOutput:
    success: bool
    snapshot_id: UUID | None = None
    restored: dict[str, Any] = field(default_factory=dict)
    errors: list[ValidationError] = field(default_factory=list)
