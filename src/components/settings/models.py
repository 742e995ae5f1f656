"""
Settings component models.

SiteSettings is a single row. Nested sections (nav, footer, SEO, CTA) are
pydantic models so presets can replace them wholesale and the admin API
can validate partial updates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

DEFAULT_THEME_ID = "arctic-default"

# Fields hidden from the public settings endpoint
ADMIN_ONLY_FIELDS: frozenset[str] = frozenset(
    {"order_notification_email", "active_preset_id", "updated_at"}
)


class NavItem(BaseModel):
    label: str = Field(min_length=1, max_length=60)
    href: str = Field(min_length=1)
    type: Literal["page", "link", "product"] = "page"


class NavSettings(BaseModel):
    style_variant: Literal["minimal", "centered", "split"] = "minimal"
    items: list[NavItem] = Field(default_factory=list)


class FooterLink(BaseModel):
    label: str
    href: str


class FooterColumn(BaseModel):
    title: str
    links: list[FooterLink] = Field(default_factory=list)


class FooterSettings(BaseModel):
    columns: list[FooterColumn] = Field(default_factory=list)
    show_social: bool = True
    copyright_text: str = ""


class SeoDefaults(BaseModel):
    site_name: str = "Power Plunge"
    title_suffix: str = " | Power Plunge"
    default_meta_description: str = ""
    og_image: str | None = None
    robots_index: bool = True
    robots_follow: bool = True


class GlobalCta(BaseModel):
    primary_cta_text: str = "Shop Now"
    primary_cta_href: str = "/shop"
    secondary_cta_text: str | None = None
    secondary_cta_href: str | None = None


class SiteSettings(BaseModel):
    store_name: str = "Power Plunge"
    tagline: str = ""
    support_email: str | None = None
    order_notification_email: str | None = None
    ga_measurement_id: str | None = None
    consent_banner_enabled: bool = True
    consent_re_prompt_days: int = 365
    nav: NavSettings = Field(default_factory=NavSettings)
    footer: FooterSettings = Field(default_factory=FooterSettings)
    seo: SeoDefaults = Field(default_factory=SeoDefaults)
    global_cta: GlobalCta = Field(default_factory=GlobalCta)
    active_theme_id: str = DEFAULT_THEME_ID
    active_preset_id: str | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


# --- Inputs / Outputs ---


@dataclass(frozen=True)
class GetSettingsInput:
    pass


@dataclass(frozen=True)
class UpdateSettingsInput:
    updates: dict[str, Any]
    actor_id: Any = None
    actor_name: str | None = None


@dataclass(frozen=True)
class ValidationError:
    field: str
    code: str
    message: str


@dataclass(frozen=True)
class GetSettingsOutput:
    settings: SiteSettings


@dataclass(frozen=True)
class UpdateSettingsOutput:
    settings: SiteSettings
    errors: list[ValidationError] = field(default_factory=list)
    success: bool = True
