"""
Themes component models.

Theme tokens are grouped design variables (colors, typography, radius,
shadows, buttons, spacing, layout). Token JSON is camelCase, matching the
storefront's CSS variable naming.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TokenGroup(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ColorTokens(TokenGroup):
    color_bg: str = "#0b1220"
    color_surface: str = "#111a2e"
    color_surface_alt: str = "#16213a"
    color_text: str = "#f1f5f9"
    color_text_muted: str = "#94a3b8"
    color_border: str = "#1e2a44"
    color_primary: str = "#38bdf8"
    color_primary_text: str = "#0b1220"
    color_secondary: str = "#1e293b"
    color_secondary_text: str = "#f1f5f9"
    color_accent: str = "#67e8f9"
    color_accent_text: str = "#0b1220"
    color_success: str = "#22c55e"
    color_warning: str = "#f59e0b"
    color_danger: str = "#ef4444"


class TypographyTokens(TokenGroup):
    font_family_base: str = "Inter, system-ui, sans-serif"
    font_heading: str = "Inter, system-ui, sans-serif"
    font_size_scale: float = 1.0
    line_height_base: float = 1.6
    letter_spacing_base: str = "0em"


class RadiusTokens(TokenGroup):
    radius_sm: str = "4px"
    radius_md: str = "8px"
    radius_lg: str = "16px"
    radius_xl: str = "24px"


class ShadowTokens(TokenGroup):
    shadow_sm: str = "0 1px 2px rgba(0,0,0,0.25)"
    shadow_md: str = "0 4px 12px rgba(0,0,0,0.3)"
    shadow_lg: str = "0 12px 32px rgba(0,0,0,0.35)"


class ButtonTokens(TokenGroup):
    button_radius: Literal["sm", "md", "lg", "pill"] = "md"
    button_style: Literal["solid", "outline", "soft"] = "solid"
    button_padding_y: str = "0.75rem"
    button_padding_x: str = "1.5rem"


class SpacingTokens(TokenGroup):
    space_base: int = Field(default=4, ge=1, le=32)
    space_scale: list[float] = Field(default_factory=lambda: [1, 2, 3, 4, 6, 8, 12, 16])


class LayoutTokens(TokenGroup):
    container_max_width: str = "1200px"
    section_padding_y: str = "80px"
    section_padding_x: str = "24px"


class ThemeTokens(TokenGroup):
    colors: ColorTokens = Field(default_factory=ColorTokens)
    typography: TypographyTokens = Field(default_factory=TypographyTokens)
    radius: RadiusTokens = Field(default_factory=RadiusTokens)
    shadows: ShadowTokens = Field(default_factory=ShadowTokens)
    buttons: ButtonTokens = Field(default_factory=ButtonTokens)
    spacing: SpacingTokens = Field(default_factory=SpacingTokens)
    layout: LayoutTokens = Field(default_factory=LayoutTokens)


@dataclass
class ThemePack:
    id: str
    name: str
    tokens: ThemeTokens
    description: str = ""
    component_variants: dict[str, str] = field(default_factory=dict)
    block_style_defaults: dict[str, dict[str, Any]] = field(default_factory=dict)
    built_in: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


# --- Inputs ---


@dataclass(frozen=True)
class SaveThemeInput:
    """Create or replace a custom theme pack. Built-in ids cannot be overwritten."""

    id: str
    name: str
    tokens: dict[str, Any]
    description: str = ""
    component_variants: dict[str, str] = field(default_factory=dict)
    block_style_defaults: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class ActivateThemeInput:
    theme_id: str
    actor_id: UUID | None = None
    actor_name: str | None = None


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ThemeOutput:
    success: bool
    theme: ThemePack | None = None
    errors: list[ValidationError] = field(default_factory=list)
