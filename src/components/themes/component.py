"""
Themes component - theme packs and the token to CSS variable cascade.

Tokens flatten into `--pp-*` custom properties. At root scope the legacy
`--theme-*` names are emitted as well so older storefront styles keep
working.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.components.audit.component import AuditRecorder
from src.components.settings.component import get_default_settings
from src.components.settings.ports import SettingsRepoPort
from src.components.themes.models import (
    ActivateThemeInput,
    SaveThemeInput,
    ThemeOutput,
    ThemePack,
    ThemeTokens,
    ValidationError,
)
from src.components.themes.packs import BUILT_IN_THEMES, DEFAULT_THEME_ID
from src.components.themes.ports import ThemeRepoPort, TimePort

logger = logging.getLogger(__name__)

TOKEN_TO_CSS_VAR: dict[str, str] = {
    "colors.colorBg": "--pp-bg",
    "colors.colorSurface": "--pp-surface",
    "colors.colorSurfaceAlt": "--pp-surface-alt",
    "colors.colorText": "--pp-text",
    "colors.colorTextMuted": "--pp-text-muted",
    "colors.colorBorder": "--pp-border",
    "colors.colorPrimary": "--pp-primary",
    "colors.colorPrimaryText": "--pp-primary-text",
    "colors.colorSecondary": "--pp-secondary",
    "colors.colorSecondaryText": "--pp-secondary-text",
    "colors.colorAccent": "--pp-accent",
    "colors.colorAccentText": "--pp-accent-text",
    "colors.colorSuccess": "--pp-success",
    "colors.colorWarning": "--pp-warning",
    "colors.colorDanger": "--pp-danger",
    "typography.fontFamilyBase": "--pp-font-family",
    "typography.fontHeading": "--pp-font-heading",
    "typography.fontSizeScale": "--pp-font-size-scale",
    "typography.lineHeightBase": "--pp-line-height",
    "typography.letterSpacingBase": "--pp-letter-spacing",
    "radius.radiusSm": "--pp-radius-sm",
    "radius.radiusMd": "--pp-radius-md",
    "radius.radiusLg": "--pp-radius-lg",
    "radius.radiusXl": "--pp-radius-xl",
    "shadows.shadowSm": "--pp-shadow-sm",
    "shadows.shadowMd": "--pp-shadow-md",
    "shadows.shadowLg": "--pp-shadow-lg",
    "buttons.buttonPaddingY": "--pp-btn-py",
    "buttons.buttonPaddingX": "--pp-btn-px",
    "layout.containerMaxWidth": "--pp-container-max",
    "layout.sectionPaddingY": "--pp-section-py",
    "layout.sectionPaddingX": "--pp-section-px",
}

PP_TO_THEME: dict[str, str] = {
    "--pp-bg": "--theme-bg",
    "--pp-surface": "--theme-bg-card",
    "--pp-surface-alt": "--theme-bg-elevated",
    "--pp-text": "--theme-text",
    "--pp-text-muted": "--theme-text-muted",
    "--pp-border": "--theme-border",
    "--pp-primary": "--theme-primary",
    "--pp-accent": "--theme-accent",
    "--pp-danger": "--theme-error",
    "--pp-success": "--theme-success",
    "--pp-warning": "--theme-warning",
}

PILL_RADIUS = "9999px"

MUTED_FALLBACK = "rgba(128,128,128,0.15)"


def _css_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def theme_to_css_vars(tokens: ThemeTokens, scope: str = "root") -> dict[str, str]:
    """Flatten theme tokens into CSS custom properties."""
    dumped = tokens.model_dump(by_alias=True)
    css_vars: dict[str, str] = {}
    for path, css_var in TOKEN_TO_CSS_VAR.items():
        group, key = path.split(".")
        value = dumped.get(group, {}).get(key)
        if value is not None:
            css_vars[css_var] = _css_value(value)

    button_radius = {
        "sm": tokens.radius.radius_sm,
        "md": tokens.radius.radius_md,
        "lg": tokens.radius.radius_lg,
        "pill": PILL_RADIUS,
    }.get(tokens.buttons.button_radius)
    if button_radius:
        css_vars["--pp-btn-radius"] = button_radius
    css_vars["--pp-btn-style"] = tokens.buttons.button_style
    for i, multiplier in enumerate(tokens.spacing.space_scale):
        css_vars[f"--pp-space-{i + 1}"] = f"{_css_value(tokens.spacing.space_base * multiplier)}px"

    if scope != "root":
        return css_vars

    for pp_var, theme_var in PP_TO_THEME.items():
        if css_vars.get(pp_var):
            css_vars[theme_var] = css_vars[pp_var]
    if css_vars.get("--pp-font-family"):
        css_vars["--theme-font"] = css_vars["--pp-font-family"]
    if css_vars.get("--pp-radius-md"):
        css_vars["--theme-radius"] = css_vars["--pp-radius-md"]
    primary = css_vars.get("--pp-primary")
    if primary:
        css_vars["--theme-primary-hover"] = primary
        css_vars["--theme-primary-muted"] = (
            f"{primary}26" if primary.startswith("#") else MUTED_FALLBACK
        )
    return css_vars


def render_css(css_vars: dict[str, str], selector: str = ":root") -> str:
    lines = [f"  {name}: {css_vars[name]};" for name in sorted(css_vars)]
    return selector + " {\n" + "\n".join(lines) + "\n}\n"


# --- Theme packs ---


def get_theme(theme_id: str, repo: ThemeRepoPort | None = None) -> ThemePack | None:
    if theme_id in BUILT_IN_THEMES:
        return BUILT_IN_THEMES[theme_id]
    return repo.get(theme_id) if repo is not None else None


def list_themes(repo: ThemeRepoPort | None = None) -> list[ThemePack]:
    custom = repo.list_all() if repo is not None else []
    return list(BUILT_IN_THEMES.values()) + sorted(custom, key=lambda t: t.name.lower())


def run_save_theme(inp: SaveThemeInput, *, repo: ThemeRepoPort, time: TimePort) -> ThemeOutput:
    errors: list[ValidationError] = []
    if not inp.id or not inp.id.strip():
        errors.append(ValidationError("id_required", "Theme id is required", "id"))
    elif inp.id in BUILT_IN_THEMES:
        errors.append(ValidationError("built_in", f"'{inp.id}' is a built-in theme", "id"))
    if not inp.name or not inp.name.strip():
        errors.append(ValidationError("name_required", "Theme name is required", "name"))

    tokens: ThemeTokens | None = None
    try:
        tokens = ThemeTokens.model_validate(inp.tokens)
    except PydanticValidationError as e:
        for error in e.errors():
            path = ".".join(str(part) for part in error.get("loc", ()))
            errors.append(
                ValidationError("invalid_token", error.get("msg", "Invalid"), f"tokens.{path}")
            )

    if errors or tokens is None:
        return ThemeOutput(success=False, errors=errors)

    now = time.now_utc()
    existing = repo.get(inp.id)
    theme = ThemePack(
        id=inp.id,
        name=inp.name.strip(),
        description=inp.description,
        tokens=tokens,
        component_variants=dict(inp.component_variants),
        block_style_defaults=dict(inp.block_style_defaults),
        created_at=existing.created_at if existing else now,
        updated_at=now,
    )
    saved = repo.save(theme)
    logger.info(f"Theme saved: {saved.id}")
    return ThemeOutput(success=True, theme=saved)


def run_activate_theme(
    inp: ActivateThemeInput,
    *,
    repo: ThemeRepoPort,
    settings_repo: SettingsRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
) -> ThemeOutput:
    """Point the site at one theme. The settings row holds the single active id."""
    theme = get_theme(inp.theme_id, repo)
    if theme is None:
        return ThemeOutput(
            success=False,
            errors=[ValidationError("not_found", f"Theme {inp.theme_id} not found", "theme_id")],
        )

    settings = settings_repo.get() or get_default_settings()
    previous = settings.active_theme_id
    settings_repo.save(
        settings.model_copy(update={"active_theme_id": theme.id, "updated_at": time.now_utc()})
    )
    logger.info(f"Active theme changed: {previous} -> {theme.id}")
    if audit is not None:
        audit.record(
            "activate",
            "theme",
            theme.id,
            description=f"Theme '{theme.name}' activated",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
            metadata={"previous": previous},
        )
    return ThemeOutput(success=True, theme=theme)


def active_theme(repo: ThemeRepoPort | None, settings_repo: SettingsRepoPort) -> ThemePack:
    """Active pack, falling back to arctic-default when the stored id is unknown."""
    settings = settings_repo.get() or get_default_settings()
    theme = get_theme(settings.active_theme_id, repo)
    if theme is None:
        logger.warning(f"Active theme {settings.active_theme_id} missing; using {DEFAULT_THEME_ID}")
        theme = BUILT_IN_THEMES[DEFAULT_THEME_ID]
    return theme


def active_theme_css(repo: ThemeRepoPort | None, settings_repo: SettingsRepoPort) -> str:
    return render_css(theme_to_css_vars(active_theme(repo, settings_repo).tokens))


def run(
    inp: SaveThemeInput | ActivateThemeInput,
    *,
    repo: ThemeRepoPort,
    time: TimePort,
    settings_repo: SettingsRepoPort | None = None,
    audit: AuditRecorder | None = None,
) -> ThemeOutput:
    """Themes component entry point."""
    if isinstance(inp, SaveThemeInput):
        return run_save_theme(inp, repo=repo, time=time)
    if isinstance(inp, ActivateThemeInput):
        if settings_repo is None:
            raise ValueError("settings_repo is required to activate a theme")
        return run_activate_theme(
            inp, repo=repo, settings_repo=settings_repo, time=time, audit=audit
        )
    raise ValueError(f"Unknown input type: {type(inp)}")
