"""
Themes component - theme packs and CSS variable generation.
"""

from .component import (
    PILL_RADIUS,
    PP_TO_THEME,
    TOKEN_TO_CSS_VAR,
    active_theme,
    active_theme_css,
    get_theme,
    list_themes,
    render_css,
    run,
    run_activate_theme,
    run_save_theme,
    theme_to_css_vars,
)
from .models import (
    ActivateThemeInput,
    SaveThemeInput,
    ThemeOutput,
    ThemePack,
    ThemeTokens,
    ValidationError,
)
from .packs import BUILT_IN_THEMES, DEFAULT_THEME_ID
from .ports import ThemeRepoPort, TimePort

__all__ = [
    "run",
    "run_activate_theme",
    "run_save_theme",
    "active_theme",
    "active_theme_css",
    "get_theme",
    "list_themes",
    "render_css",
    "theme_to_css_vars",
    "PILL_RADIUS",
    "PP_TO_THEME",
    "TOKEN_TO_CSS_VAR",
    "BUILT_IN_THEMES",
    "DEFAULT_THEME_ID",
    "ActivateThemeInput",
    "SaveThemeInput",
    "ThemeOutput",
    "ThemePack",
    "ThemeTokens",
    "ValidationError",
    "ThemeRepoPort",
    "TimePort",
]
