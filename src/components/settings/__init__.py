"""
Settings component - site settings management.
"""

from .component import (
    get_default_settings,
    is_valid_href,
    merge_updates,
    public_settings,
    run,
    run_get_settings,
    run_update_settings,
    validate_settings,
)
from .models import (
    ADMIN_ONLY_FIELDS,
    DEFAULT_THEME_ID,
    FooterColumn,
    FooterLink,
    FooterSettings,
    GetSettingsInput,
    GetSettingsOutput,
    GlobalCta,
    NavItem,
    NavSettings,
    SeoDefaults,
    SiteSettings,
    UpdateSettingsInput,
    UpdateSettingsOutput,
    ValidationError,
)
from .ports import SettingsRepoPort, TimePort

__all__ = [
    "run",
    "run_get_settings",
    "run_update_settings",
    "get_default_settings",
    "validate_settings",
    "public_settings",
    "merge_updates",
    "is_valid_href",
    "ADMIN_ONLY_FIELDS",
    "DEFAULT_THEME_ID",
    "SiteSettings",
    "NavItem",
    "NavSettings",
    "FooterLink",
    "FooterColumn",
    "FooterSettings",
    "SeoDefaults",
    "GlobalCta",
    "GetSettingsInput",
    "GetSettingsOutput",
    "UpdateSettingsInput",
    "UpdateSettingsOutput",
    "ValidationError",
    "SettingsRepoPort",
    "TimePort",
]
