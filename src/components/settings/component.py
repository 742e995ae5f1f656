"""
Settings component - site settings management.

Single-row settings with fallback defaults. Updates are partial: nested
sections are merged one level deep, then the whole object is re-validated
before it is saved.
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError as PydanticValidationError

from src.components.audit.component import AuditRecorder
from src.components.newsletter.component import validate_email
from src.components.settings.models import (
    ADMIN_ONLY_FIELDS,
    GetSettingsInput,
    GetSettingsOutput,
    SiteSettings,
    UpdateSettingsInput,
    UpdateSettingsOutput,
    ValidationError,
)
from src.components.settings.ports import SettingsRepoPort, TimePort

logger = logging.getLogger(__name__)

GA_MEASUREMENT_ID = re.compile(r"^G-[A-Z0-9]{4,}$")
MAX_STORE_NAME = 100
MAX_TAGLINE = 200
MAX_NAV_ITEMS = 12


def get_default_settings() -> SiteSettings:
    return SiteSettings()


def is_valid_href(value: str) -> bool:
    """Site-relative paths, anchors and http(s) URLs are allowed."""
    if not value:
        return False
    if value.startswith(("/", "#")):
        return not value.startswith("//")
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_settings(settings: SiteSettings) -> list[ValidationError]:
    errors: list[ValidationError] = []

    name = settings.store_name.strip()
    if not name:
        errors.append(ValidationError("store_name", "required", "Store name is required"))
    elif len(name) > MAX_STORE_NAME:
        errors.append(
            ValidationError(
                "store_name", "max_length", f"Store name must not exceed {MAX_STORE_NAME} characters"
            )
        )
    if len(settings.tagline) > MAX_TAGLINE:
        errors.append(
            ValidationError(
                "tagline", "max_length", f"Tagline must not exceed {MAX_TAGLINE} characters"
            )
        )

    for field_name in ("support_email", "order_notification_email"):
        value = getattr(settings, field_name)
        if value and not validate_email(value, check_disposable=False).is_valid:
            errors.append(ValidationError(field_name, "invalid_email", "Invalid email address"))

    if settings.ga_measurement_id and not GA_MEASUREMENT_ID.match(settings.ga_measurement_id):
        errors.append(
            ValidationError(
                "ga_measurement_id", "invalid_value", "Measurement id must look like G-XXXXXXX"
            )
        )

    if not 1 <= settings.consent_re_prompt_days <= 730:
        errors.append(
            ValidationError(
                "consent_re_prompt_days", "out_of_range", "Re-prompt days must be between 1 and 730"
            )
        )

    if len(settings.nav.items) > MAX_NAV_ITEMS:
        errors.append(
            ValidationError("nav.items", "too_many", f"At most {MAX_NAV_ITEMS} navigation items")
        )
    for i, item in enumerate(settings.nav.items):
        if not is_valid_href(item.href):
            errors.append(ValidationError(f"nav.items.{i}.href", "invalid_url", "Invalid link"))

    for c, column in enumerate(settings.footer.columns):
        for i, link in enumerate(column.links):
            if not is_valid_href(link.href):
                errors.append(
                    ValidationError(f"footer.columns.{c}.links.{i}.href", "invalid_url", "Invalid link")
                )

    cta = settings.global_cta
    for field_name in ("primary_cta_href", "secondary_cta_href"):
        href = getattr(cta, field_name)
        if href and not is_valid_href(href):
            errors.append(ValidationError(f"global_cta.{field_name}", "invalid_url", "Invalid link"))

    if not settings.active_theme_id.strip():
        errors.append(ValidationError("active_theme_id", "required", "A theme must be active"))

    return errors


def _parse_pydantic_errors(exc: PydanticValidationError) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        field_name = ".".join(str(part) for part in loc) if loc else "_schema"
        error_type = error.get("type", "unknown")
        code = "invalid_value"
        if "missing" in error_type:
            code = "required"
        elif "string" in error_type:
            code = "invalid_type"
        errors.append(
            ValidationError(field_name, code, f"Field '{field_name}': {error.get('msg', 'Invalid')}")
        )
    return errors


def merge_updates(current: SiteSettings, updates: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge dict values into nested sections; replace everything else."""
    merged = current.model_dump()
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def public_settings(settings: SiteSettings) -> dict[str, Any]:
    return settings.model_dump(mode="json", exclude=set(ADMIN_ONLY_FIELDS))


# --- Component Entry Points ---


def run_get_settings(inp: GetSettingsInput, *, repo: SettingsRepoPort) -> GetSettingsOutput:
    """Always returns settings; defaults when nothing has been saved."""
    return GetSettingsOutput(settings=repo.get() or get_default_settings())


def run_update_settings(
    inp: UpdateSettingsInput,
    *,
    repo: SettingsRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
) -> UpdateSettingsOutput:
    current = repo.get() or get_default_settings()

    unknown = sorted(set(inp.updates) - set(SiteSettings.model_fields) - {"updated_at"})
    if unknown:
        return UpdateSettingsOutput(
            settings=current,
            success=False,
            errors=[ValidationError(name, "unknown_field", f"Unknown setting '{name}'") for name in unknown],
        )

    merged = merge_updates(current, inp.updates)
    merged["updated_at"] = time.now_utc()
    try:
        new_settings = SiteSettings.model_validate(merged)
    except PydanticValidationError as e:
        return UpdateSettingsOutput(settings=current, errors=_parse_pydantic_errors(e), success=False)

    errors = validate_settings(new_settings)
    if errors:
        return UpdateSettingsOutput(settings=current, errors=errors, success=False)

    saved = repo.save(new_settings)
    logger.info(f"Site settings updated: {', '.join(sorted(inp.updates))}")
    if audit is not None:
        audit.record(
            "update",
            "settings",
            "site",
            description="Site settings updated",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
            metadata={"fields": sorted(inp.updates)},
        )
    return UpdateSettingsOutput(settings=saved)


def run(
    inp: GetSettingsInput | UpdateSettingsInput,
    *,
    repo: SettingsRepoPort,
    time: TimePort | None = None,
    audit: AuditRecorder | None = None,
) -> GetSettingsOutput | UpdateSettingsOutput:
    """Settings component entry point."""
    if isinstance(inp, GetSettingsInput):
        return run_get_settings(inp, repo=repo)
    if isinstance(inp, UpdateSettingsInput):
        if time is None:
            raise ValueError("time is required to update settings")
        return run_update_settings(inp, repo=repo, time=time, audit=audit)
    raise ValueError(f"Unknown input type: {type(inp)}")
