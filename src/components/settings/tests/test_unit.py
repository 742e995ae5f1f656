"""
Settings component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from src.adapters.clock import FixedClock
from src.components.audit import AuditEntry, AuditRecorder
from src.components.settings import (
    GetSettingsInput,
    SiteSettings,
    UpdateSettingsInput,
    is_valid_href,
    public_settings,
    run,
    validate_settings,
)

NOW = datetime(2025, 5, 5, 8, 0, tzinfo=UTC)


class MockSettingsRepo:
    def __init__(self, settings: SiteSettings | None = None) -> None:
        self.settings = settings
        self.saves = 0

    def get(self) -> SiteSettings | None:
        return self.settings

    def save(self, settings: SiteSettings) -> SiteSettings:
        self.settings = settings
        self.saves += 1
        return settings


class MockAuditRepo:
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def save(self, entry: AuditEntry) -> AuditEntry:
        self.entries.append(entry)
        return entry


def update(repo, audit=None, **updates):
    return run(UpdateSettingsInput(updates=updates), repo=repo, time=FixedClock(NOW), audit=audit)


def test_defaults_when_empty() -> None:
    result = run(GetSettingsInput(), repo=MockSettingsRepo())
    assert result.settings.store_name == "Power Plunge"
    assert result.settings.active_theme_id == "arctic-default"


def test_update_merges_nested_sections() -> None:
    repo = MockSettingsRepo()
    result = update(repo, tagline="Cold water, warm hearts", seo={"default_meta_description": "Plunge"})
    assert result.success
    assert repo.settings.tagline == "Cold water, warm hearts"
    assert repo.settings.seo.default_meta_description == "Plunge"
    assert repo.settings.seo.site_name == "Power Plunge"
    assert repo.settings.updated_at == NOW


def test_nav_items_validated() -> None:
    repo = MockSettingsRepo()
    ok = update(repo, nav={"items": [{"label": "Shop", "href": "/shop"}]})
    assert ok.success
    assert repo.settings.nav.items[0].label == "Shop"

    bad = update(repo, nav={"items": [{"label": "Evil", "href": "javascript:alert(1)"}]})
    assert not bad.success
    assert bad.errors[0].field == "nav.items.0.href"
    assert repo.saves == 1


def test_schema_errors_are_reported_per_field() -> None:
    result = update(MockSettingsRepo(), consent_banner_enabled={"nope": 1})
    assert not result.success
    assert result.errors[0].field == "consent_banner_enabled"


def test_unknown_field_rejected() -> None:
    result = update(MockSettingsRepo(), favourite_colour="blue")
    assert result.errors[0].code == "unknown_field"


@pytest.mark.parametrize(
    "updates, field",
    [
        ({"store_name": "  "}, "store_name"),
        ({"support_email": "not-an-email"}, "support_email"),
        ({"ga_measurement_id": "UA-1234"}, "ga_measurement_id"),
        ({"consent_re_prompt_days": 0}, "consent_re_prompt_days"),
        ({"global_cta": {"primary_cta_href": "ftp://x"}}, "global_cta.primary_cta_href"),
    ],
)
def test_validation_rules(updates, field) -> None:
    result = update(MockSettingsRepo(), **updates)
    assert not result.success
    assert result.errors[0].field == field


def test_update_is_audited() -> None:
    audit_repo = MockAuditRepo()
    update(MockSettingsRepo(), AuditRecorder(audit_repo, FixedClock(NOW)), tagline="Hi")
    entry = audit_repo.entries[0]
    assert (entry.action, entry.entity_type) == ("update", "settings")
    assert entry.metadata == {"fields": ["tagline"]}


def test_href_rules() -> None:
    assert is_valid_href("/shop")
    assert is_valid_href("#faq")
    assert is_valid_href("https://example.com/x")
    assert not is_valid_href("//evil.com")
    assert not is_valid_href("")


def test_public_settings_hide_admin_fields() -> None:
    settings = SiteSettings(order_notification_email="ops@powerplunge.com", ga_measurement_id="G-ABC123")
    public = public_settings(settings)
    assert "order_notification_email" not in public
    assert "updated_at" not in public
    assert public["ga_measurement_id"] == "G-ABC123"
    assert validate_settings(settings) == []


def test_unknown_input_raises() -> None:
    with pytest.raises(ValueError):
        run(object(), repo=MockSettingsRepo())  # type: ignore[arg-type]
