"""
Consent component models.

Consent is stored client side as JSON under ``pp_consent_v1``:

    {"version": 1, "decidedAt": "...", "categories": {"necessary": true, ...}}

Analytics events are only accepted when the visitor has not opted out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

CONSENT_KEY = "pp_consent_v1"
CONSENT_VERSION = 1
ITEM_BRAND = "Power Plunge"
DEFAULT_ITEM_CATEGORY = "Cold Plunge"
DEFAULT_CURRENCY = "USD"
ITEM_LIST_LIMIT = 20
PURCHASE_DEDUPE_SIZE = 50

# GA4 event names accepted by the ingest endpoint
EVENT_NAMES: frozenset[str] = frozenset(
    {
        "page_view",
        "view_item",
        "view_item_list",
        "add_to_cart",
        "remove_from_cart",
        "begin_checkout",
        "add_shipping_info",
        "add_payment_info",
        "purchase",
        "search",
        "sign_up",
        "login",
    }
)

# Personal data never stored with an event
FORBIDDEN_PARAMS: frozenset[str] = frozenset(
    {
        "email",
        "phone",
        "ip",
        "ip_address",
        "user_agent",
        "name",
        "first_name",
        "last_name",
        "address",
    }
)


class UAClass(str, Enum):
    BOT = "bot"
    REAL = "real"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ConsentCategories:
    necessary: bool = True
    analytics: bool = False
    marketing: bool = False
    functional: bool = False


@dataclass(frozen=True)
class ConsentRecord:
    decided_at: datetime
    categories: ConsentCategories
    version: int = CONSENT_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "decidedAt": self.decided_at.isoformat(),
            "categories": {
                "necessary": True,
                "analytics": self.categories.analytics,
                "marketing": self.categories.marketing,
                "functional": self.categories.functional,
            },
        }


@dataclass(frozen=True)
class TrackedItem:
    """A product line as the storefront reports it. Prices are in cents."""

    id: str
    name: str
    price_cents: int
    quantity: int | None = None
    category: str | None = None
    variant: str | None = None
    index: int | None = None


@dataclass
class AnalyticsEvent:
    id: UUID
    name: str
    params: dict[str, Any] = field(default_factory=dict)
    path: str | None = None
    ua_class: UAClass = UAClass.UNKNOWN
    event_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class IngestConfig:
    bot_patterns: tuple[str, ...] = ()
    dedupe_ttl_seconds: int = 10
    consent_version: int = CONSENT_VERSION


# --- Inputs ---


@dataclass(frozen=True)
class IngestEventInput:
    name: str
    params: dict[str, Any] = field(default_factory=dict)
    path: str | None = None
    event_id: str | None = None  # client generated, used for short-window dedupe
    consent: str | dict[str, Any] | None = None  # raw consent JSON from the client
    user_agent: str | None = None


@dataclass(frozen=True)
class EventCountsInput:
    since: datetime | None = None
    include_bots: bool = False


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class IngestOutput:
    success: bool
    accepted: bool = False
    event: AnalyticsEvent | None = None
    reason: str | None = None  # why an event was dropped: no_consent, duplicate
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class EventCount:
    name: str
    count: int


@dataclass(frozen=True)
class EventCountsOutput:
    counts: list[EventCount] = field(default_factory=list)
    total: int = 0
