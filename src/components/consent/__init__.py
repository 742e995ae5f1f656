"""
Consent component - consent gating and analytics ingest.
"""

from .component import (
    PurchaseDedupe,
    analytics_allowed,
    analytics_allowed_explicit,
    build_event,
    classify_user_agent,
    map_item,
    marketing_allowed,
    parse_consent,
    record_consent,
    run,
    run_event_counts,
    run_ingest_event,
    should_show_banner,
)
from .models import (
    CONSENT_KEY,
    CONSENT_VERSION,
    EVENT_NAMES,
    AnalyticsEvent,
    ConsentCategories,
    ConsentRecord,
    EventCount,
    EventCountsInput,
    EventCountsOutput,
    IngestConfig,
    IngestEventInput,
    IngestOutput,
    TrackedItem,
    UAClass,
    ValidationError,
)
from .ports import EventRepoPort, TimePort

__all__ = [
    "run",
    "run_ingest_event",
    "run_event_counts",
    "parse_consent",
    "record_consent",
    "should_show_banner",
    "analytics_allowed",
    "analytics_allowed_explicit",
    "marketing_allowed",
    "map_item",
    "build_event",
    "classify_user_agent",
    "PurchaseDedupe",
    "CONSENT_KEY",
    "CONSENT_VERSION",
    "EVENT_NAMES",
    "AnalyticsEvent",
    "ConsentCategories",
    "ConsentRecord",
    "EventCount",
    "EventCountsInput",
    "EventCountsOutput",
    "IngestConfig",
    "IngestEventInput",
    "IngestOutput",
    "TrackedItem",
    "UAClass",
    "ValidationError",
    "EventRepoPort",
    "TimePort",
]
