"""
Consent component - cookie consent gating and GA4 event shaping.

Gating rules:
- no stored decision: analytics allowed, marketing not
- stored decision: each category follows the visitor's choice
- necessary is always on

Server-side ingest drops events the visitor opted out of, flags bots,
and stores each purchase at most once.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from src.components.consent.models import (
    CONSENT_VERSION,
    DEFAULT_CURRENCY,
    DEFAULT_ITEM_CATEGORY,
    EVENT_NAMES,
    FORBIDDEN_PARAMS,
    ITEM_BRAND,
    ITEM_LIST_LIMIT,
    PURCHASE_DEDUPE_SIZE,
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
from src.components.consent.ports import EventRepoPort, TimePort

logger = logging.getLogger(__name__)


# --- Consent record ---


def _parse_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_consent(
    raw: str | dict[str, Any] | None, version: int = CONSENT_VERSION
) -> ConsentRecord | None:
    """
    Parse a stored consent decision.

    Returns None for missing or malformed input and for records written
    under a different consent version, so the banner is shown again.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return None
    else:
        data = raw
    if not isinstance(data, dict) or data.get("version") != version:
        return None

    decided_at = _parse_datetime(data.get("decidedAt"))
    categories = data.get("categories")
    if decided_at is None or not isinstance(categories, dict):
        return None

    return ConsentRecord(
        version=version,
        decided_at=decided_at,
        categories=ConsentCategories(
            necessary=True,
            analytics=categories.get("analytics") is True,
            marketing=categories.get("marketing") is True,
            functional=categories.get("functional") is True,
        ),
    )


def record_consent(
    *, analytics: bool, marketing: bool, functional: bool, now: datetime
) -> ConsentRecord:
    return ConsentRecord(
        decided_at=now,
        categories=ConsentCategories(
            necessary=True, analytics=analytics, marketing=marketing, functional=functional
        ),
    )


def should_show_banner(record: ConsentRecord | None, re_prompt_days: int, now: datetime) -> bool:
    if record is None:
        return True
    if re_prompt_days > 0:
        return now - record.decided_at >= timedelta(days=re_prompt_days)
    return False


def analytics_allowed(record: ConsentRecord | None) -> bool:
    """Analytics runs until the visitor says otherwise."""
    if record is None:
        return True
    return record.categories.analytics


def analytics_allowed_explicit(record: ConsentRecord | None) -> bool:
    return record is not None and record.categories.analytics


def marketing_allowed(record: ConsentRecord | None) -> bool:
    return record is not None and record.categories.marketing


# --- GA4 helpers ---


def _dollars(cents: int) -> float:
    return round(cents / 100, 2)


def map_item(item: TrackedItem) -> dict[str, Any]:
    mapped: dict[str, Any] = {
        "item_id": item.id,
        "item_name": item.name,
        "price": _dollars(item.price_cents),
        "item_brand": ITEM_BRAND,
        "item_category": item.category or DEFAULT_ITEM_CATEGORY,
    }
    if item.quantity is not None:
        mapped["quantity"] = item.quantity
    if item.variant:
        mapped["item_variant"] = item.variant
    if item.index is not None:
        mapped["index"] = item.index
    return mapped


def _line_value(item: TrackedItem) -> int:
    return item.price_cents * (item.quantity or 1)


def build_event(
    name: str,
    *,
    items: list[TrackedItem],
    value_cents: int | None = None,
    list_name: str | None = None,
    transaction_id: str | None = None,
    tax_cents: int = 0,
    shipping_cents: int = 0,
    list_limit: int = ITEM_LIST_LIMIT,
) -> dict[str, Any]:
    """
    Build GA4 event params for the ecommerce events the storefront fires.

    `value_cents` defaults to the sum of the item lines.
    """
    value = _dollars(value_cents if value_cents is not None else sum(map(_line_value, items)))

    if name == "view_item_list":
        return {
            "item_list_name": list_name or "",
            "items": [
                map_item(
                    TrackedItem(
                        id=i.id,
                        name=i.name,
                        price_cents=i.price_cents,
                        quantity=i.quantity,
                        category=i.category,
                        variant=i.variant,
                        index=index,
                    )
                )
                for index, i in enumerate(items[:list_limit])
            ],
        }
    if name in ("view_item", "add_to_cart", "remove_from_cart"):
        if not items:
            raise ValueError(f"{name} needs an item")
        return {"currency": DEFAULT_CURRENCY, "value": value, "items": [map_item(items[0])]}
    if name == "begin_checkout":
        return {"currency": DEFAULT_CURRENCY, "value": value, "items": [map_item(i) for i in items]}
    if name == "purchase":
        if not transaction_id:
            raise ValueError("purchase needs a transaction id")
        return {
            "transaction_id": transaction_id,
            "currency": DEFAULT_CURRENCY,
            "value": value,
            "tax": _dollars(tax_cents),
            "shipping": _dollars(shipping_cents),
            "items": [map_item(i) for i in items],
        }
    raise ValueError(f"Unsupported ecommerce event: {name}")


class PurchaseDedupe:
    """Remembers the most recent purchase transaction ids."""

    def __init__(self, size: int = PURCHASE_DEDUPE_SIZE) -> None:
        self._ids: deque[str] = deque(maxlen=size)

    def seen(self, transaction_id: str) -> bool:
        return transaction_id in self._ids

    def mark(self, transaction_id: str) -> None:
        if transaction_id not in self._ids:
            self._ids.append(transaction_id)

    def __len__(self) -> int:
        return len(self._ids)


# --- Server-side ingest ---


def classify_user_agent(user_agent: str | None, patterns: tuple[str, ...] | list[str]) -> UAClass:
    if not user_agent:
        return UAClass.UNKNOWN
    ua = user_agent.lower()
    if any(pattern.lower() in ua for pattern in patterns):
        return UAClass.BOT
    return UAClass.REAL


def _validate(inp: IngestEventInput) -> list[ValidationError]:
    errors: list[ValidationError] = []
    if inp.name not in EVENT_NAMES:
        errors.append(ValidationError("unknown_event", f"Event '{inp.name}' is not tracked", "name"))
    for key in sorted(set(inp.params) & FORBIDDEN_PARAMS):
        errors.append(
            ValidationError("forbidden_field", f"Field '{key}' may not be sent", f"params.{key}")
        )
    if inp.name == "purchase" and not inp.params.get("transaction_id"):
        errors.append(
            ValidationError(
                "transaction_id_required",
                "Purchase events need a transaction_id",
                "params.transaction_id",
            )
        )
    return errors


def run_ingest_event(
    inp: IngestEventInput,
    *,
    repo: EventRepoPort,
    time: TimePort,
    dedupe: PurchaseDedupe | None = None,
    config: IngestConfig | None = None,
) -> IngestOutput:
    cfg = config or IngestConfig()
    errors = _validate(inp)
    if errors:
        return IngestOutput(success=False, errors=errors)

    consent = parse_consent(inp.consent, version=cfg.consent_version)
    if not analytics_allowed(consent):
        return IngestOutput(success=True, reason="no_consent")

    now = time.now_utc()
    if inp.event_id and repo.has_event_id(
        inp.event_id, now - timedelta(seconds=cfg.dedupe_ttl_seconds)
    ):
        return IngestOutput(success=True, reason="duplicate")

    if inp.name == "purchase":
        transaction_id = str(inp.params["transaction_id"])
        if (dedupe is not None and dedupe.seen(transaction_id)) or repo.has_transaction(
            transaction_id
        ):
            logger.info(f"Duplicate purchase event ignored: {transaction_id}")
            return IngestOutput(success=True, reason="duplicate")
        if dedupe is not None:
            dedupe.mark(transaction_id)

    event = AnalyticsEvent(
        id=uuid4(),
        name=inp.name,
        params=dict(inp.params),
        path=inp.path,
        ua_class=classify_user_agent(inp.user_agent, cfg.bot_patterns),
        event_id=inp.event_id,
        created_at=now,
    )
    saved = repo.save(event)
    if saved.ua_class == UAClass.BOT:
        logger.debug(f"Bot event stored: {saved.name}")
    return IngestOutput(success=True, accepted=True, event=saved)


def run_event_counts(inp: EventCountsInput, *, repo: EventRepoPort) -> EventCountsOutput:
    counts = repo.count_by_name(since=inp.since, include_bots=inp.include_bots)
    rows = [
        EventCount(name=name, count=count)
        for name, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    ]
    return EventCountsOutput(counts=rows, total=sum(r.count for r in rows))


def run(
    inp: IngestEventInput | EventCountsInput,
    *,
    repo: EventRepoPort,
    time: TimePort,
    dedupe: PurchaseDedupe | None = None,
    config: IngestConfig | None = None,
) -> IngestOutput | EventCountsOutput:
    """Consent component entry point."""
    if isinstance(inp, IngestEventInput):
        return run_ingest_event(inp, repo=repo, time=time, dedupe=dedupe, config=config)
    if isinstance(inp, EventCountsInput):
        return run_event_counts(inp, repo=repo)
    raise ValueError(f"Unknown input type: {type(inp)}")
