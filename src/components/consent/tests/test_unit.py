"""
Unit tests for the consent component.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest

from src.adapters.clock import FixedClock
from src.components.consent import (
    AnalyticsEvent,
    EventCountsInput,
    IngestConfig,
    IngestEventInput,
    PurchaseDedupe,
    TrackedItem,
    UAClass,
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

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
BOT_PATTERNS = ("bot", "crawler", "headless")


def consent_json(
    analytics: bool = True, marketing: bool = False, version: int = 1, decided_at: str | None = None
) -> str:
    return json.dumps(
        {
            "version": version,
            "decidedAt": decided_at or "2026-03-01T09:00:00.000Z",
            "categories": {
                "necessary": False,
                "analytics": analytics,
                "marketing": marketing,
                "functional": False,
            },
        }
    )


class MockEventRepo:
    def __init__(self) -> None:
        self.events: list[AnalyticsEvent] = []

    def save(self, event: AnalyticsEvent) -> AnalyticsEvent:
        self.events.append(event)
        return event

    def has_event_id(self, event_id: str, since: datetime) -> bool:
        return any(e.event_id == event_id and e.created_at >= since for e in self.events)

    def has_transaction(self, transaction_id: str) -> bool:
        return any(
            e.name == "purchase" and e.params.get("transaction_id") == transaction_id
            for e in self.events
        )

    def count_by_name(
        self, since: datetime | None = None, include_bots: bool = False
    ) -> dict[str, int]:
        counts: dict[str, int] = {}
        for e in self.events:
            if since is not None and e.created_at < since:
                continue
            if not include_bots and e.ua_class == UAClass.BOT:
                continue
            counts[e.name] = counts.get(e.name, 0) + 1
        return counts


class TestParseConsent:
    def test_valid_record(self) -> None:
        record = parse_consent(consent_json(analytics=True, marketing=True))
        assert record is not None
        assert record.decided_at == datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        assert record.categories.analytics is True
        assert record.categories.marketing is True

    def test_necessary_always_true(self) -> None:
        record = parse_consent(consent_json())
        assert record.categories.necessary is True

    @pytest.mark.parametrize(
        "raw",
        [None, "", "not json", "[]", consent_json(version=2), consent_json(decided_at="yesterday")],
    )
    def test_invalid_returns_none(self, raw: str | None) -> None:
        assert parse_consent(raw) is None

    def test_accepts_dict(self) -> None:
        assert parse_consent(json.loads(consent_json())) is not None

    def test_non_boolean_flags_are_false(self) -> None:
        raw = json.loads(consent_json())
        raw["categories"]["analytics"] = "yes"
        assert parse_consent(raw).categories.analytics is False

    def test_record_round_trips_through_storage_format(self) -> None:
        record = record_consent(analytics=False, marketing=True, functional=True, now=NOW)
        assert parse_consent(json.dumps(record.to_dict())) == record


class TestBanner:
    def test_shown_without_record(self) -> None:
        assert should_show_banner(None, 365, NOW) is True

    def test_hidden_after_recent_decision(self) -> None:
        record = record_consent(analytics=True, marketing=False, functional=False, now=NOW)
        assert should_show_banner(record, 365, NOW + timedelta(days=364)) is False

    def test_reprompted_after_expiry(self) -> None:
        record = record_consent(analytics=True, marketing=False, functional=False, now=NOW)
        assert should_show_banner(record, 365, NOW + timedelta(days=365)) is True

    def test_zero_days_never_reprompts(self) -> None:
        record = record_consent(analytics=True, marketing=False, functional=False, now=NOW)
        assert should_show_banner(record, 0, NOW + timedelta(days=5000)) is False

    def test_decision_without_offset_read_as_utc(self) -> None:
        record = parse_consent(consent_json(decided_at="2026-03-01T09:00:00"))
        assert record.decided_at == datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        assert should_show_banner(record, 365, NOW) is False
        assert should_show_banner(record, 7, NOW) is True


class TestGating:
    def test_analytics_default_on_without_record(self) -> None:
        assert analytics_allowed(None) is True
        assert analytics_allowed_explicit(None) is False

    def test_marketing_requires_opt_in(self) -> None:
        assert marketing_allowed(None) is False
        assert marketing_allowed(parse_consent(consent_json(marketing=True))) is True

    def test_opt_out_respected(self) -> None:
        record = parse_consent(consent_json(analytics=False))
        assert analytics_allowed(record) is False
        assert analytics_allowed_explicit(record) is False


class TestGa4:
    def test_map_item(self) -> None:
        item = map_item(TrackedItem(id="p1", name="Plunge Pro", price_cents=499900, quantity=1))
        assert item == {
            "item_id": "p1",
            "item_name": "Plunge Pro",
            "price": 4999.0,
            "item_brand": "Power Plunge",
            "item_category": "Cold Plunge",
            "quantity": 1,
        }

    def test_map_item_optional_fields(self) -> None:
        item = map_item(
            TrackedItem(id="p1", name="Cover", price_cents=1999, category="Accessories", variant="Black")
        )
        assert item["item_category"] == "Accessories"
        assert item["item_variant"] == "Black"
        assert "quantity" not in item

    def test_view_item_list_is_capped_and_indexed(self) -> None:
        items = [TrackedItem(id=f"p{i}", name=f"P{i}", price_cents=100) for i in range(30)]
        params = build_event("view_item_list", items=items, list_name="Shop")
        assert len(params["items"]) == 20
        assert params["items"][5]["index"] == 5
        assert params["item_list_name"] == "Shop"

    def test_add_to_cart_value(self) -> None:
        params = build_event(
            "add_to_cart", items=[TrackedItem(id="p1", name="P", price_cents=1250, quantity=2)]
        )
        assert params["value"] == 25.0
        assert params["currency"] == "USD"

    def test_begin_checkout_uses_total(self) -> None:
        items = [TrackedItem(id="p1", name="P", price_cents=1000, quantity=1)]
        params = build_event("begin_checkout", items=items, value_cents=1500)
        assert params["value"] == 15.0

    def test_purchase(self) -> None:
        params = build_event(
            "purchase",
            items=[TrackedItem(id="p1", name="P", price_cents=1000, quantity=1)],
            transaction_id="ord_1",
            value_cents=1180,
            tax_cents=80,
            shipping_cents=100,
        )
        assert params["transaction_id"] == "ord_1"
        assert (params["value"], params["tax"], params["shipping"]) == (11.8, 0.8, 1.0)

    def test_purchase_needs_transaction(self) -> None:
        with pytest.raises(ValueError):
            build_event("purchase", items=[])

    def test_unsupported_event(self) -> None:
        with pytest.raises(ValueError):
            build_event("refund", items=[])


class TestPurchaseDedupe:
    def test_remembers_ids(self) -> None:
        dedupe = PurchaseDedupe()
        dedupe.mark("a")
        assert dedupe.seen("a")
        assert not dedupe.seen("b")

    def test_keeps_only_latest(self) -> None:
        dedupe = PurchaseDedupe(size=50)
        for i in range(51):
            dedupe.mark(f"t{i}")
        assert len(dedupe) == 50
        assert not dedupe.seen("t0")
        assert dedupe.seen("t50")


class TestIngest:
    def _ingest(self, repo: MockEventRepo, inp: IngestEventInput, **kwargs):
        return run_ingest_event(
            inp,
            repo=repo,
            time=kwargs.pop("time", FixedClock(NOW)),
            config=IngestConfig(bot_patterns=BOT_PATTERNS),
            **kwargs,
        )

    def test_stores_event_without_consent_record(self) -> None:
        repo = MockEventRepo()
        out = self._ingest(repo, IngestEventInput(name="page_view", path="/shop", user_agent="Mozilla/5.0"))
        assert out.accepted
        assert out.event.ua_class == UAClass.REAL
        assert len(repo.events) == 1

    def test_dropped_when_opted_out(self) -> None:
        repo = MockEventRepo()
        out = self._ingest(
            repo, IngestEventInput(name="page_view", consent=consent_json(analytics=False))
        )
        assert out.success
        assert not out.accepted
        assert out.reason == "no_consent"
        assert repo.events == []

    def test_unknown_event_rejected(self) -> None:
        out = self._ingest(MockEventRepo(), IngestEventInput(name="mouse_move"))
        assert out.errors[0].code == "unknown_event"

    def test_personal_data_rejected(self) -> None:
        out = self._ingest(
            MockEventRepo(), IngestEventInput(name="sign_up", params={"email": "a@b.co"})
        )
        assert out.errors[0].code == "forbidden_field"
        assert out.errors[0].field == "params.email"

    def test_bots_flagged(self) -> None:
        repo = MockEventRepo()
        out = self._ingest(repo, IngestEventInput(name="page_view", user_agent="Googlebot/2.1"))
        assert out.event.ua_class == UAClass.BOT

    def test_purchase_deduped(self) -> None:
        repo = MockEventRepo()
        dedupe = PurchaseDedupe()
        inp = IngestEventInput(name="purchase", params={"transaction_id": "ord_9", "value": 10})
        assert self._ingest(repo, inp, dedupe=dedupe).accepted
        second = self._ingest(repo, inp, dedupe=dedupe)
        assert not second.accepted
        assert second.reason == "duplicate"
        assert len(repo.events) == 1

    def test_purchase_deduped_from_store(self) -> None:
        repo = MockEventRepo()
        inp = IngestEventInput(name="purchase", params={"transaction_id": "ord_9"})
        self._ingest(repo, inp, dedupe=PurchaseDedupe())
        # fresh process, empty in-memory window
        assert self._ingest(repo, inp, dedupe=PurchaseDedupe()).reason == "duplicate"

    def test_purchase_needs_transaction_id(self) -> None:
        out = self._ingest(MockEventRepo(), IngestEventInput(name="purchase"))
        assert out.errors[0].code == "transaction_id_required"

    def test_client_event_id_deduped_within_ttl(self) -> None:
        repo = MockEventRepo()
        clock = FixedClock(NOW)
        inp = IngestEventInput(name="page_view", event_id="evt-1")
        assert self._ingest(repo, inp, time=clock).accepted
        assert self._ingest(repo, inp, time=clock).reason == "duplicate"
        clock.advance(seconds=11)
        assert self._ingest(repo, inp, time=clock).accepted


class TestCounts:
    def test_counts_sorted_and_exclude_bots(self) -> None:
        repo = MockEventRepo()
        clock = FixedClock(NOW)
        for name, ua in [
            ("page_view", "Mozilla"),
            ("page_view", "Mozilla"),
            ("add_to_cart", "Mozilla"),
            ("page_view", "crawler"),
        ]:
            run_ingest_event(
                IngestEventInput(name=name, user_agent=ua),
                repo=repo,
                time=clock,
                config=IngestConfig(bot_patterns=BOT_PATTERNS),
            )

        out = run_event_counts(EventCountsInput(), repo=repo)
        assert [(c.name, c.count) for c in out.counts] == [("page_view", 2), ("add_to_cart", 1)]
        assert out.total == 3
        assert run_event_counts(EventCountsInput(include_bots=True), repo=repo).total == 4


def test_classify_user_agent() -> None:
    assert classify_user_agent(None, BOT_PATTERNS) == UAClass.UNKNOWN
    assert classify_user_agent("HeadlessChrome/120", BOT_PATTERNS) == UAClass.BOT


def test_run_unknown_input() -> None:
    with pytest.raises(ValueError, match="Unknown input type"):
        run(object(), repo=MockEventRepo(), time=FixedClock(NOW))  # type: ignore[arg-type]
