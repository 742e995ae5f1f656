"""
SQLite repositories for the Meta CAPI outbox, newsletter subscribers and
first-party analytics events.

Timestamps are compared as ISO-8601 text, which orders correctly because every
value is written in UTC with the same offset suffix.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from src.adapters.sqlite.base import (
    SQLiteRepoBase,
    dt_str,
    from_json,
    parse_dt,
    parse_uuid,
    to_json,
    uuid_str,
)
from src.components.capi.models import DUE_STATUSES, CapiEvent, CapiEventStatus
from src.components.consent.models import AnalyticsEvent, UAClass
from src.components.newsletter.models import NewsletterSubscriber, SubscriberStatus


class SQLiteCapiEventRepo(SQLiteRepoBase):
    def get_by_key(self, event_key: str) -> CapiEvent | None:
        row = self._fetch_one("SELECT * FROM capi_events WHERE event_key = ?", (event_key,))
        return self._map_row(row) if row else None

    def save(self, event: CapiEvent) -> CapiEvent:
        self._execute(
            """
            INSERT INTO capi_events (
                id, event_key, event_name, payload_json, status, order_id, refund_id,
                attempt_count, next_attempt_at, last_error, trace_id, created_at,
                updated_at, sent_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                payload_json=excluded.payload_json,
                status=excluded.status,
                attempt_count=excluded.attempt_count,
                next_attempt_at=excluded.next_attempt_at,
                last_error=excluded.last_error,
                trace_id=excluded.trace_id,
                updated_at=excluded.updated_at,
                sent_at=excluded.sent_at
            """,
            (
                str(event.id),
                event.event_key,
                event.event_name,
                to_json(event.payload),
                event.status.value,
                uuid_str(event.order_id),
                uuid_str(event.refund_id),
                event.attempt_count,
                dt_str(event.next_attempt_at),
                event.last_error,
                event.trace_id,
                event.created_at.isoformat(),
                event.updated_at.isoformat(),
                dt_str(event.sent_at),
            ),
        )
        return event

    def list_due(self, now: datetime, limit: int) -> list[CapiEvent]:
        statuses = sorted(s.value for s in DUE_STATUSES)
        marks = ", ".join("?" for _ in statuses)
        rows = self._fetch_all(
            f"""
            SELECT * FROM capi_events
            WHERE status IN ({marks})
              AND (next_attempt_at IS NULL OR next_attempt_at <= ?)
            ORDER BY created_at
            LIMIT ?
            """,
            (*statuses, now.isoformat(), limit),
        )
        return [self._map_row(r) for r in rows]

    def count_by_status(self) -> dict[CapiEventStatus, int]:
        rows = self._fetch_all("SELECT status, COUNT(*) AS n FROM capi_events GROUP BY status")
        return {CapiEventStatus(r["status"]): r["n"] for r in rows}

    def oldest_queued_at(self) -> datetime | None:
        value = self._scalar(
            "SELECT MIN(created_at) AS oldest FROM capi_events WHERE status = ?",
            (CapiEventStatus.QUEUED.value,),
        )
        return parse_dt(value)

    def last_sent_at(self) -> datetime | None:
        return parse_dt(self._scalar("SELECT MAX(sent_at) AS last FROM capi_events"))

    def _map_row(self, row: dict[str, Any]) -> CapiEvent:
        return CapiEvent(
            id=UUID(row["id"]),
            event_key=row["event_key"],
            event_name=row["event_name"],
            payload=from_json(row["payload_json"], {}),
            status=CapiEventStatus(row["status"]),
            order_id=parse_uuid(row["order_id"]),
            refund_id=parse_uuid(row["refund_id"]),
            attempt_count=row["attempt_count"],
            next_attempt_at=parse_dt(row["next_attempt_at"]),
            last_error=row["last_error"],
            trace_id=row["trace_id"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            updated_at=parse_dt(row["updated_at"]),  # type: ignore[arg-type]
            sent_at=parse_dt(row["sent_at"]),
        )


class SQLiteNewsletterRepo(SQLiteRepoBase):
    def get_by_id(self, subscriber_id: UUID) -> NewsletterSubscriber | None:
        row = self._fetch_one(
            "SELECT * FROM newsletter_subscribers WHERE id = ?", (str(subscriber_id),)
        )
        return self._map_row(row) if row else None

    def get_by_email(self, email: str) -> NewsletterSubscriber | None:
        row = self._fetch_one("SELECT * FROM newsletter_subscribers WHERE email = ?", (email,))
        return self._map_row(row) if row else None

    def get_by_confirmation_token(self, token: str) -> NewsletterSubscriber | None:
        row = self._fetch_one(
            "SELECT * FROM newsletter_subscribers WHERE confirmation_token = ?", (token,)
        )
        return self._map_row(row) if row else None

    def get_by_unsubscribe_token(self, token: str) -> NewsletterSubscriber | None:
        row = self._fetch_one(
            "SELECT * FROM newsletter_subscribers WHERE unsubscribe_token = ?", (token,)
        )
        return self._map_row(row) if row else None

    def save(self, subscriber: NewsletterSubscriber) -> NewsletterSubscriber:
        self._execute(
            """
            INSERT INTO newsletter_subscribers (
                id, email, status, confirmation_token, unsubscribe_token, source,
                created_at, confirmed_at, unsubscribed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status=excluded.status,
                confirmation_token=excluded.confirmation_token,
                unsubscribe_token=excluded.unsubscribe_token,
                source=excluded.source,
                confirmed_at=excluded.confirmed_at,
                unsubscribed_at=excluded.unsubscribed_at
            """,
            (
                str(subscriber.id),
                subscriber.email,
                subscriber.status.value,
                subscriber.confirmation_token,
                subscriber.unsubscribe_token,
                subscriber.source,
                subscriber.created_at.isoformat(),
                dt_str(subscriber.confirmed_at),
                dt_str(subscriber.unsubscribed_at),
            ),
        )
        return subscriber

    def list_subscribers(
        self, status: SubscriberStatus | None = None, limit: int = 50, offset: int = 0
    ) -> list[NewsletterSubscriber]:
        if status is None:
            rows = self._fetch_all(
                "SELECT * FROM newsletter_subscribers ORDER BY created_at DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
        else:
            rows = self._fetch_all(
                "SELECT * FROM newsletter_subscribers WHERE status = ? "
                "ORDER BY created_at DESC LIMIT ? OFFSET ?",
                (status.value, limit, offset),
            )
        return [self._map_row(r) for r in rows]

    def count_by_status(self, status: SubscriberStatus | None = None) -> int:
        if status is None:
            return int(self._scalar("SELECT COUNT(*) AS n FROM newsletter_subscribers"))
        return int(
            self._scalar(
                "SELECT COUNT(*) AS n FROM newsletter_subscribers WHERE status = ?",
                (status.value,),
            )
        )

    def _map_row(self, row: dict[str, Any]) -> NewsletterSubscriber:
        return NewsletterSubscriber(
            id=UUID(row["id"]),
            email=row["email"],
            status=SubscriberStatus(row["status"]),
            confirmation_token=row["confirmation_token"],
            unsubscribe_token=row["unsubscribe_token"],
            source=row["source"],
            created_at=parse_dt(row["created_at"]),  # type: ignore[arg-type]
            confirmed_at=parse_dt(row["confirmed_at"]),
            unsubscribed_at=parse_dt(row["unsubscribed_at"]),
        )


class SQLiteEventRepo(SQLiteRepoBase):
    """Analytics events. Purchases carry their transaction id in a unique column."""

    def save(self, event: AnalyticsEvent) -> AnalyticsEvent:
        transaction_id = (
            event.params.get("transaction_id") if event.name == "purchase" else None
        )
        self._execute(
            """
            INSERT INTO analytics_events (
                id, name, params_json, path, ua_class, event_id, transaction_id, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(event.id),
                event.name,
                to_json(event.params),
                event.path,
                event.ua_class.value,
                event.event_id,
                str(transaction_id) if transaction_id else None,
                event.created_at.isoformat(),
            ),
        )
        return event

    def has_event_id(self, event_id: str, since: datetime) -> bool:
        row = self._fetch_one(
            "SELECT 1 AS hit FROM analytics_events WHERE event_id = ? AND created_at >= ? LIMIT 1",
            (event_id, since.isoformat()),
        )
        return row is not None

    def has_transaction(self, transaction_id: str) -> bool:
        row = self._fetch_one(
            "SELECT 1 AS hit FROM analytics_events WHERE transaction_id = ? LIMIT 1",
            (transaction_id,),
        )
        return row is not None

    def count_by_name(
        self, since: datetime | None = None, include_bots: bool = False
    ) -> dict[str, int]:
        clauses: list[str] = []
        params: list[Any] = []
        if since is not None:
            clauses.append("created_at >= ?")
            params.append(since.isoformat())
        if not include_bots:
            clauses.append("ua_class != ?")
            params.append(UAClass.BOT.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._fetch_all(
            f"SELECT name, COUNT(*) AS n FROM analytics_events {where} GROUP BY name",
            tuple(params),
        )
        return {r["name"]: r["n"] for r in rows}

    def list_recent(self, limit: int = 50) -> list[AnalyticsEvent]:
        rows = self._fetch_all(
            "SELECT * FROM analytics_events ORDER BY created_at DESC LIMIT ?", (limit,)
        )
        return [
            AnalyticsEvent(
                id=UUID(r["id"]),
                name=r["name"],
                params=from_json(r["params_json"], {}),
                path=r["path"],
                ua_class=UAClass(r["ua_class"]),
                event_id=r["event_id"],
                created_at=parse_dt(r["created_at"]),  # type: ignore[arg-type]
            )
            for r in rows
        ]
