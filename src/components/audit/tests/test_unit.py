"""
Audit component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime

from src.adapters.clock import FixedClock
from src.components.audit import (
    AuditEntry,
    AuditRecorder,
    LogAuditInput,
    QueryAuditInput,
    run,
)

NOW = datetime(2025, 2, 2, tzinfo=UTC)


class MockAuditRepo:
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def save(self, entry: AuditEntry) -> AuditEntry:
        self.entries.append(entry)
        return entry

    def _match(self, query: QueryAuditInput) -> list[AuditEntry]:
        return [
            e
            for e in reversed(self.entries)
            if (query.entity_type is None or e.entity_type == query.entity_type)
            and (query.entity_id is None or e.entity_id == query.entity_id)
            and (query.action is None or e.action == query.action)
        ]

    def query(self, query: QueryAuditInput) -> list[AuditEntry]:
        return self._match(query)[query.offset : query.offset + query.limit]

    def count(self, query: QueryAuditInput) -> int:
        return len(self._match(query))


def test_log_rejects_unknown_action() -> None:
    result = run(
        LogAuditInput(action="explode", entity_type="order"),
        repo=MockAuditRepo(),
        time=FixedClock(NOW),
    )
    assert not result.success
    assert result.errors[0].code == "invalid_action"


def test_recorder_and_query() -> None:
    repo = MockAuditRepo()
    recorder = AuditRecorder(repo, FixedClock(NOW))
    recorder.record("refund", "order", "o-1", "Refunded 500", metadata={"amount": 500})
    recorder.record("status_change", "order", "o-2", "paid -> shipped")

    result = run(QueryAuditInput(entity_type="order", action="refund"), repo=repo)
    assert result.total == 1
    assert result.entries[0].metadata == {"amount": 500}
    assert result.entries[0].timestamp == NOW
