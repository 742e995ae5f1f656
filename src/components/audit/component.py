"""
Audit component - append-only trail of admin and system actions.

Refunds, order status changes, referral decisions, payouts, preset
activation and settings changes all write an entry here.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from .models import (
    AUDIT_ACTIONS,
    ENTITY_TYPES,
    AuditEntry,
    AuditListOutput,
    AuditValidationError,
    LogAuditInput,
    LogOutput,
    QueryAuditInput,
)
from .ports import AuditRepoPort, TimePort


def run_log(inp: LogAuditInput, *, repo: AuditRepoPort, time: TimePort) -> LogOutput:
    """Validate and append an audit entry."""
    errors: list[AuditValidationError] = []
    if inp.action not in AUDIT_ACTIONS:
        errors.append(
            AuditValidationError("invalid_action", f"Unknown action: {inp.action}", "action")
        )
    if inp.entity_type not in ENTITY_TYPES:
        errors.append(
            AuditValidationError(
                "invalid_entity_type", f"Unknown entity type: {inp.entity_type}", "entity_type"
            )
        )
    if errors:
        return LogOutput(entry=None, errors=errors, success=False)

    entry = AuditEntry(
        id=uuid4(),
        timestamp=time.now_utc(),
        action=inp.action,
        entity_type=inp.entity_type,
        entity_id=inp.entity_id,
        actor_id=inp.actor_id,
        actor_name=inp.actor_name,
        description=inp.description,
        metadata=dict(inp.metadata or {}),
    )
    repo.save(entry)
    return LogOutput(entry=entry)


def run_query(inp: QueryAuditInput, *, repo: AuditRepoPort) -> AuditListOutput:
    limit = max(1, min(inp.limit, 500))
    query = QueryAuditInput(
        entity_type=inp.entity_type,
        entity_id=inp.entity_id,
        action=inp.action,
        limit=limit,
        offset=max(0, inp.offset),
    )
    return AuditListOutput(entries=tuple(repo.query(query)), total=repo.count(query))


class AuditRecorder:
    """Thin helper other components use to write audit entries."""

    def __init__(self, repo: AuditRepoPort, time: TimePort) -> None:
        self._repo = repo
        self._time = time

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: str | None = None,
        description: str = "",
        actor_id: UUID | None = None,
        actor_name: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> LogOutput:
        return run_log(
            LogAuditInput(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                actor_id=actor_id,
                actor_name=actor_name,
                description=description,
                metadata=metadata,
            ),
            repo=self._repo,
            time=self._time,
        )


def run(
    inp: LogAuditInput | QueryAuditInput,
    *,
    repo: AuditRepoPort,
    time: TimePort | None = None,
) -> LogOutput | AuditListOutput:
    if isinstance(inp, LogAuditInput):
        assert time is not None
        return run_log(inp, repo=repo, time=time)
    if isinstance(inp, QueryAuditInput):
        return run_query(inp, repo=repo)
    raise ValueError(f"Unknown input type: {type(inp)}")
