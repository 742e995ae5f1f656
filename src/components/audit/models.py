"""
Audit component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal
from uuid import UUID


@dataclass(frozen=True)
class AuditValidationError:
    code: str
    message: str
    field: str | None = None


AuditAction = Literal[
    "create",
    "update",
    "delete",
    "publish",
    "status_change",
    "refund",
    "approve",
    "void",
    "activate",
    "rollback",
    "payout",
    "login",
    "logout",
]

EntityType = Literal[
    "order",
    "refund",
    "product",
    "coupon",
    "affiliate",
    "referral",
    "invite",
    "payout",
    "page",
    "post",
    "theme",
    "preset",
    "settings",
    "user",
    "system",
]

AUDIT_ACTIONS: frozenset[str] = frozenset(AuditAction.__args__)  # type: ignore[attr-defined]
ENTITY_TYPES: frozenset[str] = frozenset(EntityType.__args__)  # type: ignore[attr-defined]


@dataclass(frozen=True)
class AuditEntry:
    """Immutable audit log entry."""

    id: UUID
    timestamp: datetime
    action: str
    entity_type: str
    entity_id: str | None
    actor_id: UUID | None
    actor_name: str | None
    description: str
    metadata: dict[str, Any] = field(default_factory=dict)


# --- Input Models ---


@dataclass(frozen=True)
class LogAuditInput:
    action: str
    entity_type: str
    entity_id: str | None = None
    actor_id: UUID | None = None
    actor_name: str | None = None
    description: str = ""
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class QueryAuditInput:
    entity_type: str | None = None
    entity_id: str | None = None
    action: str | None = None
    limit: int = 100
    offset: int = 0


# --- Output Models ---


@dataclass(frozen=True)
class LogOutput:
    entry: AuditEntry | None
    errors: list[AuditValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class AuditListOutput:
    entries: tuple[AuditEntry, ...]
    total: int
