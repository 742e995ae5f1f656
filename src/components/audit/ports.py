"""
Audit component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.components.audit.models import AuditEntry, QueryAuditInput


class AuditRepoPort(Protocol):
    """Append-only audit log storage."""

    def save(self, entry: AuditEntry) -> AuditEntry: ...

    def query(self, query: QueryAuditInput) -> list[AuditEntry]:
        """Newest first, filtered and paginated."""
        ...

    def count(self, query: QueryAuditInput) -> int: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
