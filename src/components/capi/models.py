"""
Meta Conversions API component models.

Event queue state machine:
- queued → processing → sent
- processing → retry (retryable error, attempts below the limit)
- processing → failed (non-retryable error or attempts exhausted)
- retry → processing
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID

MAX_ATTEMPTS = 8
DISPATCH_BATCH_SIZE = 20
MAX_RETRY_DELAY_SECONDS = 3600
BASE_RETRY_DELAY_SECONDS = 15


class CapiEventStatus(Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    RETRY = "retry"
    SENT = "sent"
    FAILED = "failed"


DUE_STATUSES: frozenset[CapiEventStatus] = frozenset(
    {CapiEventStatus.QUEUED, CapiEventStatus.RETRY}
)


class MetaGraphError(Exception):
    """Error response from the Graph API; `status` is the HTTP status (0 if none)."""

    def __init__(self, message: str, status: int = 0, trace_id: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.trace_id = trace_id


class NonRetryableDispatchError(Exception):
    """An event that can never be delivered (missing order, revoked consent)."""


@dataclass(frozen=True)
class MetaConfig:
    pixel_id: str | None = None
    access_token: str | None = None
    test_event_code: str | None = None

    @property
    def configured(self) -> bool:
        return bool(self.pixel_id and self.access_token)


@dataclass
class CapiEvent:
    id: UUID
    event_key: str  # unique dedupe key, e.g. "purchase:{order_id}"
    event_name: str
    payload: dict[str, Any]
    status: CapiEventStatus = CapiEventStatus.QUEUED
    order_id: UUID | None = None
    refund_id: UUID | None = None
    attempt_count: int = 0
    next_attempt_at: datetime | None = None
    last_error: str | None = None
    trace_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    sent_at: datetime | None = None


# --- Inputs ---


@dataclass(frozen=True)
class EnqueueEventInput:
    event_key: str
    event_name: str
    payload: dict[str, Any]
    marketing_consent_granted: bool
    order_id: UUID | None = None
    refund_id: UUID | None = None


@dataclass(frozen=True)
class DispatchBatchInput:
    limit: int = DISPATCH_BATCH_SIZE


# --- Outputs ---


@dataclass(frozen=True)
class EnqueueOutput:
    success: bool
    queued: bool
    event: CapiEvent | None = None
    reason: str | None = None


@dataclass(frozen=True)
class DispatchOutput:
    success: bool
    dispatched: int = 0
    failed: int = 0


@dataclass(frozen=True)
class QueueStats:
    queued: int = 0
    processing: int = 0
    retry: int = 0
    sent: int = 0
    failed: int = 0
    oldest_queued_at: datetime | None = None
    oldest_queued_age_seconds: int | None = None
    last_sent_at: datetime | None = None
