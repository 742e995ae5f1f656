"""
Refund component models.

Refund status:
- pending → processed (gateway confirmed)
- pending → failed
Gateway statuses are normalized with normalize_gateway_status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

REFUND_REASON_CODES: tuple[str, ...] = (
    "duplicate",
    "fraudulent",
    "requested_by_customer",
    "product_not_received",
    "product_unacceptable",
    "other",
)


class RefundStatus(Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


VALID_TRANSITIONS: dict[RefundStatus, set[RefundStatus]] = {
    RefundStatus.PENDING: {RefundStatus.PROCESSED, RefundStatus.FAILED},
    RefundStatus.PROCESSED: set(),  # Terminal
    RefundStatus.FAILED: set(),  # Terminal
}


def can_transition(from_status: RefundStatus, to_status: RefundStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, set())


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUND_PENDING = "refund_pending"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"
    REFUND_FAILED = "refund_failed"


class RefundError(Exception):
    """Refund request rejected; `status` is the HTTP status to report."""

    def __init__(self, code: str, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status


@dataclass
class Refund:
    id: UUID
    order_id: UUID
    amount: int  # cents
    reason_code: str = "other"
    reason: str | None = None  # internal note
    type: str = "full"  # full | partial
    source: str = "gateway"  # gateway | manual
    status: RefundStatus = RefundStatus.PENDING
    gateway_refund_id: str | None = None
    created_by: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None


# --- Inputs ---


@dataclass(frozen=True)
class CreateRefundInput:
    """Amount None refunds everything still refundable."""

    order_id: UUID
    amount: int | None = None
    reason_code: str | None = None
    reason: str | None = None
    actor_id: UUID | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class CreateManualRefundInput:
    order_id: UUID
    amount: int | None = None
    reason_code: str | None = None
    reason: str | None = None
    actor_id: UUID | None = None
    actor_name: str | None = None


@dataclass(frozen=True)
class SyncRefundStatusInput:
    gateway_refund_id: str
    gateway_status: str


@dataclass(frozen=True)
class SetRefundStatusInput:
    """Admin resolution of a manual refund."""

    refund_id: UUID
    status: str
    actor_id: UUID | None = None
    actor_name: str | None = None


# --- Outputs ---


@dataclass(frozen=True)
class RefundOutput:
    refund: Refund
    refundable_remaining: int
    payment_status: PaymentStatus


@dataclass(frozen=True)
class SyncRefundOutput:
    refund: Refund | None
    changed: bool = False


@dataclass(frozen=True)
class RefundSummary:
    payment_status: PaymentStatus
    refunded_amount: int
    refundable_amount: int
    refund_count: int
    latest_refund_status: str | None
