"""
Newsletter component models.

Double opt-in subscription: pending → confirmed → unsubscribed. An
unsubscribed address may sign up again, which starts a new pending cycle
with fresh tokens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID


class SubscriberStatus(Enum):
    """
    Newsletter subscriber status.

    State transitions:
    - pending → confirmed (via confirmation link)
    - confirmed → unsubscribed (via unsubscribe link)
    - unsubscribed → pending (signs up again)
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    UNSUBSCRIBED = "unsubscribed"


VALID_TRANSITIONS: dict[SubscriberStatus, set[SubscriberStatus]] = {
    SubscriberStatus.PENDING: {SubscriberStatus.CONFIRMED},
    SubscriberStatus.CONFIRMED: {SubscriberStatus.UNSUBSCRIBED},
    SubscriberStatus.UNSUBSCRIBED: {SubscriberStatus.PENDING},
}


def can_transition(from_status: SubscriberStatus, to_status: SubscriberStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, set())


# --- Entity ---


@dataclass
class NewsletterSubscriber:
    id: UUID
    email: str
    status: SubscriberStatus = SubscriberStatus.PENDING
    confirmation_token: str | None = None  # single use
    unsubscribe_token: str | None = None  # permanent
    source: str | None = None  # e.g. "footer", "checkout"
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    confirmed_at: datetime | None = None
    unsubscribed_at: datetime | None = None


# --- Inputs ---


@dataclass(frozen=True)
class SubscribeInput:
    email: str
    ip_address: str | None = None  # rate limit key
    source: str | None = None


@dataclass(frozen=True)
class ConfirmInput:
    token: str


@dataclass(frozen=True)
class UnsubscribeInput:
    token: str


@dataclass(frozen=True)
class ListSubscribersInput:
    status: str | None = None
    limit: int = 50
    offset: int = 0


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidateEmailOutput:
    is_valid: bool
    normalized_email: str | None = None
    errors: list[ValidationError] = field(default_factory=list)
    is_disposable: bool = False


@dataclass(frozen=True)
class SubscribeOutput:
    success: bool
    subscriber_id: UUID | None = None
    needs_confirmation: bool = True
    already_subscribed: bool = False
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ConfirmOutput:
    success: bool
    subscriber_id: UUID | None = None
    already_confirmed: bool = False
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class UnsubscribeOutput:
    success: bool
    already_unsubscribed: bool = False
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ListSubscribersOutput:
    subscribers: list[NewsletterSubscriber]
    total: int


@dataclass(frozen=True)
class SubscriberCounts:
    pending: int
    confirmed: int
    unsubscribed: int

    @property
    def total(self) -> int:
        return self.pending + self.confirmed + self.unsubscribed


# --- Configuration ---


@dataclass(frozen=True)
class NewsletterConfig:
    confirmation_token_expiry_hours: int = 48
    rate_limit_per_ip_per_hour: int = 10
    site_name: str = "Power Plunge"
    base_url: str = "http://localhost:8000"
    confirmation_path: str = "/newsletter/confirm"
    unsubscribe_path: str = "/newsletter/unsubscribe"
