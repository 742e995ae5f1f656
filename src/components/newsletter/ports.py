"""
Newsletter component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.newsletter.models import NewsletterSubscriber, SubscriberStatus


class NewsletterRepoPort(Protocol):
    def get_by_id(self, subscriber_id: UUID) -> NewsletterSubscriber | None: ...

    def get_by_email(self, email: str) -> NewsletterSubscriber | None: ...

    def get_by_confirmation_token(self, token: str) -> NewsletterSubscriber | None: ...

    def get_by_unsubscribe_token(self, token: str) -> NewsletterSubscriber | None: ...

    def save(self, subscriber: NewsletterSubscriber) -> NewsletterSubscriber: ...

    def list_subscribers(
        self, status: SubscriberStatus | None = None, limit: int = 50, offset: int = 0
    ) -> list[NewsletterSubscriber]: ...

    def count_by_status(self, status: SubscriberStatus | None = None) -> int: ...


class RateLimiterPort(Protocol):
    """Matches the app's sliding-window RateLimiter."""

    def allow_request(self, key: str, window: int, limit: int) -> bool:
        """Record the attempt and return True, or return False when over the limit."""
        ...


class NewsletterEmailSenderPort(Protocol):
    def send_confirmation_email(
        self, recipient_email: str, confirmation_url: str, site_name: str
    ) -> bool: ...

    def send_welcome_email(
        self, recipient_email: str, unsubscribe_url: str, site_name: str
    ) -> bool: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
