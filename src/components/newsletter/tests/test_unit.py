"""
Newsletter component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from src.adapters.clock import FixedClock
from src.components.newsletter import (
    ConfirmInput,
    ListSubscribersInput,
    NewsletterConfig,
    NewsletterSubscriber,
    SubscribeInput,
    SubscriberStatus,
    UnsubscribeInput,
    build_confirmation_url,
    can_transition,
    generate_token,
    run,
    subscriber_counts,
    validate_email,
)

NOW = datetime(2025, 4, 1, 9, 0, tzinfo=UTC)

# --- Mocks ---


class MockNewsletterRepo:
    """In-memory newsletter repository."""

    def __init__(self) -> None:
        self.subscribers: dict[UUID, NewsletterSubscriber] = {}

    def _find(self, **match: str) -> NewsletterSubscriber | None:
        key, value = next(iter(match.items()))
        return next((s for s in self.subscribers.values() if getattr(s, key) == value), None)

    def get_by_id(self, subscriber_id: UUID) -> NewsletterSubscriber | None:
        return self.subscribers.get(subscriber_id)

    def get_by_email(self, email: str) -> NewsletterSubscriber | None:
        return self._find(email=email.lower())

    def get_by_confirmation_token(self, token: str) -> NewsletterSubscriber | None:
        return self._find(confirmation_token=token)

    def get_by_unsubscribe_token(self, token: str) -> NewsletterSubscriber | None:
        return self._find(unsubscribe_token=token)

    def save(self, subscriber: NewsletterSubscriber) -> NewsletterSubscriber:
        self.subscribers[subscriber.id] = subscriber
        return subscriber

    def list_subscribers(self, status=None, limit=50, offset=0):
        rows = [s for s in self.subscribers.values() if status is None or s.status == status]
        return rows[offset : offset + limit]

    def count_by_status(self, status=None) -> int:
        return len([s for s in self.subscribers.values() if status is None or s.status == status])


class MockEmailSender:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []

    def send_confirmation_email(self, recipient_email, confirmation_url, site_name) -> bool:
        self.sent.append(("confirmation", recipient_email, confirmation_url))
        return True

    def send_welcome_email(self, recipient_email, unsubscribe_url, site_name) -> bool:
        self.sent.append(("welcome", recipient_email, unsubscribe_url))
        return True


class MockRateLimiter:
    def __init__(self, limit_hit: bool = False) -> None:
        self.limit_hit = limit_hit
        self.keys: list[str] = []

    def allow_request(self, key: str, window: int, limit: int) -> bool:
        self.keys.append(key)
        return not self.limit_hit


# --- Fixtures ---


@pytest.fixture
def repo() -> MockNewsletterRepo:
    return MockNewsletterRepo()


@pytest.fixture
def sender() -> MockEmailSender:
    return MockEmailSender()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def config() -> NewsletterConfig:
    return NewsletterConfig(base_url="https://shop.test/")


def subscribe(repo, clock, sender=None, email="ana@example.com", **kwargs):
    return run(SubscribeInput(email=email), repo=repo, time=clock, email_sender=sender, **kwargs)


# --- Pure functions ---


class TestValidateEmail:
    def test_normalizes(self) -> None:
        result = validate_email("  Ana@Example.COM ")
        assert result.is_valid
        assert result.normalized_email == "ana@example.com"

    @pytest.mark.parametrize("email", ["", "   ", "no-at-sign", "user@", "user@localhost"])
    def test_invalid(self, email: str) -> None:
        assert validate_email(email).is_valid is False

    def test_too_long(self) -> None:
        result = validate_email("a" * 250 + "@x.com")
        assert result.errors[0].code == "EMAIL_TOO_LONG"

    def test_disposable_rejected_unless_disabled(self) -> None:
        assert validate_email("x@mailinator.com").is_disposable
        assert validate_email("x@mailinator.com", check_disposable=False).is_valid

    def test_custom_disposable_domains(self) -> None:
        assert validate_email("x@spam.test", disposable_domains={"spam.test"}).is_valid is False


def test_tokens_are_unique_and_url_safe() -> None:
    tokens = {generate_token() for _ in range(50)}
    assert len(tokens) == 50
    assert all("/" not in t and "+" not in t for t in tokens)


def test_confirmation_url_strips_trailing_slash() -> None:
    assert build_confirmation_url("https://shop.test/", "abc") == (
        "https://shop.test/newsletter/confirm?token=abc"
    )


def test_resubscribe_transition_allowed() -> None:
    assert can_transition(SubscriberStatus.UNSUBSCRIBED, SubscriberStatus.PENDING)
    assert not can_transition(SubscriberStatus.PENDING, SubscriberStatus.UNSUBSCRIBED)


# --- Subscribe ---


class TestSubscribe:
    def test_new_subscriber_is_pending(self, repo, clock, sender, config) -> None:
        result = subscribe(repo, clock, sender, config=config)
        assert result.success and result.needs_confirmation
        subscriber = repo.get_by_id(result.subscriber_id)
        assert subscriber.status == SubscriberStatus.PENDING
        assert subscriber.created_at == NOW
        kind, recipient, url = sender.sent[0]
        assert (kind, recipient) == ("confirmation", "ana@example.com")
        assert url == f"https://shop.test/newsletter/confirm?token={subscriber.confirmation_token}"

    def test_disposable_rejected(self, repo, clock) -> None:
        result = subscribe(repo, clock, email="x@yopmail.com")
        assert not result.success
        assert result.errors[0].code == "DISPOSABLE_EMAIL"
        assert repo.subscribers == {}

    def test_confirmed_is_idempotent(self, repo, clock, sender) -> None:
        repo.save(
            NewsletterSubscriber(
                id=uuid4(), email="ana@example.com", status=SubscriberStatus.CONFIRMED
            )
        )
        result = subscribe(repo, clock, sender)
        assert result.already_subscribed
        assert result.needs_confirmation is False
        assert sender.sent == []

    def test_pending_resends_same_token(self, repo, clock, sender) -> None:
        first = subscribe(repo, clock, sender)
        token = repo.get_by_id(first.subscriber_id).confirmation_token
        second = subscribe(repo, clock, sender)
        assert second.subscriber_id == first.subscriber_id
        assert len(sender.sent) == 2
        assert repo.get_by_id(first.subscriber_id).confirmation_token == token

    def test_pending_with_expired_token_gets_new_one(self, repo, clock, sender) -> None:
        first = subscribe(repo, clock, sender)
        token = repo.get_by_id(first.subscriber_id).confirmation_token
        clock.advance(hours=49)
        subscribe(repo, clock, sender)
        assert repo.get_by_id(first.subscriber_id).confirmation_token != token

    def test_unsubscribed_can_sign_up_again(self, repo, clock) -> None:
        old = repo.save(
            NewsletterSubscriber(
                id=uuid4(),
                email="ana@example.com",
                status=SubscriberStatus.UNSUBSCRIBED,
                unsubscribe_token="unsub",
            )
        )
        result = subscribe(repo, clock)
        assert result.subscriber_id == old.id
        assert old.status == SubscriberStatus.PENDING
        assert old.confirmation_token
        assert old.unsubscribe_token == "unsub"

    def test_rate_limited(self, repo, clock) -> None:
        limiter = MockRateLimiter(limit_hit=True)
        result = run(
            SubscribeInput(email="ana@example.com", ip_address="203.0.113.9"),
            repo=repo,
            time=clock,
            rate_limiter=limiter,
        )
        assert result.errors[0].code == "RATE_LIMIT"
        assert limiter.keys == ["newsletter:203.0.113.9"]


# --- Confirm / Unsubscribe ---


class TestConfirm:
    def test_confirm_consumes_token(self, repo, clock, sender) -> None:
        sub = repo.get_by_id(subscribe(repo, clock).subscriber_id)
        token = sub.confirmation_token
        result = run(ConfirmInput(token=token), repo=repo, time=clock, email_sender=sender)
        assert result.success
        assert sub.status == SubscriberStatus.CONFIRMED
        assert sub.confirmation_token is None
        assert sub.confirmed_at == NOW
        assert sender.sent[-1][0] == "welcome"

        again = run(ConfirmInput(token=token), repo=repo, time=clock)
        assert again.errors[0].code == "INVALID_TOKEN"

    def test_expired_token(self, repo, clock) -> None:
        sub = repo.get_by_id(subscribe(repo, clock).subscriber_id)
        clock.advance(hours=48, seconds=1)
        result = run(ConfirmInput(token=sub.confirmation_token), repo=repo, time=clock)
        assert result.errors[0].code == "TOKEN_EXPIRED"

    def test_missing_token(self, repo, clock) -> None:
        result = run(ConfirmInput(token=""), repo=repo, time=clock)
        assert result.errors[0].code == "MISSING_TOKEN"


class TestUnsubscribe:
    def test_unsubscribe_is_idempotent(self, repo, clock) -> None:
        sub = repo.save(
            NewsletterSubscriber(
                id=uuid4(),
                email="a@b.com",
                status=SubscriberStatus.CONFIRMED,
                unsubscribe_token="tok",
            )
        )
        first = run(UnsubscribeInput(token="tok"), repo=repo, time=clock)
        assert first.success
        assert sub.unsubscribed_at == NOW
        second = run(UnsubscribeInput(token="tok"), repo=repo, time=clock)
        assert second.already_unsubscribed

    def test_pending_cannot_unsubscribe(self, repo, clock) -> None:
        repo.save(NewsletterSubscriber(id=uuid4(), email="a@b.com", unsubscribe_token="tok"))
        result = run(UnsubscribeInput(token="tok"), repo=repo, time=clock)
        assert result.errors[0].code == "INVALID_STATE"


class TestAdmin:
    def test_list_and_counts(self, repo, clock) -> None:
        subscribe(repo, clock, email="a@example.com")
        subscribe(repo, clock, email="b@example.com")
        repo.save(
            NewsletterSubscriber(id=uuid4(), email="c@example.com", status=SubscriberStatus.CONFIRMED)
        )

        listed = run(ListSubscribersInput(status="pending"), repo=repo, time=clock)
        assert listed.total == 2
        assert len(listed.subscribers) == 2

        everything = run(ListSubscribersInput(status="bogus"), repo=repo, time=clock)
        assert everything.total == 3

        counts = subscriber_counts(repo)
        assert (counts.pending, counts.confirmed, counts.unsubscribed) == (2, 1, 0)
        assert counts.total == 3


def test_unknown_input_raises(repo, clock) -> None:
    with pytest.raises(ValueError):
        run(object(), repo=repo, time=clock)  # type: ignore[arg-type]
