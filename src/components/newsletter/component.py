"""
Newsletter component.

Double opt-in subscription management:
- subscribe creates a pending subscriber and emails a confirmation link
- confirm consumes the single-use confirmation token
- unsubscribe uses the permanent unsubscribe token and is idempotent

Disposable domains are rejected and sign-ups are rate limited per IP.
"""

from __future__ import annotations

import logging
import re
import secrets
from datetime import datetime, timedelta
from uuid import uuid4

from src.components.newsletter.models import (
    ConfirmInput,
    ConfirmOutput,
    ListSubscribersInput,
    ListSubscribersOutput,
    NewsletterConfig,
    NewsletterSubscriber,
    SubscribeInput,
    SubscribeOutput,
    SubscriberCounts,
    SubscriberStatus,
    UnsubscribeInput,
    UnsubscribeOutput,
    ValidateEmailOutput,
    ValidationError,
    can_transition,
)
from src.components.newsletter.ports import (
    NewsletterEmailSenderPort,
    NewsletterRepoPort,
    RateLimiterPort,
    TimePort,
)
from src.core.ports.email import mask_email

logger = logging.getLogger(__name__)

# RFC 5322, simplified
EMAIL_REGEX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@"
    r"[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

DEFAULT_DISPOSABLE_DOMAINS: frozenset[str] = frozenset(
    {
        "10minutemail.com",
        "guerrillamail.com",
        "mailinator.com",
        "tempmail.com",
        "throwaway.email",
        "yopmail.com",
        "temp-mail.org",
        "fakeinbox.com",
        "sharklasers.com",
        "trashmail.com",
    }
)

RATE_LIMIT_WINDOW_SECONDS = 3600


def validate_email(
    email: str,
    check_disposable: bool = True,
    disposable_domains: set[str] | frozenset[str] | None = None,
) -> ValidateEmailOutput:
    """
    Validate an email address and optionally reject disposable domains.

    Also used by checkout, with check_disposable=False.
    """
    normalized = email.strip().lower() if email else ""

    if not normalized:
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("EMPTY_EMAIL", "Email address is required", "email")],
        )
    if len(normalized) > 254:
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("EMAIL_TOO_LONG", "Email address is too long", "email")],
        )
    if not EMAIL_REGEX.match(normalized):
        return ValidateEmailOutput(
            is_valid=False,
            errors=[ValidationError("INVALID_FORMAT", "Invalid email format", "email")],
        )

    if check_disposable:
        domains = disposable_domains or DEFAULT_DISPOSABLE_DOMAINS
        if normalized.split("@", 1)[1] in domains:
            return ValidateEmailOutput(
                is_valid=False,
                normalized_email=normalized,
                is_disposable=True,
                errors=[
                    ValidationError(
                        "DISPOSABLE_EMAIL", "Disposable email addresses are not allowed", "email"
                    )
                ],
            )

    return ValidateEmailOutput(is_valid=True, normalized_email=normalized)


def generate_token(length: int = 32) -> str:
    return secrets.token_urlsafe(length)


def is_token_expired(subscriber: NewsletterSubscriber, max_age_hours: int, now: datetime) -> bool:
    """Confirmation tokens age from the (latest) sign-up time."""
    return now > subscriber.created_at + timedelta(hours=max_age_hours)


def build_confirmation_url(base_url: str, token: str, path: str = "/newsletter/confirm") -> str:
    return f"{base_url.rstrip('/')}{path}?token={token}"


def build_unsubscribe_url(
    base_url: str, token: str, path: str = "/newsletter/unsubscribe"
) -> str:
    return f"{base_url.rstrip('/')}{path}?token={token}"


def _send_confirmation(
    sender: NewsletterEmailSenderPort | None,
    subscriber: NewsletterSubscriber,
    cfg: NewsletterConfig,
) -> None:
    if sender is None or not subscriber.confirmation_token:
        return
    url = build_confirmation_url(cfg.base_url, subscriber.confirmation_token, cfg.confirmation_path)
    if not sender.send_confirmation_email(subscriber.email, url, cfg.site_name):
        logger.error(f"Confirmation email to {mask_email(subscriber.email)} was not delivered")


# --- Run Handlers ---


def run_subscribe(
    inp: SubscribeInput,
    repo: NewsletterRepoPort,
    time: TimePort,
    *,
    email_sender: NewsletterEmailSenderPort | None = None,
    rate_limiter: RateLimiterPort | None = None,
    config: NewsletterConfig | None = None,
    disposable_domains: set[str] | None = None,
) -> SubscribeOutput:
    cfg = config or NewsletterConfig()

    validation = validate_email(inp.email, disposable_domains=disposable_domains)
    if not validation.is_valid or validation.normalized_email is None:
        return SubscribeOutput(success=False, errors=validation.errors)
    email = validation.normalized_email

    if rate_limiter and inp.ip_address:
        allowed = rate_limiter.allow_request(
            f"newsletter:{inp.ip_address}",
            RATE_LIMIT_WINDOW_SECONDS,
            cfg.rate_limit_per_ip_per_hour,
        )
        if not allowed:
            logger.warning("Newsletter sign-up rate limited")
            return SubscribeOutput(
                success=False,
                errors=[ValidationError("RATE_LIMIT", "Too many attempts, please try later")],
            )

    now = time.now_utc()
    existing = repo.get_by_email(email)

    if existing and existing.status == SubscriberStatus.CONFIRMED:
        return SubscribeOutput(
            success=True,
            subscriber_id=existing.id,
            needs_confirmation=False,
            already_subscribed=True,
        )

    if existing and existing.status == SubscriberStatus.PENDING:
        if is_token_expired(existing, cfg.confirmation_token_expiry_hours, now):
            existing.confirmation_token = generate_token()
            existing.created_at = now
            repo.save(existing)
        _send_confirmation(email_sender, existing, cfg)
        return SubscribeOutput(success=True, subscriber_id=existing.id)

    if existing and can_transition(existing.status, SubscriberStatus.PENDING):
        existing.status = SubscriberStatus.PENDING
        existing.confirmation_token = generate_token()
        existing.source = inp.source or existing.source
        existing.created_at = now
        existing.confirmed_at = None
        existing.unsubscribed_at = None
        subscriber = repo.save(existing)
    else:
        subscriber = repo.save(
            NewsletterSubscriber(
                id=uuid4(),
                email=email,
                status=SubscriberStatus.PENDING,
                confirmation_token=generate_token(),
                unsubscribe_token=generate_token(),
                source=inp.source,
                created_at=now,
            )
        )

    logger.info(f"Newsletter sign-up pending for {mask_email(email)}")
    _send_confirmation(email_sender, subscriber, cfg)
    return SubscribeOutput(success=True, subscriber_id=subscriber.id)


def run_confirm(
    inp: ConfirmInput,
    repo: NewsletterRepoPort,
    time: TimePort,
    *,
    email_sender: NewsletterEmailSenderPort | None = None,
    config: NewsletterConfig | None = None,
) -> ConfirmOutput:
    cfg = config or NewsletterConfig()

    if not inp.token:
        return ConfirmOutput(
            success=False,
            errors=[ValidationError("MISSING_TOKEN", "Confirmation token is required")],
        )

    subscriber = repo.get_by_confirmation_token(inp.token)
    if subscriber is None:
        return ConfirmOutput(
            success=False,
            errors=[ValidationError("INVALID_TOKEN", "Invalid or expired confirmation link")],
        )
    if subscriber.status == SubscriberStatus.CONFIRMED:
        return ConfirmOutput(success=True, subscriber_id=subscriber.id, already_confirmed=True)

    now = time.now_utc()
    if is_token_expired(subscriber, cfg.confirmation_token_expiry_hours, now):
        return ConfirmOutput(
            success=False,
            errors=[ValidationError("TOKEN_EXPIRED", "Confirmation link has expired")],
        )
    if not can_transition(subscriber.status, SubscriberStatus.CONFIRMED):
        return ConfirmOutput(
            success=False,
            errors=[ValidationError("INVALID_STATE", "Cannot confirm subscription in current state")],
        )

    subscriber.status = SubscriberStatus.CONFIRMED
    subscriber.confirmation_token = None
    subscriber.confirmed_at = now
    repo.save(subscriber)
    logger.info(f"Newsletter subscriber {subscriber.id} confirmed")

    if email_sender and subscriber.unsubscribe_token:
        url = build_unsubscribe_url(cfg.base_url, subscriber.unsubscribe_token, cfg.unsubscribe_path)
        email_sender.send_welcome_email(subscriber.email, url, cfg.site_name)

    return ConfirmOutput(success=True, subscriber_id=subscriber.id)


def run_unsubscribe(
    inp: UnsubscribeInput,
    repo: NewsletterRepoPort,
    time: TimePort,
) -> UnsubscribeOutput:
    if not inp.token:
        return UnsubscribeOutput(
            success=False,
            errors=[ValidationError("MISSING_TOKEN", "Unsubscribe token is required")],
        )

    subscriber = repo.get_by_unsubscribe_token(inp.token)
    if subscriber is None:
        return UnsubscribeOutput(
            success=False, errors=[ValidationError("INVALID_TOKEN", "Invalid unsubscribe link")]
        )
    if subscriber.status == SubscriberStatus.UNSUBSCRIBED:
        return UnsubscribeOutput(success=True, already_unsubscribed=True)
    if not can_transition(subscriber.status, SubscriberStatus.UNSUBSCRIBED):
        return UnsubscribeOutput(
            success=False,
            errors=[ValidationError("INVALID_STATE", "Cannot unsubscribe in current state")],
        )

    subscriber.status = SubscriberStatus.UNSUBSCRIBED
    subscriber.confirmation_token = None
    subscriber.unsubscribed_at = time.now_utc()
    repo.save(subscriber)
    logger.info(f"Newsletter subscriber {subscriber.id} unsubscribed")
    return UnsubscribeOutput(success=True)


def run_list_subscribers(
    inp: ListSubscribersInput, repo: NewsletterRepoPort
) -> ListSubscribersOutput:
    """Admin listing; an unknown status filter is treated as no filter."""
    status: SubscriberStatus | None = None
    if inp.status:
        try:
            status = SubscriberStatus(inp.status)
        except ValueError:
            status = None
    limit = max(1, min(inp.limit, 200))
    offset = max(0, inp.offset)
    return ListSubscribersOutput(
        subscribers=repo.list_subscribers(status, limit, offset),
        total=repo.count_by_status(status),
    )


def subscriber_counts(repo: NewsletterRepoPort) -> SubscriberCounts:
    return SubscriberCounts(
        pending=repo.count_by_status(SubscriberStatus.PENDING),
        confirmed=repo.count_by_status(SubscriberStatus.CONFIRMED),
        unsubscribed=repo.count_by_status(SubscriberStatus.UNSUBSCRIBED),
    )


def run(
    inp: SubscribeInput | ConfirmInput | UnsubscribeInput | ListSubscribersInput,
    *,
    repo: NewsletterRepoPort,
    time: TimePort,
    email_sender: NewsletterEmailSenderPort | None = None,
    rate_limiter: RateLimiterPort | None = None,
    config: NewsletterConfig | None = None,
    disposable_domains: set[str] | None = None,
) -> SubscribeOutput | ConfirmOutput | UnsubscribeOutput | ListSubscribersOutput:
    """Newsletter component entry point."""
    if isinstance(inp, SubscribeInput):
        return run_subscribe(
            inp,
            repo,
            time,
            email_sender=email_sender,
            rate_limiter=rate_limiter,
            config=config,
            disposable_domains=disposable_domains,
        )
    if isinstance(inp, ConfirmInput):
        return run_confirm(inp, repo, time, email_sender=email_sender, config=config)
    if isinstance(inp, UnsubscribeInput):
        return run_unsubscribe(inp, repo, time)
    if isinstance(inp, ListSubscribersInput):
        return run_list_subscribers(inp, repo)
    raise ValueError(f"Unknown input type: {type(inp)}")
