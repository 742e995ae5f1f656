"""
Newsletter component.

Double opt-in newsletter subscriptions.
"""

from src.components.newsletter.component import (
    DEFAULT_DISPOSABLE_DOMAINS,
    EMAIL_REGEX,
    build_confirmation_url,
    build_unsubscribe_url,
    generate_token,
    is_token_expired,
    run,
    run_confirm,
    run_list_subscribers,
    run_subscribe,
    run_unsubscribe,
    subscriber_counts,
    validate_email,
)
from src.components.newsletter.models import (
    VALID_TRANSITIONS,
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
)

__all__ = [
    "run",
    "run_subscribe",
    "run_confirm",
    "run_unsubscribe",
    "run_list_subscribers",
    "subscriber_counts",
    "validate_email",
    "generate_token",
    "is_token_expired",
    "build_confirmation_url",
    "build_unsubscribe_url",
    "DEFAULT_DISPOSABLE_DOMAINS",
    "EMAIL_REGEX",
    "NewsletterSubscriber",
    "SubscriberStatus",
    "VALID_TRANSITIONS",
    "can_transition",
    "NewsletterConfig",
    "SubscribeInput",
    "SubscribeOutput",
    "ConfirmInput",
    "ConfirmOutput",
    "UnsubscribeInput",
    "UnsubscribeOutput",
    "ListSubscribersInput",
    "ListSubscribersOutput",
    "SubscriberCounts",
    "ValidateEmailOutput",
    "ValidationError",
    "NewsletterRepoPort",
    "RateLimiterPort",
    "NewsletterEmailSenderPort",
]
