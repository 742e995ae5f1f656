"""
Public newsletter and analytics endpoints.

Endpoints (mounted under /api/public):
- POST /newsletter/subscribe - start double opt-in
- GET /newsletter/confirm?token= - confirm a pending subscription
- GET /newsletter/unsubscribe?token= - one-click unsubscribe
- POST /events - consent-gated analytics ingest
"""

from typing import Any
from urllib.parse import unquote

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, Field, field_validator

from src.adapters.clock import SystemClock
from src.adapters.sqlite.marketing import SQLiteEventRepo, SQLiteNewsletterRepo
from src.api.deps import (
    client_ip,
    get_clock,
    get_event_repo,
    get_ingest_config,
    get_mailer,
    get_newsletter_config,
    get_newsletter_repo,
    get_purchase_dedupe,
    get_rate_limiter,
    get_rules,
)
from src.api.errors import raise_for_errors
from src.app_shell.rate_limit import RateLimiter
from src.components.consent import run_ingest_event
from src.components.consent.component import PurchaseDedupe
from src.components.consent.models import IngestConfig, IngestEventInput
from src.components.newsletter import run_confirm, run_subscribe, run_unsubscribe
from src.components.newsletter.models import (
    ConfirmInput,
    NewsletterConfig,
    SubscribeInput,
    UnsubscribeInput,
)
from src.components.notifications import StorefrontMailer
from src.rules.models import Rules

router = APIRouter()


# --- Request/Response Models ---


class SubscribeRequest(BaseModel):
    """Request body for newsletter subscription."""

    email: str = Field(..., description="Email address to subscribe")
    source: str | None = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        return v.strip()


class MessageResponse(BaseModel):
    success: bool
    message: str


class EventRequest(BaseModel):
    name: str = Field(..., max_length=64)
    params: dict[str, Any] = Field(default_factory=dict)
    path: str | None = Field(None, max_length=2048)
    event_id: str | None = Field(None, max_length=128)
    consent: dict[str, Any] | str | None = None


# --- Newsletter ---


@router.post("/newsletter/subscribe", response_model=MessageResponse)
def subscribe(
    body: SubscribeRequest,
    request: Request,
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
    mailer: StorefrontMailer = Depends(get_mailer),
    limiter: RateLimiter = Depends(get_rate_limiter),
    config: NewsletterConfig = Depends(get_newsletter_config),
    clock: SystemClock = Depends(get_clock),
) -> MessageResponse:
    """
    Subscribe to the newsletter.

    The response is the same for new and existing subscribers so the endpoint
    cannot be used to probe for addresses.
    """
    result = run_subscribe(
        SubscribeInput(email=body.email, ip_address=client_ip(request), source=body.source),
        repo,
        clock,
        email_sender=mailer,
        rate_limiter=limiter,
        config=config,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return MessageResponse(
        success=True, message="Please check your email to confirm your subscription"
    )


@router.get("/newsletter/confirm", response_model=MessageResponse)
def confirm(
    token: str = Query(...),
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
    mailer: StorefrontMailer = Depends(get_mailer),
    config: NewsletterConfig = Depends(get_newsletter_config),
    clock: SystemClock = Depends(get_clock),
) -> MessageResponse:
    result = run_confirm(
        ConfirmInput(token=token), repo, clock, email_sender=mailer, config=config
    )
    if not result.success:
        raise_for_errors(result.errors)
    if result.already_confirmed:
        return MessageResponse(success=True, message="Subscription already confirmed")
    return MessageResponse(success=True, message="Subscription confirmed")


@router.get("/newsletter/unsubscribe", response_model=MessageResponse)
def unsubscribe(
    token: str = Query(...),
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
    clock: SystemClock = Depends(get_clock),
) -> MessageResponse:
    result = run_unsubscribe(UnsubscribeInput(token=token), repo, clock)
    if not result.success:
        raise_for_errors(result.errors)
    return MessageResponse(success=True, message="You have been unsubscribed")


# --- Analytics ---


@router.post("/events", status_code=status.HTTP_202_ACCEPTED)
def ingest_event(
    body: EventRequest,
    request: Request,
    repo: SQLiteEventRepo = Depends(get_event_repo),
    dedupe: PurchaseDedupe = Depends(get_purchase_dedupe),
    config: IngestConfig = Depends(get_ingest_config),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    """Store an analytics event when the visitor's consent allows it."""
    consent: dict[str, Any] | str | None = body.consent
    if consent is None:
        cookie = request.cookies.get(rules.consent.storage_key)
        consent = unquote(cookie) if cookie else None

    result = run_ingest_event(
        IngestEventInput(
            name=body.name,
            params=body.params,
            path=body.path,
            event_id=body.event_id,
            consent=consent,
            user_agent=request.headers.get("user-agent"),
        ),
        repo=repo,
        time=clock,
        dedupe=dedupe,
        config=config,
    )
    if not result.success:
        raise_for_errors(result.errors)
    return {"accepted": result.accepted, "reason": result.reason}