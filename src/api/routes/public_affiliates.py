"""
Public affiliate endpoints: click tracking and invite-only signup.

Endpoints (mounted under /api/public):
- POST /affiliate/track - record a click and set the attribution cookie
- GET /affiliate/invites/{invite_code} - check an invite before showing the form
- POST /affiliate/invites/{invite_code}/send-code - SMS verification for phone invites
- POST /affiliate/signup - accept the agreement and create the affiliate
"""

import logging
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from src.adapters.clock import SystemClock
from src.adapters.dev_sms import DevSmsAdapter
from src.adapters.sqlite.affiliates import SQLiteAffiliateRepo, SQLiteInviteRepo
from src.adapters.sqlite.commerce import SQLiteCustomerRepo
from src.api.auth_utils import CUSTOMER_COOKIE_NAME, create_access_token, set_session_cookie
from src.api.deps import (
    Settings,
    client_ip,
    get_affiliate_repo,
    get_affiliate_settings,
    get_clock,
    get_customer_repo,
    get_invite_repo,
    get_mailer,
    get_rate_limiter,
    get_rules,
    get_settings,
    get_sms,
)
from src.api.errors import raise_for_errors
from src.app_shell.rate_limit import RateLimiter
from src.components.affiliates import (
    AffiliateSignupInput,
    SendPhoneCodeInput,
    TrackClickInput,
    ValidateInviteInput,
    run_affiliate_signup,
    run_send_phone_code,
    run_track_click,
    run_validate_invite,
)
from src.components.affiliates.models import AffiliateSettings
from src.components.notifications import StorefrontMailer
from src.components.notifications.models import WelcomeEmailInput
from src.core.ports.email import mask_email
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()

AFFILIATE_COOKIE = "affiliate"
PORTAL_PATH = "/affiliate/portal"


class TrackRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    landing_url: str | None = Field(None, max_length=2048)
    referrer: str | None = Field(None, max_length=2048)


class SignupRequest(BaseModel):
    invite_code: str
    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=254)
    agreement_accepted: bool = False
    phone: str | None = None
    verification_code: str | None = None


@router.post("/affiliate/track")
def track_click(
    body: TrackRequest,
    request: Request,
    response: Response,
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    settings: AffiliateSettings = Depends(get_affiliate_settings),
    app_settings: Settings = Depends(get_settings),
    limiter: RateLimiter = Depends(get_rate_limiter),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    """Record a referral click. The cookie is what checkout uses for attribution."""
    ip = client_ip(request)
    if not limiter.check_affiliate_track(ip):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many requests")

    result = run_track_click(
        TrackClickInput(
            code=body.code,
            ip_address=ip,
            user_agent=request.headers.get("user-agent"),
            referrer=body.referrer or request.headers.get("referer"),
            landing_url=body.landing_url,
            ip_salt=app_settings.affiliate_ip_salt,
        ),
        repo,
        settings,
        clock,
    )
    if not result.success or result.cookie_value is None:
        raise_for_errors(result.errors)

    response.set_cookie(
        key=AFFILIATE_COOKIE,
        value=result.cookie_value,
        max_age=result.max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=rules.auth.sessions.cookie.secure,
    )
    return {"tracked": True, "is_friends_family": result.is_friends_family}


@router.get("/affiliate/invites/{invite_code}")
def validate_invite(
    invite_code: str,
    repo: SQLiteInviteRepo = Depends(get_invite_repo),
    settings: AffiliateSettings = Depends(get_affiliate_settings),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    result = run_validate_invite(ValidateInviteInput(invite_code=invite_code), repo, settings, clock)
    if not result.valid:
        raise_for_errors(result.errors)
    return {
        "valid": True,
        "requires_phone_verification": result.requires_phone_verification,
        "target_email": result.target_email,
        "agreement_text": result.agreement_text,
        "agreement_version": result.agreement_version,
    }


@router.post("/affiliate/invites/{invite_code}/send-code")
def send_phone_code(
    invite_code: str,
    repo: SQLiteInviteRepo = Depends(get_invite_repo),
    sms: DevSmsAdapter = Depends(get_sms),
    limiter: RateLimiter = Depends(get_rate_limiter),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, bool]:
    if not limiter.check_phone_verification(invite_code):
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many requests")
    result = run_send_phone_code(SendPhoneCodeInput(invite_code=invite_code), repo, sms, clock)
    if not result.success:
        raise_for_errors(result.errors)
    return {"sent": True}


@router.post("/affiliate/signup", status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupRequest,
    request: Request,
    response: Response,
    invites: SQLiteInviteRepo = Depends(get_invite_repo),
    affiliates: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    customers: SQLiteCustomerRepo = Depends(get_customer_repo),
    settings: AffiliateSettings = Depends(get_affiliate_settings),
    sms: DevSmsAdapter = Depends(get_sms),
    mailer: StorefrontMailer = Depends(get_mailer),
    app_settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    """Create the affiliate and sign the new account in to the portal."""
    result = run_affiliate_signup(
        AffiliateSignupInput(
            invite_code=body.invite_code,
            name=body.name,
            email=body.email,
            agreement_accepted=body.agreement_accepted,
            phone=body.phone,
            verification_code=body.verification_code,
            signer_ip=client_ip(request),
            ip_salt=app_settings.affiliate_ip_salt,
        ),
        invites,
        affiliates,
        customers,
        settings,
        clock,
        sms=sms,
        code_random_length=rules.affiliates.code_random_length,
    )
    if not result.success or result.affiliate is None or result.customer_id is None:
        raise_for_errors(result.errors)

    affiliate = result.affiliate
    email = body.email.strip().lower()
    mailer.affiliate_welcome(
        WelcomeEmailInput(
            recipient=email,
            name=body.name,
            affiliate_code=affiliate.code,
            portal_url=f"{app_settings.base_url}{PORTAL_PATH}",
        )
    )

    sessions = rules.auth.sessions
    token = create_access_token(
        data={"sub": str(result.customer_id), "email": email},
        expires_delta=timedelta(minutes=sessions.customer_ttl_minutes),
        now_utc=clock.now_utc(),
        kind="customer",
    )
    set_session_cookie(
        response, CUSTOMER_COOKIE_NAME, token, sessions.cookie, sessions.customer_ttl_minutes * 60
    )
    logger.info(f"Affiliate {affiliate.code} signed up ({mask_email(email)})")
    return {"affiliate_id": str(affiliate.id), "code": affiliate.code}
