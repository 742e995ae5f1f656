"""
Customer session and affiliate portal.

Customers have no password. They sign in with the email on an order plus
that order's id, which is what the confirmation email gives them.
"""

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from pydantic import BaseModel

from src.adapters.clock import SystemClock
from src.adapters.sqlite.affiliates import SQLiteAffiliateRepo
from src.adapters.sqlite.commerce import SQLiteCustomerRepo, SQLiteOrderRepo
from src.api.auth_utils import CUSTOMER_COOKIE_NAME, create_access_token, set_session_cookie
from src.api.deps import (
    Settings,
    client_ip,
    get_affiliate_repo,
    get_clock,
    get_current_affiliate,
    get_current_customer,
    get_customer_repo,
    get_order_repo,
    get_rate_limiter,
    get_rules,
    get_settings,
)
from src.api.serializers import affiliate_view, referral_view
from src.app_shell.rate_limit import RateLimiter
from src.components.affiliates import affiliate_stats
from src.components.affiliates.models import Affiliate, ReferralStatus
from src.core.ports.email import mask_email
from src.domain.entities import CustomerPrincipal
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


class CustomerLoginRequest(BaseModel):
    email: str
    order_id: UUID


@router.post("/login")
def login(
    body: CustomerLoginRequest,
    request: Request,
    response: Response,
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    customers: SQLiteCustomerRepo = Depends(get_customer_repo),
    limiter: RateLimiter = Depends(get_rate_limiter),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, str]:
    if not limiter.check_login(client_ip(request)):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts. Try again later.",
        )

    email = body.email.strip().lower()
    order = orders.get_by_id(body.order_id)
    customer = customers.get_by_id(order.customer_id) if order else None
    if customer is None or customer.email != email:
        logger.warning(f"Failed customer login for {mask_email(email)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Order not found for that email"
        )

    sessions = rules.auth.sessions
    token = create_access_token(
        data={"sub": str(customer.id), "email": customer.email},
        expires_delta=timedelta(minutes=sessions.customer_ttl_minutes),
        now_utc=clock.now_utc(),
        kind="customer",
    )
    set_session_cookie(
        response, CUSTOMER_COOKIE_NAME, token, sessions.cookie, sessions.customer_ttl_minutes * 60
    )
    return {"access_token": token, "token_type": "bearer"}


@router.post("/logout")
def logout(response: Response) -> dict[str, str]:
    response.delete_cookie(key=CUSTOMER_COOKIE_NAME)
    return {"status": "success"}


@router.get("/me")
def me(
    principal: CustomerPrincipal = Depends(get_current_customer),
    customers: SQLiteCustomerRepo = Depends(get_customer_repo),
    affiliates: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
) -> dict[str, Any]:
    customer = customers.get_by_id(principal.customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return {
        "id": str(customer.id),
        "email": customer.email,
        "name": customer.name,
        "is_affiliate": affiliates.get_by_customer_id(customer.id) is not None,
    }


# --- Affiliate portal ---


@router.get("/affiliate")
def portal_summary(
    affiliate: Affiliate = Depends(get_current_affiliate),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    stats = affiliate_stats(affiliate)
    return {
        "affiliate": affiliate_view(affiliate),
        "stats": {
            "clicks": stats.clicks,
            "referrals": stats.referrals,
            "conversion_rate": stats.conversion_rate,
            "pending_balance": stats.pending_balance,
            "approved_balance": stats.approved_balance,
            "paid_balance": stats.paid_balance,
        },
        "referral_link": f"{settings.base_url}/?ref={affiliate.code}",
    }


@router.get("/affiliate/referrals")
def portal_referrals(
    status_filter: str | None = Query(None, alias="status"),
    affiliate: Affiliate = Depends(get_current_affiliate),
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
) -> list[dict[str, Any]]:
    referral_status = None
    if status_filter:
        try:
            referral_status = ReferralStatus(status_filter)
        except ValueError:
            raise HTTPException(status_code=400, detail="Unknown referral status") from None
    referrals = repo.list_referrals(affiliate_id=affiliate.id, status=referral_status)
    return [referral_view(r) for r in referrals]
