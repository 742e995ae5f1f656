"""
Admin affiliate program endpoints.

Affiliates, invites, referral review, payout batches and program settings.
"""

import logging
from dataclasses import replace
from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.adapters.clock import SystemClock
from src.adapters.sqlite.affiliates import SQLiteAffiliateRepo, SQLiteInviteRepo, SQLitePayoutRepo
from src.api.deps import (
    Settings,
    get_affiliate_repo,
    get_affiliate_settings,
    get_audit_recorder,
    get_clock,
    get_invite_repo,
    get_mailer,
    get_payout_repo,
    get_rules,
    get_settings,
    require_permission,
)
from src.api.errors import raise_for_errors
from src.api.serializers import affiliate_view, invite_view, plain, referral_view
from src.components.affiliates import (
    ApproveReferralInput,
    AutoApproveInput,
    CreateInviteInput,
    ExecutePayoutBatchInput,
    PreparePayoutBatchInput,
    VoidReferralInput,
    affiliate_stats,
    leaderboard,
    run_approve_referral,
    run_auto_approve,
    run_create_invite,
    run_execute_payout_batch,
    run_prepare_payout_batch,
    run_void_referral,
)
from src.components.affiliates.models import (
    AffiliateSettings,
    AffiliateStatus,
    RateType,
    ReferralStatus,
)
from src.components.audit import AuditRecorder
from src.components.notifications import StorefrontMailer
from src.components.notifications.models import InviteEmailInput
from src.domain.entities import User
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()

RateName = Literal["PERCENT", "FIXED"]
SIGNUP_PATH = "/affiliate/signup"


class AffiliateUpdateRequest(BaseModel):
    status: Literal["active", "paused", "suspended"] | None = None
    custom_commission_type: RateName | None = None
    custom_commission_value: int | None = Field(None, ge=0)
    custom_discount_type: RateName | None = None
    custom_discount_value: int | None = Field(None, ge=0)
    clear_custom_rates: bool = False
    payout_account_id: str | None = None
    payouts_enabled: bool | None = None
    details_submitted: bool | None = None
    payout_country: str | None = Field(None, min_length=2, max_length=2)


class InviteCreateRequest(BaseModel):
    target_email: str | None = None
    target_phone: str | None = None
    expires_in_days: int | None = Field(None, ge=0)
    max_uses: int = 1
    notes: str | None = Field(None, max_length=500)
    send_email: bool = True


class VoidRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class AffiliateSettingsRequest(BaseModel):
    commission_type: RateName
    commission_value: int = Field(..., ge=0)
    discount_type: RateName
    discount_value: int = Field(..., ge=0)
    minimum_payout: int = Field(..., ge=0)
    cookie_duration_days: int = Field(..., ge=1, le=365)
    approval_days: int = Field(..., ge=0, le=365)
    program_active: bool
    ff_enabled: bool
    ff_code_prefix: str = Field(..., min_length=1, max_length=10)
    ff_commission_type: RateName
    ff_commission_value: int = Field(..., ge=0)
    ff_discount_type: RateName
    ff_discount_value: int = Field(..., ge=0)
    agreement_version: str | None = None
    agreement_text: str | None = None


def _percent_errors(body: AffiliateSettingsRequest) -> list[str]:
    pairs = [
        ("commission", body.commission_type, body.commission_value),
        ("discount", body.discount_type, body.discount_value),
        ("ff_commission", body.ff_commission_type, body.ff_commission_value),
        ("ff_discount", body.ff_discount_type, body.ff_discount_value),
    ]
    return [name for name, kind, value in pairs if kind == "PERCENT" and value > 100]


# --- Affiliates ---


@router.get("/affiliates")
def list_affiliates(
    top: int | None = Query(None, ge=1, le=100),
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    _: User = Depends(require_permission("affiliates:read")),
) -> list[dict[str, Any]]:
    affiliates = repo.list_all()
    if top is not None:
        affiliates = leaderboard(affiliates, limit=top)
    return [{**affiliate_view(a), "stats": plain(affiliate_stats(a))} for a in affiliates]


@router.get("/affiliates/{affiliate_id}")
def get_affiliate(
    affiliate_id: UUID,
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    _: User = Depends(require_permission("affiliates:read")),
) -> dict[str, Any]:
    affiliate = repo.get_by_id(affiliate_id)
    if affiliate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affiliate not found")
    return {
        **affiliate_view(affiliate),
        "stats": plain(affiliate_stats(affiliate)),
        "referrals": [referral_view(r) for r in repo.list_referrals(affiliate_id=affiliate.id)],
    }


@router.patch("/affiliates/{affiliate_id}")
def update_affiliate(
    affiliate_id: UUID,
    body: AffiliateUpdateRequest,
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("affiliates:write")),
) -> dict[str, Any]:
    affiliate = repo.get_by_id(affiliate_id)
    if affiliate is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affiliate not found")

    changes = body.model_dump(exclude_unset=True, exclude={"clear_custom_rates"})
    if body.status is not None:
        affiliate.status = AffiliateStatus(body.status)
    if body.clear_custom_rates:
        affiliate.custom_commission_type = None
        affiliate.custom_commission_value = None
        affiliate.custom_discount_type = None
        affiliate.custom_discount_value = None
    for name in ("custom_commission_type", "custom_discount_type"):
        if name in changes:
            value = changes[name]
            setattr(affiliate, name, RateType(value) if value else None)
    for name in (
        "custom_commission_value",
        "custom_discount_value",
        "payout_account_id",
        "payouts_enabled",
        "details_submitted",
        "payout_country",
    ):
        if name in changes:
            setattr(affiliate, name, changes[name])
    affiliate.updated_at = clock.now_utc()
    repo.save(affiliate)

    audit.record(
        "update",
        "affiliate",
        str(affiliate.id),
        f"Updated affiliate {affiliate.code}",
        actor_id=user.id,
        actor_name=user.display_name,
        metadata={"fields": sorted(changes)},
    )
    return affiliate_view(affiliate)


# --- Invites ---


@router.get("/invites")
def list_invites(
    repo: SQLiteInviteRepo = Depends(get_invite_repo),
    _: User = Depends(require_permission("affiliates:read")),
) -> list[dict[str, Any]]:
    return [invite_view(i) for i in repo.list_all()]


@router.post("/invites", status_code=status.HTTP_201_CREATED)
def create_invite(
    body: InviteCreateRequest,
    repo: SQLiteInviteRepo = Depends(get_invite_repo),
    mailer: StorefrontMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
    user: User = Depends(require_permission("affiliates:write")),
) -> dict[str, Any]:
    result = run_create_invite(
        CreateInviteInput(
            target_email=body.target_email,
            target_phone=body.target_phone,
            expires_in_days=body.expires_in_days,
            max_uses=body.max_uses,
            notes=body.notes,
            created_by=user.id,
        ),
        repo,
        clock,
        default_expiry_days=rules.affiliates.invite_expiry_days,
    )
    if not result.success or result.invite is None:
        raise_for_errors(result.errors)

    invite = result.invite
    invite_url = f"{settings.base_url}{SIGNUP_PATH}?invite={invite.invite_code}"
    emailed = False
    if body.send_email and invite.target_email:
        emailed = mailer.affiliate_invite(
            InviteEmailInput(
                recipient=invite.target_email,
                invite_url=invite_url,
                expires_at=invite.expires_at,
                inviter_note=invite.notes,
            )
        ).delivered
    return {**invite_view(invite), "invite_url": invite_url, "emailed": emailed}


# --- Referrals ---


@router.get("/referrals")
def list_referrals(
    status_filter: str | None = Query(None, alias="status"),
    affiliate_id: UUID | None = None,
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    _: User = Depends(require_permission("affiliates:read")),
) -> list[dict[str, Any]]:
    referral_status = None
    if status_filter:
        try:
            referral_status = ReferralStatus(status_filter)
        except ValueError:
            raise HTTPException(status_code=400, detail="Unknown referral status") from None
    return [
        referral_view(r)
        for r in repo.list_referrals(affiliate_id=affiliate_id, status=referral_status)
    ]


@router.post("/referrals/{referral_id}/approve")
def approve_referral(
    referral_id: UUID,
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("affiliates:write")),
) -> dict[str, Any]:
    result = run_approve_referral(ApproveReferralInput(referral_id=referral_id), repo, clock)
    if not result.success or result.referral is None:
        raise_for_errors(result.errors)
    audit.record(
        "approve",
        "referral",
        str(referral_id),
        "Referral approved",
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return referral_view(result.referral)


@router.post("/referrals/{referral_id}/void")
def void_referral(
    referral_id: UUID,
    body: VoidRequest,
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("affiliates:write")),
) -> dict[str, Any]:
    result = run_void_referral(
        VoidReferralInput(referral_id=referral_id, reason=body.reason), repo, clock
    )
    if not result.success or result.referral is None:
        raise_for_errors(result.errors)
    audit.record(
        "void",
        "referral",
        str(referral_id),
        body.reason or "Referral voided",
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return referral_view(result.referral)


@router.post("/referrals/auto-approve")
def auto_approve(
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    settings: AffiliateSettings = Depends(get_affiliate_settings),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("affiliates:write")),
) -> dict[str, Any]:
    result = run_auto_approve(AutoApproveInput(), repo, settings, clock)
    return {"approved": [str(i) for i in result.approved_ids]}


# --- Payouts ---


@router.get("/payouts")
def list_payout_batches(
    repo: SQLitePayoutRepo = Depends(get_payout_repo),
    _: User = Depends(require_permission("affiliates:read")),
) -> list[dict[str, Any]]:
    return [plain(b) for b in repo.list_batches()]


@router.get("/payouts/{batch_id}")
def get_payout_batch(
    batch_id: str,
    repo: SQLitePayoutRepo = Depends(get_payout_repo),
    _: User = Depends(require_permission("affiliates:read")),
) -> dict[str, Any]:
    batch = repo.get_batch(batch_id)
    if batch is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Batch not found")
    return {**plain(batch), "payouts": [plain(p) for p in repo.list_payouts(batch_id)]}


@router.post("/payouts/prepare")
def prepare_payouts(
    affiliates: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    payouts: SQLitePayoutRepo = Depends(get_payout_repo),
    settings: AffiliateSettings = Depends(get_affiliate_settings),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("affiliates:write")),
) -> dict[str, Any]:
    result = run_prepare_payout_batch(PreparePayoutBatchInput(), affiliates, payouts, settings, clock)
    if not result.success:
        raise_for_errors(result.errors)
    if result.batch is not None:
        audit.record(
            "prepare",
            "payout_batch",
            result.batch.id,
            f"Prepared {result.batch.payout_count} payouts",
            actor_id=user.id,
            actor_name=user.display_name,
        )
    return {
        "batch": plain(result.batch) if result.batch else None,
        "payouts": [plain(p) for p in result.payouts],
        "ineligible": [plain(i) for i in result.ineligible],
    }


@router.post("/payouts/{batch_id}/execute")
def execute_payouts(
    batch_id: str,
    affiliates: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    payouts: SQLitePayoutRepo = Depends(get_payout_repo),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("affiliates:write")),
) -> dict[str, Any]:
    result = run_execute_payout_batch(
        ExecutePayoutBatchInput(batch_id=batch_id), affiliates, payouts, clock
    )
    if not result.success or result.batch is None:
        raise_for_errors(result.errors)
    audit.record(
        "execute",
        "payout_batch",
        batch_id,
        f"Paid {result.batch.payout_count} affiliates",
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return {"batch": plain(result.batch), "payouts": [plain(p) for p in result.payouts]}


# --- Program settings ---


@router.get("/affiliate-settings")
def get_program_settings(
    settings: AffiliateSettings = Depends(get_affiliate_settings),
    _: User = Depends(require_permission("affiliates:read")),
) -> dict[str, Any]:
    return plain(settings)


@router.put("/affiliate-settings")
def update_program_settings(
    body: AffiliateSettingsRequest,
    current: AffiliateSettings = Depends(get_affiliate_settings),
    repo: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("affiliates:write")),
) -> dict[str, Any]:
    over = _percent_errors(body)
    if over:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Percent rates cannot exceed 100: {', '.join(over)}",
        )

    values = body.model_dump(exclude_none=True)
    for name in ("commission_type", "discount_type", "ff_commission_type", "ff_discount_type"):
        values[name] = RateType(values[name])
    updated = replace(current, **values)
    repo.save_settings(updated)

    audit.record(
        "update",
        "affiliate_settings",
        "1",
        "Affiliate program settings updated",
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return plain(updated)
