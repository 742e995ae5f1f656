"""
Affiliate component models.

Referral state machine:
- pending → approved (after the approval period, or by an admin)
- flagged → approved (admin override of a fraud flag)
- pending/flagged/approved → void
- approved → paid (payout batch executed)

Money values are integer cents; commission/discount values are either
a whole percent (PERCENT) or cents (FIXED).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID


class AffiliateStatus(Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    SUSPENDED = "suspended"


class ReferralStatus(Enum):
    PENDING = "pending"
    FLAGGED = "flagged"  # Held back by a fraud check
    APPROVED = "approved"
    PAID = "paid"
    VOID = "void"


VALID_TRANSITIONS: dict[ReferralStatus, set[ReferralStatus]] = {
    ReferralStatus.PENDING: {ReferralStatus.APPROVED, ReferralStatus.VOID},
    ReferralStatus.FLAGGED: {ReferralStatus.APPROVED, ReferralStatus.VOID},
    ReferralStatus.APPROVED: {ReferralStatus.PAID, ReferralStatus.VOID},
    ReferralStatus.PAID: set(),
    ReferralStatus.VOID: set(),
}


def can_transition(from_status: ReferralStatus, to_status: ReferralStatus) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, set())


class RateType(Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class FraudReason(Enum):
    SELF_REFERRAL = "self_referral"
    COUPON_ABUSE = "coupon_abuse"


class IneligibleReason(Enum):
    NO_PAYOUT_ACCOUNT = "NO_PAYOUT_ACCOUNT"
    PAYOUTS_NOT_ENABLED = "PAYOUTS_NOT_ENABLED"
    DETAILS_NOT_SUBMITTED = "DETAILS_NOT_SUBMITTED"
    NON_US = "NON_US"
    BELOW_MINIMUM = "BELOW_MINIMUM"


DEFAULT_AGREEMENT_TEXT = (
    "By joining the Power Plunge affiliate program you agree to promote our "
    "products honestly, to disclose your affiliate relationship, and not to "
    "bid on Power Plunge brand terms or use your own code for purchases."
)


# --- Entities ---


@dataclass
class AffiliateSettings:
    """Program-wide affiliate configuration (single row)."""

    commission_type: RateType = RateType.PERCENT
    commission_value: int = 10
    discount_type: RateType = RateType.PERCENT
    discount_value: int = 0
    minimum_payout: int = 5000
    cookie_duration_days: int = 30
    approval_days: int = 14
    program_active: bool = True
    ff_enabled: bool = False
    ff_code_prefix: str = "FF"
    ff_commission_type: RateType = RateType.PERCENT
    ff_commission_value: int = 20
    ff_discount_type: RateType = RateType.PERCENT
    ff_discount_value: int = 20
    agreement_version: str = "1"
    agreement_text: str = DEFAULT_AGREEMENT_TEXT


@dataclass
class Affiliate:
    id: UUID
    customer_id: UUID
    code: str
    status: AffiliateStatus = AffiliateStatus.ACTIVE
    custom_commission_type: RateType | None = None
    custom_commission_value: int | None = None
    custom_discount_type: RateType | None = None
    custom_discount_value: int | None = None
    pending_balance: int = 0
    approved_balance: int = 0
    paid_balance: int = 0
    total_clicks: int = 0
    total_referrals: int = 0
    payout_account_id: str | None = None
    payouts_enabled: bool = False
    details_submitted: bool = False
    payout_country: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class AffiliateClick:
    id: UUID
    affiliate_id: UUID
    session_id: str
    ip_hash: str | None = None
    user_agent: str | None = None
    referrer: str | None = None
    landing_url: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class Referral:
    id: UUID
    affiliate_id: UUID
    order_id: UUID
    order_amount: int  # commission base in cents
    commission_amount: int
    commission_rate: int  # effective whole percent
    status: ReferralStatus = ReferralStatus.PENDING
    fraud_reason: str | None = None
    is_friends_family: bool = False
    payout_id: UUID | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    approved_at: datetime | None = None
    paid_at: datetime | None = None
    voided_at: datetime | None = None


@dataclass
class AffiliateInvite:
    id: UUID
    invite_code: str
    target_email: str | None = None
    target_phone: str | None = None
    expires_at: datetime | None = None
    max_uses: int = 1
    times_used: int = 0
    created_by: UUID | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class InviteUsage:
    id: UUID
    invite_id: UUID
    affiliate_id: UUID
    used_at: datetime


@dataclass
class AgreementSignature:
    id: UUID
    affiliate_id: UUID
    agreement_version: str
    signer_name: str
    signer_ip_hash: str | None
    signed_at: datetime


@dataclass
class Payout:
    id: UUID
    affiliate_id: UUID
    batch_id: str
    amount: int
    referral_count: int
    status: str = "pending"  # pending | paid
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    paid_at: datetime | None = None


@dataclass
class PayoutBatch:
    id: str  # BATCH-{iso year}-W{iso week}
    total_amount: int = 0
    payout_count: int = 0
    status: str = "prepared"  # prepared | executed
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    executed_at: datetime | None = None


@dataclass(frozen=True)
class ResolvedAffiliate:
    """Affiliate matched from a code, with the friends & family flag."""

    affiliate: Affiliate
    is_friends_family: bool = False


@dataclass(frozen=True)
class AffiliateCookie:
    affiliate_id: UUID
    session_id: str
    expires_at: datetime


@dataclass(frozen=True)
class AffiliateStats:
    clicks: int
    referrals: int
    conversion_rate: float
    pending_balance: int
    approved_balance: int
    paid_balance: int


# --- Inputs ---


@dataclass(frozen=True)
class TrackClickInput:
    code: str
    ip_address: str | None = None
    user_agent: str | None = None
    referrer: str | None = None
    landing_url: str | None = None
    ip_salt: str = "power-plunge-affiliate-salt"


@dataclass(frozen=True)
class CreateCommissionInput:
    order_id: UUID


@dataclass(frozen=True)
class ApproveReferralInput:
    referral_id: UUID


@dataclass(frozen=True)
class VoidReferralInput:
    referral_id: UUID
    reason: str | None = None


@dataclass(frozen=True)
class AutoApproveInput:
    pass


@dataclass(frozen=True)
class CreateInviteInput:
    target_email: str | None = None
    target_phone: str | None = None
    expires_in_days: int | None = None
    max_uses: int = 1
    notes: str | None = None
    created_by: UUID | None = None


@dataclass(frozen=True)
class ValidateInviteInput:
    invite_code: str


@dataclass(frozen=True)
class SendPhoneCodeInput:
    invite_code: str


@dataclass(frozen=True)
class AffiliateSignupInput:
    invite_code: str
    name: str
    email: str
    agreement_accepted: bool
    phone: str | None = None
    verification_code: str | None = None
    signer_ip: str | None = None
    ip_salt: str = "power-plunge-affiliate-salt"


@dataclass(frozen=True)
class PreparePayoutBatchInput:
    pass


@dataclass(frozen=True)
class ExecutePayoutBatchInput:
    batch_id: str


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class TrackClickOutput:
    success: bool
    affiliate_id: UUID | None = None
    session_id: str | None = None
    cookie_value: str | None = None
    max_age_seconds: int = 0
    is_friends_family: bool = False
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class CommissionOutput:
    success: bool
    referral: Referral | None = None
    already_exists: bool = False
    flagged: bool = False
    skipped_reason: str | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ReferralOutput:
    success: bool
    referral: Referral | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class AutoApproveOutput:
    approved_ids: list[UUID]

    @property
    def count(self) -> int:
        return len(self.approved_ids)


@dataclass(frozen=True)
class InviteOutput:
    success: bool
    invite: AffiliateInvite | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ValidateInviteOutput:
    valid: bool
    requires_phone_verification: bool = False
    target_email: str | None = None
    agreement_text: str | None = None
    agreement_version: str | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class SendPhoneCodeOutput:
    success: bool
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class SignupOutput:
    success: bool
    affiliate: Affiliate | None = None
    customer_id: UUID | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class IneligibleAffiliate:
    affiliate_id: UUID
    code: str
    amount: int
    reasons: list[IneligibleReason]


@dataclass(frozen=True)
class PayoutBatchOutput:
    success: bool
    batch: PayoutBatch | None = None
    payouts: list[Payout] = field(default_factory=list)
    ineligible: list[IneligibleAffiliate] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)
