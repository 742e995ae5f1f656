"""
Affiliate component.

Invite-only affiliate program: click tracking, checkout discounts,
commissions with fraud flags, approvals and weekly payout batches.
"""

from src.components.affiliates._invites import (
    generate_affiliate_code,
    invite_is_usable,
    run_affiliate_signup,
    run_create_invite,
    run_send_phone_code,
    run_validate_invite,
)
from src.components.affiliates._payouts import (
    batch_id_for,
    payout_ineligibility,
    run_execute_payout_batch,
    run_prepare_payout_batch,
)
from src.components.affiliates.component import (
    DEFAULT_IP_SALT,
    Rate,
    affiliate_stats,
    apply_rate,
    compute_affiliate_discount,
    compute_commission,
    decode_cookie,
    effective_rate,
    encode_cookie,
    hash_ip,
    leaderboard,
    load_settings,
    resolve_affiliate_code,
    resolve_commission_rate,
    resolve_discount_rate,
    run,
    run_approve_referral,
    run_auto_approve,
    run_create_commission,
    run_track_click,
    run_void_referral,
    settings_from_rules,
)
from src.components.affiliates.models import (
    VALID_TRANSITIONS,
    Affiliate,
    AffiliateClick,
    AffiliateCookie,
    AffiliateInvite,
    AffiliateSettings,
    AffiliateSignupInput,
    AffiliateStats,
    AffiliateStatus,
    AgreementSignature,
    ApproveReferralInput,
    AutoApproveInput,
    AutoApproveOutput,
    CommissionOutput,
    CreateCommissionInput,
    CreateInviteInput,
    ExecutePayoutBatchInput,
    FraudReason,
    IneligibleAffiliate,
    IneligibleReason,
    InviteOutput,
    InviteUsage,
    Payout,
    PayoutBatch,
    PayoutBatchOutput,
    PreparePayoutBatchInput,
    RateType,
    Referral,
    ReferralOutput,
    ReferralStatus,
    ResolvedAffiliate,
    SendPhoneCodeInput,
    SendPhoneCodeOutput,
    SignupOutput,
    TrackClickInput,
    TrackClickOutput,
    ValidateInviteInput,
    ValidateInviteOutput,
    ValidationError,
    VoidReferralInput,
    can_transition,
)
from src.components.affiliates.ports import (
    AffiliateRepoPort,
    InviteRepoPort,
    PayoutRepoPort,
    SmsVerificationPort,
)

__all__ = [
    # Component
    "run",
    "run_track_click",
    "run_create_commission",
    "run_approve_referral",
    "run_void_referral",
    "run_auto_approve",
    "run_create_invite",
    "run_validate_invite",
    "run_send_phone_code",
    "run_affiliate_signup",
    "run_prepare_payout_batch",
    "run_execute_payout_batch",
    # Pure functions
    "settings_from_rules",
    "load_settings",
    "hash_ip",
    "resolve_affiliate_code",
    "encode_cookie",
    "decode_cookie",
    "resolve_commission_rate",
    "resolve_discount_rate",
    "apply_rate",
    "compute_affiliate_discount",
    "compute_commission",
    "effective_rate",
    "affiliate_stats",
    "leaderboard",
    "generate_affiliate_code",
    "invite_is_usable",
    "batch_id_for",
    "payout_ineligibility",
    "DEFAULT_IP_SALT",
    "Rate",
    # Models
    "Affiliate",
    "AffiliateClick",
    "AffiliateCookie",
    "AffiliateInvite",
    "AffiliateSettings",
    "AffiliateStats",
    "AffiliateStatus",
    "AgreementSignature",
    "FraudReason",
    "IneligibleAffiliate",
    "IneligibleReason",
    "InviteUsage",
    "Payout",
    "PayoutBatch",
    "RateType",
    "Referral",
    "ReferralStatus",
    "ResolvedAffiliate",
    "VALID_TRANSITIONS",
    "can_transition",
    # Input/Output
    "TrackClickInput",
    "TrackClickOutput",
    "CreateCommissionInput",
    "CommissionOutput",
    "ApproveReferralInput",
    "VoidReferralInput",
    "ReferralOutput",
    "AutoApproveInput",
    "AutoApproveOutput",
    "CreateInviteInput",
    "InviteOutput",
    "ValidateInviteInput",
    "ValidateInviteOutput",
    "SendPhoneCodeInput",
    "SendPhoneCodeOutput",
    "AffiliateSignupInput",
    "SignupOutput",
    "PreparePayoutBatchInput",
    "ExecutePayoutBatchInput",
    "PayoutBatchOutput",
    "ValidationError",
    # Ports
    "AffiliateRepoPort",
    "InviteRepoPort",
    "PayoutRepoPort",
    "SmsVerificationPort",
]
