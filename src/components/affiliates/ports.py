"""
Affiliate component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.affiliates.models import (
    Affiliate,
    AffiliateClick,
    AffiliateInvite,
    AffiliateSettings,
    AgreementSignature,
    InviteUsage,
    Payout,
    PayoutBatch,
    Referral,
    ReferralStatus,
)


class AffiliateRepoPort(Protocol):
    """Affiliates, their clicks and referrals, and program settings."""

    def get_by_id(self, affiliate_id: UUID) -> Affiliate | None: ...

    def get_by_code(self, code: str) -> Affiliate | None: ...

    def get_by_customer_id(self, customer_id: UUID) -> Affiliate | None: ...

    def list_all(self) -> list[Affiliate]: ...

    def save(self, affiliate: Affiliate) -> Affiliate: ...

    def save_click(self, click: AffiliateClick) -> AffiliateClick: ...

    def get_referral(self, referral_id: UUID) -> Referral | None: ...

    def get_referral_by_order(self, order_id: UUID) -> Referral | None: ...

    def list_referrals(
        self,
        affiliate_id: UUID | None = None,
        status: ReferralStatus | None = None,
    ) -> list[Referral]: ...

    def save_referral(self, referral: Referral) -> Referral: ...

    def get_settings(self) -> AffiliateSettings | None: ...

    def save_settings(self, settings: AffiliateSettings) -> AffiliateSettings: ...


class InviteRepoPort(Protocol):
    def get_by_id(self, invite_id: UUID) -> AffiliateInvite | None: ...

    def get_by_code(self, invite_code: str) -> AffiliateInvite | None: ...

    def list_all(self) -> list[AffiliateInvite]: ...

    def save(self, invite: AffiliateInvite) -> AffiliateInvite: ...

    def save_usage(self, usage: InviteUsage) -> InviteUsage: ...

    def save_signature(self, signature: AgreementSignature) -> AgreementSignature: ...


class PayoutRepoPort(Protocol):
    def get_batch(self, batch_id: str) -> PayoutBatch | None: ...

    def list_batches(self) -> list[PayoutBatch]: ...

    def save_batch(self, batch: PayoutBatch) -> PayoutBatch: ...

    def list_payouts(self, batch_id: str) -> list[Payout]: ...

    def save_payout(self, payout: Payout) -> Payout: ...


class SmsVerificationPort(Protocol):
    """Phone verification (Twilio Verify in production)."""

    def start_verification(self, phone: str) -> bool:
        """Send a verification code; False if the provider refused."""
        ...

    def check_verification(self, phone: str, code: str) -> bool: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
