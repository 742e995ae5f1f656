"""
Affiliate payout batches.

A batch collects approved, unpaid referrals per active affiliate. Each
ISO week gets at most one batch. Affiliates that cannot be paid are
reported with every reason that applies, and their referrals stay
approved for the next batch.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from uuid import UUID, uuid4

from src.components.affiliates.models import (
    Affiliate,
    AffiliateSettings,
    AffiliateStatus,
    ExecutePayoutBatchInput,
    IneligibleAffiliate,
    IneligibleReason,
    Payout,
    PayoutBatch,
    PayoutBatchOutput,
    PreparePayoutBatchInput,
    Referral,
    ReferralStatus,
    ValidationError,
)
from src.components.affiliates.ports import AffiliateRepoPort, PayoutRepoPort, TimePort

logger = logging.getLogger(__name__)


def batch_id_for(now: datetime) -> str:
    year, week, _ = now.isocalendar()
    return f"BATCH-{year}-W{week:02d}"


def payout_ineligibility(
    affiliate: Affiliate, amount: int, minimum_payout: int
) -> list[IneligibleReason]:
    reasons: list[IneligibleReason] = []
    if not affiliate.payout_account_id:
        reasons.append(IneligibleReason.NO_PAYOUT_ACCOUNT)
    else:
        if not affiliate.payouts_enabled:
            reasons.append(IneligibleReason.PAYOUTS_NOT_ENABLED)
        if not affiliate.details_submitted:
            reasons.append(IneligibleReason.DETAILS_NOT_SUBMITTED)
        if (affiliate.payout_country or "").upper() != "US":
            reasons.append(IneligibleReason.NON_US)
    if amount < minimum_payout:
        reasons.append(IneligibleReason.BELOW_MINIMUM)
    return reasons


def run_prepare_payout_batch(
    inp: PreparePayoutBatchInput,
    affiliates: AffiliateRepoPort,
    payouts: PayoutRepoPort,
    settings: AffiliateSettings,
    time: TimePort,
) -> PayoutBatchOutput:
    now = time.now_utc()
    batch_id = batch_id_for(now)
    if payouts.get_batch(batch_id):
        return PayoutBatchOutput(
            success=False,
            errors=[ValidationError("BATCH_EXISTS", f"Batch {batch_id} already exists")],
        )

    by_affiliate: dict[UUID, list[Referral]] = defaultdict(list)
    for referral in affiliates.list_referrals(status=ReferralStatus.APPROVED):
        if referral.payout_id is None:
            by_affiliate[referral.affiliate_id].append(referral)

    batch = PayoutBatch(id=batch_id, created_at=now)
    created: list[Payout] = []
    ineligible: list[IneligibleAffiliate] = []

    for affiliate_id, referrals in by_affiliate.items():
        affiliate = affiliates.get_by_id(affiliate_id)
        if affiliate is None or affiliate.status != AffiliateStatus.ACTIVE:
            continue
        amount = sum(r.commission_amount for r in referrals)
        if amount <= 0:
            continue

        reasons = payout_ineligibility(affiliate, amount, settings.minimum_payout)
        if reasons:
            ineligible.append(
                IneligibleAffiliate(
                    affiliate_id=affiliate.id, code=affiliate.code, amount=amount, reasons=reasons
                )
            )
            continue

        payout = Payout(
            id=uuid4(),
            affiliate_id=affiliate.id,
            batch_id=batch_id,
            amount=amount,
            referral_count=len(referrals),
            created_at=now,
        )
        created.append(payout)
        for referral in referrals:
            referral.payout_id = payout.id

    batch.payout_count = len(created)
    batch.total_amount = sum(p.amount for p in created)
    payouts.save_batch(batch)
    for payout in created:
        payouts.save_payout(payout)
        for referral in by_affiliate[payout.affiliate_id]:
            affiliates.save_referral(referral)

    logger.info(
        f"Payout batch {batch_id} prepared: {batch.payout_count} payouts, "
        f"{len(ineligible)} ineligible"
    )
    return PayoutBatchOutput(success=True, batch=batch, payouts=created, ineligible=ineligible)


def run_execute_payout_batch(
    inp: ExecutePayoutBatchInput,
    affiliates: AffiliateRepoPort,
    payouts: PayoutRepoPort,
    time: TimePort,
) -> PayoutBatchOutput:
    """Mark a prepared batch paid. Re-running an executed batch is a no-op."""
    batch = payouts.get_batch(inp.batch_id)
    if batch is None:
        return PayoutBatchOutput(
            success=False, errors=[ValidationError("NOT_FOUND", "Payout batch not found")]
        )
    batch_payouts = payouts.list_payouts(batch.id)
    if batch.status == "executed":
        return PayoutBatchOutput(success=True, batch=batch, payouts=batch_payouts)

    now = time.now_utc()
    for payout in batch_payouts:
        affiliate = affiliates.get_by_id(payout.affiliate_id)
        paid_amount = 0
        for referral in affiliates.list_referrals(affiliate_id=payout.affiliate_id):
            if referral.payout_id != payout.id or referral.status != ReferralStatus.APPROVED:
                continue
            referral.status = ReferralStatus.PAID
            referral.paid_at = now
            affiliates.save_referral(referral)
            paid_amount += referral.commission_amount
        if affiliate:
            affiliate.approved_balance = max(0, affiliate.approved_balance - paid_amount)
            affiliate.paid_balance += paid_amount
            affiliate.updated_at = now
            affiliates.save(affiliate)
        payout.status = "paid"
        payout.paid_at = now
        payouts.save_payout(payout)

    batch.status = "executed"
    batch.executed_at = now
    payouts.save_batch(batch)
    logger.info(f"Payout batch {batch.id} executed")
    return PayoutBatchOutput(success=True, batch=batch, payouts=batch_payouts)
