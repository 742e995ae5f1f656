"""
Affiliate component.

Click tracking, checkout discounts, commission creation and the referral
lifecycle (approve, void, auto-approve).

Key behaviors:
- Codes are case-insensitive; an exact match wins over the friends &
  family prefix, which is only honoured while the FF program is enabled
- Only active affiliates are tracked or credited
- Click IPs are stored as salted sha256 hashes, never raw
- Commission is created once per order; replays return the existing row
- Self-referrals and orders using commission-blocking coupons are stored
  as flagged and kept out of affiliate balances until approved
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import secrets
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from src.components.affiliates.models import (
    Affiliate,
    AffiliateClick,
    AffiliateCookie,
    AffiliateSettings,
    AffiliateStats,
    AffiliateStatus,
    ApproveReferralInput,
    AutoApproveInput,
    AutoApproveOutput,
    CommissionOutput,
    CreateCommissionInput,
    FraudReason,
    RateType,
    Referral,
    ReferralOutput,
    ReferralStatus,
    ResolvedAffiliate,
    TrackClickInput,
    TrackClickOutput,
    ValidationError,
    VoidReferralInput,
    can_transition,
)
from src.components.affiliates.ports import AffiliateRepoPort, TimePort
from src.components.catalog.models import Product
from src.components.catalog.ports import ProductRepoPort
from src.components.coupons.ports import CouponRepoPort
from src.components.orders.models import OrderItem
from src.components.orders.ports import CustomerRepoPort, OrderRepoPort
from src.rules.models import AffiliateRules

logger = logging.getLogger(__name__)

DEFAULT_IP_SALT = "power-plunge-affiliate-salt"


@dataclass(frozen=True)
class Rate:
    type: RateType
    value: int


# --- Settings ---


def settings_from_rules(rules: AffiliateRules) -> AffiliateSettings:
    """Program defaults used until an admin saves settings."""
    return AffiliateSettings(
        commission_type=RateType(rules.default_commission_type),
        commission_value=rules.default_commission_value,
        discount_type=RateType(rules.default_discount_type),
        discount_value=rules.default_discount_value,
        minimum_payout=rules.minimum_payout,
        cookie_duration_days=rules.cookie_duration_days,
        approval_days=rules.approval_days,
        ff_code_prefix=rules.ff_code_prefix,
        ff_commission_type=RateType(rules.ff_commission_type),
        ff_commission_value=rules.ff_commission_value,
        ff_discount_type=RateType(rules.ff_discount_type),
        ff_discount_value=rules.ff_discount_value,
    )


def load_settings(repo: AffiliateRepoPort, defaults: AffiliateSettings) -> AffiliateSettings:
    return repo.get_settings() or defaults


# --- Tracking ---


def hash_ip(ip: str, salt: str = DEFAULT_IP_SALT) -> str:
    return hashlib.sha256(f"{salt}:{ip}".encode()).hexdigest()


def generate_session_id() -> str:
    return secrets.token_hex(16)


def resolve_affiliate_code(
    code: str,
    repo: AffiliateRepoPort,
    settings: AffiliateSettings,
) -> ResolvedAffiliate | None:
    """Match a code to an affiliate; handles the friends & family prefix."""
    normalized = (code or "").strip().upper()
    if not normalized:
        return None

    affiliate = repo.get_by_code(normalized)
    if affiliate:
        return ResolvedAffiliate(affiliate=affiliate, is_friends_family=False)

    prefix = settings.ff_code_prefix.upper()
    if prefix and normalized.startswith(prefix):
        base_code = normalized[len(prefix) :]
        if base_code:
            affiliate = repo.get_by_code(base_code)
            if affiliate:
                return ResolvedAffiliate(affiliate=affiliate, is_friends_family=True)

    return None


def encode_cookie(cookie: AffiliateCookie) -> str:
    payload = {
        "affiliateId": str(cookie.affiliate_id),
        "sessionId": cookie.session_id,
        "expiresAt": int(cookie.expires_at.timestamp() * 1000),
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def decode_cookie(value: str | None, now: datetime | None = None) -> AffiliateCookie | None:
    """Parse the tracking cookie; None when malformed or expired."""
    if not value:
        return None
    if now is None:
        now = datetime.now(UTC)
    try:
        payload = json.loads(base64.b64decode(value.encode(), validate=True))
        cookie = AffiliateCookie(
            affiliate_id=UUID(payload["affiliateId"]),
            session_id=str(payload["sessionId"]),
            expires_at=datetime.fromtimestamp(int(payload["expiresAt"]) / 1000, tz=UTC),
        )
    except (ValueError, KeyError, TypeError):
        return None
    if cookie.expires_at <= now:
        return None
    return cookie


def run_track_click(
    inp: TrackClickInput,
    repo: AffiliateRepoPort,
    settings: AffiliateSettings,
    time: TimePort,
) -> TrackClickOutput:
    resolved = resolve_affiliate_code(inp.code, repo, settings)
    if resolved is None or resolved.affiliate.status != AffiliateStatus.ACTIVE:
        logger.warning("Affiliate click ignored: unknown or inactive code")
        return TrackClickOutput(
            success=False,
            errors=[ValidationError("INVALID_CODE", "Invalid affiliate code", "code")],
        )

    affiliate = resolved.affiliate
    now = time.now_utc()
    session_id = generate_session_id()

    repo.save_click(
        AffiliateClick(
            id=uuid4(),
            affiliate_id=affiliate.id,
            session_id=session_id,
            ip_hash=hash_ip(inp.ip_address, inp.ip_salt) if inp.ip_address else None,
            user_agent=inp.user_agent,
            referrer=inp.referrer,
            landing_url=inp.landing_url,
            created_at=now,
        )
    )

    affiliate.total_clicks += 1
    affiliate.updated_at = now
    repo.save(affiliate)

    max_age = settings.cookie_duration_days * 24 * 60 * 60
    cookie = AffiliateCookie(
        affiliate_id=affiliate.id,
        session_id=session_id,
        expires_at=now + timedelta(seconds=max_age),
    )
    return TrackClickOutput(
        success=True,
        affiliate_id=affiliate.id,
        session_id=session_id,
        cookie_value=encode_cookie(cookie),
        max_age_seconds=max_age,
        is_friends_family=resolved.is_friends_family,
    )


# --- Rates ---


def resolve_commission_rate(
    product: Product | None,
    affiliate: Affiliate,
    settings: AffiliateSettings,
    is_friends_family: bool = False,
) -> Rate:
    """Precedence: friends & family, affiliate custom, program default, product specific."""
    if is_friends_family and settings.ff_enabled:
        return Rate(settings.ff_commission_type, settings.ff_commission_value)
    if affiliate.custom_commission_type and affiliate.custom_commission_value is not None:
        return Rate(affiliate.custom_commission_type, affiliate.custom_commission_value)
    if (
        product is None
        or product.affiliate_use_global_settings
        or not product.affiliate_commission_type
        or product.affiliate_commission_value is None
    ):
        return Rate(settings.commission_type, settings.commission_value)
    return Rate(RateType(product.affiliate_commission_type), product.affiliate_commission_value)


def resolve_discount_rate(
    product: Product | None,
    affiliate: Affiliate,
    settings: AffiliateSettings,
    is_friends_family: bool = False,
) -> Rate:
    if is_friends_family and settings.ff_enabled:
        return Rate(settings.ff_discount_type, settings.ff_discount_value)
    if affiliate.custom_discount_type and affiliate.custom_discount_value is not None:
        return Rate(affiliate.custom_discount_type, affiliate.custom_discount_value)
    if (
        product is None
        or product.affiliate_use_global_settings
        or not product.affiliate_discount_type
        or product.affiliate_discount_value is None
    ):
        return Rate(settings.discount_type, settings.discount_value)
    return Rate(RateType(product.affiliate_discount_type), product.affiliate_discount_value)


def apply_rate(amount: int, rate: Rate) -> int:
    """PERCENT floors to whole cents; FIXED never exceeds the amount."""
    if amount <= 0:
        return 0
    if rate.type == RateType.PERCENT:
        return (amount * rate.value) // 100
    return min(amount, rate.value)


def compute_affiliate_discount(
    lines: Iterable[tuple[Product, int]],
    affiliate: Affiliate,
    settings: AffiliateSettings,
    is_friends_family: bool = False,
) -> int:
    """Checkout discount over (product, line_total) pairs for affiliate-enabled products."""
    total = 0
    for product, line_total in lines:
        if not product.affiliate_enabled:
            continue
        rate = resolve_discount_rate(product, affiliate, settings, is_friends_family)
        total += apply_rate(line_total, rate)
    return total


def compute_commission(
    items: list[OrderItem],
    products: dict[UUID, Product],
    affiliate: Affiliate,
    settings: AffiliateSettings,
    fallback_base: int,
    is_friends_family: bool = False,
) -> tuple[int, int]:
    """
    Return (commission, base) in cents.

    The base is always the order subtotal. Items whose product is missing or
    not affiliate-enabled add nothing to the commission.
    """
    if not items:
        rate = resolve_commission_rate(None, affiliate, settings, is_friends_family)
        return apply_rate(fallback_base, rate), fallback_base

    commission = 0
    for item in items:
        product = products.get(item.product_id)
        if product is None or not product.affiliate_enabled:
            continue
        rate = resolve_commission_rate(product, affiliate, settings, is_friends_family)
        commission += apply_rate(item.line_total, rate)
    return commission, fallback_base


def effective_rate(commission: int, base: int) -> int:
    return round(commission / base * 100) if base > 0 else 0


def affiliate_stats(affiliate: Affiliate) -> AffiliateStats:
    rate = (
        round(affiliate.total_referrals / affiliate.total_clicks * 100, 2)
        if affiliate.total_clicks > 0
        else 0.0
    )
    return AffiliateStats(
        clicks=affiliate.total_clicks,
        referrals=affiliate.total_referrals,
        conversion_rate=rate,
        pending_balance=affiliate.pending_balance,
        approved_balance=affiliate.approved_balance,
        paid_balance=affiliate.paid_balance,
    )


def leaderboard(affiliates: list[Affiliate], limit: int = 10) -> list[Affiliate]:
    ranked = sorted(
        (a for a in affiliates if a.status == AffiliateStatus.ACTIVE),
        key=lambda a: (a.total_referrals, a.approved_balance + a.paid_balance),
        reverse=True,
    )
    return ranked[:limit]


# --- Commission ---


def run_create_commission(
    inp: CreateCommissionInput,
    repo: AffiliateRepoPort,
    orders: OrderRepoPort,
    products: ProductRepoPort,
    customers: CustomerRepoPort,
    coupons: CouponRepoPort,
    settings: AffiliateSettings,
    time: TimePort,
) -> CommissionOutput:
    order = orders.get_by_id(inp.order_id)
    if order is None:
        return CommissionOutput(
            success=False, errors=[ValidationError("ORDER_NOT_FOUND", "Order not found")]
        )
    if not order.affiliate_code:
        return CommissionOutput(success=True, skipped_reason="no_affiliate")

    existing = repo.get_referral_by_order(order.id)
    if existing:
        return CommissionOutput(success=True, referral=existing, already_exists=True)

    resolved = resolve_affiliate_code(order.affiliate_code, repo, settings)
    if resolved is None and order.affiliate_id:
        affiliate = repo.get_by_id(order.affiliate_id)
        resolved = ResolvedAffiliate(affiliate) if affiliate else None
    if resolved is None or resolved.affiliate.status != AffiliateStatus.ACTIVE:
        logger.warning(f"No active affiliate for order {order.id}; commission skipped")
        return CommissionOutput(success=True, skipped_reason="affiliate_inactive")

    affiliate = resolved.affiliate
    product_map = {p.id: p for p in products.get_many([i.product_id for i in order.items])}
    commission, base = compute_commission(
        order.items,
        product_map,
        affiliate,
        settings,
        fallback_base=order.subtotal,
        is_friends_family=resolved.is_friends_family,
    )

    fraud_reason: FraudReason | None = None
    customer = customers.get_by_id(order.customer_id)
    affiliate_customer = customers.get_by_id(affiliate.customer_id)
    if customer and affiliate_customer and customer.email == affiliate_customer.email:
        fraud_reason = FraudReason.SELF_REFERRAL
    elif order.coupon_code:
        coupon = coupons.get_by_code(order.coupon_code.upper())
        if coupon and coupon.block_affiliate_commission:
            fraud_reason = FraudReason.COUPON_ABUSE

    now = time.now_utc()
    referral = Referral(
        id=uuid4(),
        affiliate_id=affiliate.id,
        order_id=order.id,
        order_amount=base,
        commission_amount=commission,
        commission_rate=effective_rate(commission, base),
        status=ReferralStatus.FLAGGED if fraud_reason else ReferralStatus.PENDING,
        fraud_reason=fraud_reason.value if fraud_reason else None,
        is_friends_family=resolved.is_friends_family,
        created_at=now,
    )
    repo.save_referral(referral)

    if fraud_reason:
        logger.warning(
            f"Referral {referral.id} flagged ({fraud_reason.value}) for affiliate {affiliate.code}"
        )
        return CommissionOutput(success=True, referral=referral, flagged=True)

    affiliate.pending_balance += commission
    affiliate.total_referrals += 1
    affiliate.updated_at = now
    repo.save(affiliate)
    logger.info(f"Referral {referral.id} created: {commission} cents for {affiliate.code}")

    return CommissionOutput(success=True, referral=referral)


def _transition_error(referral: Referral, target: ReferralStatus) -> ReferralOutput:
    return ReferralOutput(
        success=False,
        referral=referral,
        errors=[
            ValidationError(
                "INVALID_TRANSITION",
                f"Cannot move referral from {referral.status.value} to {target.value}",
            )
        ],
    )


def approve_referral(referral: Referral, affiliate: Affiliate | None, now: datetime) -> None:
    """Move balances for an approval; caller checked the transition."""
    if affiliate is not None:
        if referral.status == ReferralStatus.PENDING:
            affiliate.pending_balance -= referral.commission_amount
        else:
            # Flagged referrals were never counted
            affiliate.total_referrals += 1
        affiliate.approved_balance += referral.commission_amount
        affiliate.updated_at = now
    referral.status = ReferralStatus.APPROVED
    referral.approved_at = now


def run_approve_referral(
    inp: ApproveReferralInput, repo: AffiliateRepoPort, time: TimePort
) -> ReferralOutput:
    referral = repo.get_referral(inp.referral_id)
    if referral is None:
        return ReferralOutput(
            success=False, errors=[ValidationError("NOT_FOUND", "Referral not found")]
        )
    if not can_transition(referral.status, ReferralStatus.APPROVED):
        return _transition_error(referral, ReferralStatus.APPROVED)

    affiliate = repo.get_by_id(referral.affiliate_id)
    approve_referral(referral, affiliate, time.now_utc())
    repo.save_referral(referral)
    if affiliate:
        repo.save(affiliate)
    return ReferralOutput(success=True, referral=referral)


def run_void_referral(
    inp: VoidReferralInput, repo: AffiliateRepoPort, time: TimePort
) -> ReferralOutput:
    referral = repo.get_referral(inp.referral_id)
    if referral is None:
        return ReferralOutput(
            success=False, errors=[ValidationError("NOT_FOUND", "Referral not found")]
        )
    if referral.status == ReferralStatus.PAID:
        return ReferralOutput(
            success=False,
            referral=referral,
            errors=[ValidationError("ALREADY_PAID", "Paid referrals cannot be voided")],
        )
    if not can_transition(referral.status, ReferralStatus.VOID):
        return _transition_error(referral, ReferralStatus.VOID)

    now = time.now_utc()
    affiliate = repo.get_by_id(referral.affiliate_id)
    if affiliate and referral.status in (ReferralStatus.PENDING, ReferralStatus.APPROVED):
        if referral.status == ReferralStatus.PENDING:
            affiliate.pending_balance = max(
                0, affiliate.pending_balance - referral.commission_amount
            )
        else:
            affiliate.approved_balance = max(
                0, affiliate.approved_balance - referral.commission_amount
            )
        affiliate.total_referrals = max(0, affiliate.total_referrals - 1)
        affiliate.updated_at = now
        repo.save(affiliate)

    referral.status = ReferralStatus.VOID
    referral.voided_at = now
    if inp.reason and not referral.fraud_reason:
        referral.fraud_reason = inp.reason
    repo.save_referral(referral)
    logger.info(f"Referral {referral.id} voided")
    return ReferralOutput(success=True, referral=referral)


def run_auto_approve(
    inp: AutoApproveInput,
    repo: AffiliateRepoPort,
    settings: AffiliateSettings,
    time: TimePort,
) -> AutoApproveOutput:
    """Approve pending referrals older than the approval period."""
    now = time.now_utc()
    cutoff = now - timedelta(days=settings.approval_days)
    approved: list[UUID] = []

    for referral in repo.list_referrals(status=ReferralStatus.PENDING):
        if referral.created_at > cutoff:
            continue
        affiliate = repo.get_by_id(referral.affiliate_id)
        approve_referral(referral, affiliate, now)
        repo.save_referral(referral)
        if affiliate:
            repo.save(affiliate)
        approved.append(referral.id)

    if approved:
        logger.info(f"Auto-approved {len(approved)} referrals")
    return AutoApproveOutput(approved_ids=approved)


def run(
    inp: TrackClickInput
    | CreateCommissionInput
    | ApproveReferralInput
    | VoidReferralInput
    | AutoApproveInput,
    *,
    repo: AffiliateRepoPort,
    settings: AffiliateSettings,
    time: TimePort,
    orders: OrderRepoPort | None = None,
    products: ProductRepoPort | None = None,
    customers: CustomerRepoPort | None = None,
    coupons: CouponRepoPort | None = None,
) -> TrackClickOutput | CommissionOutput | ReferralOutput | AutoApproveOutput:
    """Affiliate component entry point."""
    if isinstance(inp, TrackClickInput):
        return run_track_click(inp, repo, settings, time)
    if isinstance(inp, CreateCommissionInput):
        assert orders and products and customers and coupons
        return run_create_commission(
            inp, repo, orders, products, customers, coupons, settings, time
        )
    if isinstance(inp, ApproveReferralInput):
        return run_approve_referral(inp, repo, time)
    if isinstance(inp, VoidReferralInput):
        return run_void_referral(inp, repo, time)
    if isinstance(inp, AutoApproveInput):
        return run_auto_approve(inp, repo, settings, time)
    raise ValueError(f"Unknown input type: {type(inp)}")
