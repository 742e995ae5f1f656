"""
Coupon component.

Validates discount codes against a cart, computes the discount and
records redemptions once the order is paid.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from src.components.coupons.models import (
    ApplyCouponInput,
    ApplyCouponOutput,
    Coupon,
    CouponOutput,
    CouponRedemption,
    CouponType,
    CreateCouponInput,
    RedeemCouponInput,
    RedeemCouponOutput,
    ValidationError,
)
from src.components.coupons.ports import CouponRepoPort, TimePort

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return code.strip().upper()


def validate_coupon(
    coupon: Coupon | None,
    subtotal: int,
    now: datetime,
    customer_redemptions: int = 0,
) -> list[ValidationError]:
    """Check a coupon is usable for a cart; empty list means valid."""
    if coupon is None:
        return [ValidationError("NOT_FOUND", "Coupon code not found", "coupon_code")]
    if not coupon.active:
        return [ValidationError("INACTIVE", "Coupon is not active", "coupon_code")]
    if coupon.starts_at and now < coupon.starts_at:
        return [ValidationError("NOT_STARTED", "Coupon is not active yet", "coupon_code")]
    if coupon.ends_at and now > coupon.ends_at:
        return [ValidationError("EXPIRED", "Coupon has expired", "coupon_code")]
    if coupon.max_redemptions is not None and coupon.times_used >= coupon.max_redemptions:
        return [
            ValidationError("MAX_REDEMPTIONS", "Coupon has reached its usage limit", "coupon_code")
        ]
    if (
        coupon.per_customer_limit is not None
        and customer_redemptions >= coupon.per_customer_limit
    ):
        return [
            ValidationError(
                "PER_CUSTOMER_LIMIT", "Coupon already used the maximum times", "coupon_code"
            )
        ]
    if coupon.min_order_amount is not None and subtotal < coupon.min_order_amount:
        return [
            ValidationError(
                "MIN_ORDER",
                f"Order must be at least {coupon.min_order_amount} cents",
                "coupon_code",
            )
        ]
    return []


def compute_coupon_discount(coupon: Coupon, subtotal: int) -> tuple[int, bool]:
    """
    Return (discount_cents, free_shipping) for a subtotal.

    Percentage discounts are floored and capped by max_discount_amount.
    Fixed discounts never exceed the subtotal.
    """
    if coupon.type == CouponType.FREE_SHIPPING:
        return 0, True

    if coupon.type == CouponType.PERCENTAGE:
        discount = (subtotal * coupon.value) // 100
    else:
        discount = coupon.value

    if coupon.max_discount_amount is not None:
        discount = min(discount, coupon.max_discount_amount)

    return max(0, min(discount, subtotal)), False


# --- Component Entry Points ---


def run_create_coupon(
    inp: CreateCouponInput, repo: CouponRepoPort, time: TimePort
) -> CouponOutput:
    code = normalize_code(inp.code)
    errors: list[ValidationError] = []

    if not code:
        errors.append(ValidationError("CODE_REQUIRED", "Coupon code is required", "code"))
    elif repo.get_by_code(code):
        errors.append(ValidationError("CODE_TAKEN", "Coupon code already exists", "code"))

    try:
        coupon_type = CouponType(inp.type)
    except ValueError:
        errors.append(ValidationError("INVALID_TYPE", f"Unknown coupon type: {inp.type}", "type"))
        return CouponOutput(success=False, errors=errors)

    if coupon_type == CouponType.PERCENTAGE and not 0 < inp.value <= 100:
        errors.append(
            ValidationError("INVALID_VALUE", "Percentage must be between 1 and 100", "value")
        )
    if coupon_type == CouponType.FIXED and inp.value <= 0:
        errors.append(ValidationError("INVALID_VALUE", "Fixed amount must be positive", "value"))

    if errors:
        return CouponOutput(success=False, errors=errors)

    coupon = Coupon(
        id=uuid4(),
        code=code,
        type=coupon_type,
        value=inp.value,
        min_order_amount=inp.min_order_amount,
        max_discount_amount=inp.max_discount_amount,
        max_redemptions=inp.max_redemptions,
        per_customer_limit=inp.per_customer_limit,
        starts_at=inp.starts_at,
        ends_at=inp.ends_at,
        block_affiliate_commission=inp.block_affiliate_commission,
        created_at=time.now_utc(),
    )
    repo.save(coupon)
    return CouponOutput(success=True, coupon=coupon)


def run_apply_coupon(
    inp: ApplyCouponInput, repo: CouponRepoPort, time: TimePort
) -> ApplyCouponOutput:
    coupon = repo.get_by_code(normalize_code(inp.code))

    used_by_customer = 0
    if coupon and inp.customer_id and coupon.per_customer_limit is not None:
        used_by_customer = repo.count_redemptions(coupon.id, inp.customer_id)

    errors = validate_coupon(coupon, inp.subtotal, time.now_utc(), used_by_customer)
    if errors or coupon is None:
        return ApplyCouponOutput(success=False, errors=errors)

    discount, free_shipping = compute_coupon_discount(coupon, inp.subtotal)
    return ApplyCouponOutput(
        success=True,
        coupon=coupon,
        discount_amount=discount,
        free_shipping=free_shipping,
    )


def run_redeem_coupon(
    inp: RedeemCouponInput, repo: CouponRepoPort, time: TimePort
) -> RedeemCouponOutput:
    """Record a redemption for a paid order. Idempotent per order."""
    existing = repo.get_redemption_for_order(inp.order_id)
    if existing:
        return RedeemCouponOutput(success=True, redemption=existing, already_redeemed=True)

    coupon = repo.get_by_code(normalize_code(inp.code))
    if coupon is None:
        return RedeemCouponOutput(
            success=False, errors=[ValidationError("NOT_FOUND", "Coupon code not found")]
        )

    redemption = CouponRedemption(
        id=uuid4(),
        coupon_id=coupon.id,
        order_id=inp.order_id,
        customer_id=inp.customer_id,
        discount_amount=inp.discount_amount,
        created_at=time.now_utc(),
    )
    repo.save_redemption(redemption)

    coupon.times_used += 1
    repo.save(coupon)
    logger.info(f"Coupon {coupon.code} redeemed on order {inp.order_id}")

    return RedeemCouponOutput(success=True, redemption=redemption)


def run(
    inp: CreateCouponInput | ApplyCouponInput | RedeemCouponInput,
    *,
    repo: CouponRepoPort,
    time: TimePort,
) -> CouponOutput | ApplyCouponOutput | RedeemCouponOutput:
    """Coupon component entry point."""
    if isinstance(inp, CreateCouponInput):
        return run_create_coupon(inp, repo, time)
    if isinstance(inp, ApplyCouponInput):
        return run_apply_coupon(inp, repo, time)
    if isinstance(inp, RedeemCouponInput):
        return run_redeem_coupon(inp, repo, time)
    raise ValueError(f"Unknown input type: {type(inp)}")
