"""
Coupon component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID


class CouponType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"


@dataclass
class Coupon:
    """Discount code."""

    id: UUID
    code: str  # stored uppercase
    type: CouponType
    value: int = 0  # percent or cents depending on type
    min_order_amount: int | None = None
    max_discount_amount: int | None = None
    max_redemptions: int | None = None
    per_customer_limit: int | None = None
    times_used: int = 0
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    active: bool = True
    block_affiliate_commission: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class CouponRedemption:
    id: UUID
    coupon_id: UUID
    order_id: UUID
    customer_id: UUID | None
    discount_amount: int
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


# --- Inputs ---


@dataclass(frozen=True)
class CreateCouponInput:
    code: str
    type: str
    value: int = 0
    min_order_amount: int | None = None
    max_discount_amount: int | None = None
    max_redemptions: int | None = None
    per_customer_limit: int | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    block_affiliate_commission: bool = False


@dataclass(frozen=True)
class ApplyCouponInput:
    """Validate a code against a cart subtotal and compute the discount."""

    code: str
    subtotal: int
    customer_id: UUID | None = None


@dataclass(frozen=True)
class RedeemCouponInput:
    code: str
    order_id: UUID
    customer_id: UUID | None
    discount_amount: int


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CouponOutput:
    success: bool
    coupon: Coupon | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ApplyCouponOutput:
    success: bool
    coupon: Coupon | None = None
    discount_amount: int = 0
    free_shipping: bool = False
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class RedeemCouponOutput:
    success: bool
    redemption: CouponRedemption | None = None
    already_redeemed: bool = False
    errors: list[ValidationError] = field(default_factory=list)
