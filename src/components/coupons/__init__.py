"""
Coupon component.
"""

from src.components.coupons.component import (
    compute_coupon_discount,
    normalize_code,
    run,
    run_apply_coupon,
    run_create_coupon,
    run_redeem_coupon,
    validate_coupon,
)
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
from src.components.coupons.ports import CouponRepoPort

__all__ = [
    "run",
    "run_create_coupon",
    "run_apply_coupon",
    "run_redeem_coupon",
    "validate_coupon",
    "compute_coupon_discount",
    "normalize_code",
    "Coupon",
    "CouponType",
    "CouponRedemption",
    "CreateCouponInput",
    "ApplyCouponInput",
    "RedeemCouponInput",
    "CouponOutput",
    "ApplyCouponOutput",
    "RedeemCouponOutput",
    "ValidationError",
    "CouponRepoPort",
]
