"""
Coupon component ports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.coupons.models import Coupon, CouponRedemption


class CouponRepoPort(Protocol):
    def get_by_id(self, coupon_id: UUID) -> Coupon | None: ...

    def get_by_code(self, code: str) -> Coupon | None: ...

    def list_all(self) -> list[Coupon]: ...

    def save(self, coupon: Coupon) -> Coupon: ...

    def count_redemptions(self, coupon_id: UUID, customer_id: UUID) -> int:
        """Count redemptions of a coupon by one customer."""
        ...

    def get_redemption_for_order(self, order_id: UUID) -> CouponRedemption | None: ...

    def save_redemption(self, redemption: CouponRedemption) -> CouponRedemption: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
