"""
Coupon component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from src.adapters.clock import FixedClock
from src.components.coupons import (
    ApplyCouponInput,
    Coupon,
    CouponRedemption,
    CouponType,
    CreateCouponInput,
    RedeemCouponInput,
    compute_coupon_discount,
    run,
    validate_coupon,
)

NOW = datetime(2025, 3, 1, tzinfo=UTC)


class MockCouponRepo:
    def __init__(self) -> None:
        self.coupons: dict[UUID, Coupon] = {}
        self.redemptions: list[CouponRedemption] = []

    def get_by_id(self, coupon_id: UUID) -> Coupon | None:
        return self.coupons.get(coupon_id)

    def get_by_code(self, code: str) -> Coupon | None:
        return next((c for c in self.coupons.values() if c.code == code), None)

    def list_all(self) -> list[Coupon]:
        return list(self.coupons.values())

    def save(self, coupon: Coupon) -> Coupon:
        self.coupons[coupon.id] = coupon
        return coupon

    def count_redemptions(self, coupon_id: UUID, customer_id: UUID) -> int:
        return sum(
            1
            for r in self.redemptions
            if r.coupon_id == coupon_id and r.customer_id == customer_id
        )

    def get_redemption_for_order(self, order_id: UUID) -> CouponRedemption | None:
        return next((r for r in self.redemptions if r.order_id == order_id), None)

    def save_redemption(self, redemption: CouponRedemption) -> CouponRedemption:
        self.redemptions.append(redemption)
        return redemption


def make_coupon(**kwargs) -> Coupon:
    defaults = {"id": uuid4(), "code": "CHILL10", "type": CouponType.PERCENTAGE, "value": 10}
    defaults.update(kwargs)
    return Coupon(**defaults)


class TestDiscount:
    def test_percentage_floors(self) -> None:
        assert compute_coupon_discount(make_coupon(value=15), 999) == (149, False)

    def test_percentage_capped(self) -> None:
        coupon = make_coupon(value=50, max_discount_amount=2000)
        assert compute_coupon_discount(coupon, 10000) == (2000, False)

    def test_fixed_capped_at_subtotal(self) -> None:
        coupon = make_coupon(type=CouponType.FIXED, value=5000)
        assert compute_coupon_discount(coupon, 3000) == (3000, False)

    def test_free_shipping(self) -> None:
        coupon = make_coupon(type=CouponType.FREE_SHIPPING, value=0)
        assert compute_coupon_discount(coupon, 3000) == (0, True)


class TestValidateCoupon:
    def test_missing(self) -> None:
        assert validate_coupon(None, 100, NOW)[0].code == "NOT_FOUND"

    def test_inactive(self) -> None:
        assert validate_coupon(make_coupon(active=False), 100, NOW)[0].code == "INACTIVE"

    def test_window(self) -> None:
        future = make_coupon(starts_at=NOW + timedelta(days=1))
        past = make_coupon(ends_at=NOW - timedelta(days=1))
        assert validate_coupon(future, 100, NOW)[0].code == "NOT_STARTED"
        assert validate_coupon(past, 100, NOW)[0].code == "EXPIRED"

    def test_limits(self) -> None:
        used_up = make_coupon(max_redemptions=5, times_used=5)
        assert validate_coupon(used_up, 100, NOW)[0].code == "MAX_REDEMPTIONS"
        per_customer = make_coupon(per_customer_limit=1)
        assert validate_coupon(per_customer, 100, NOW, 1)[0].code == "PER_CUSTOMER_LIMIT"

    def test_min_order(self) -> None:
        coupon = make_coupon(min_order_amount=5000)
        assert validate_coupon(coupon, 4999, NOW)[0].code == "MIN_ORDER"
        assert validate_coupon(coupon, 5000, NOW) == []


class TestComponent:
    def test_create_uppercases_and_rejects_duplicates(self) -> None:
        repo = MockCouponRepo()
        clock = FixedClock(NOW)
        first = run(CreateCouponInput(code=" chill10 ", type="percentage", value=10), repo=repo, time=clock)
        assert first.success
        assert first.coupon.code == "CHILL10"

        second = run(CreateCouponInput(code="CHILL10", type="fixed", value=100), repo=repo, time=clock)
        assert not second.success
        assert second.errors[0].code == "CODE_TAKEN"

    def test_create_invalid_type(self) -> None:
        result = run(
            CreateCouponInput(code="X", type="bogus"), repo=MockCouponRepo(), time=FixedClock(NOW)
        )
        assert result.errors[-1].code == "INVALID_TYPE"

    def test_apply(self) -> None:
        repo = MockCouponRepo()
        repo.save(make_coupon())
        result = run(ApplyCouponInput(code="chill10", subtotal=20000), repo=repo, time=FixedClock(NOW))
        assert result.success
        assert result.discount_amount == 2000

    def test_redeem_idempotent(self) -> None:
        repo = MockCouponRepo()
        coupon = repo.save(make_coupon())
        order_id = uuid4()
        inp = RedeemCouponInput(code="CHILL10", order_id=order_id, customer_id=None, discount_amount=500)

        first = run(inp, repo=repo, time=FixedClock(NOW))
        second = run(inp, repo=repo, time=FixedClock(NOW))

        assert first.success and not first.already_redeemed
        assert second.already_redeemed
        assert coupon.times_used == 1
