"""
Affiliate component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from src.adapters.clock import FixedClock
from src.components.affiliates import (
    Affiliate,
    AffiliateClick,
    AffiliateCookie,
    AffiliateInvite,
    AffiliateSettings,
    AffiliateSignupInput,
    AffiliateStatus,
    AgreementSignature,
    ApproveReferralInput,
    AutoApproveInput,
    CreateCommissionInput,
    CreateInviteInput,
    ExecutePayoutBatchInput,
    IneligibleReason,
    InviteUsage,
    Payout,
    PayoutBatch,
    PreparePayoutBatchInput,
    RateType,
    Referral,
    ReferralStatus,
    SendPhoneCodeInput,
    TrackClickInput,
    ValidateInviteInput,
    VoidReferralInput,
    affiliate_stats,
    batch_id_for,
    compute_affiliate_discount,
    compute_commission,
    decode_cookie,
    encode_cookie,
    generate_affiliate_code,
    hash_ip,
    resolve_affiliate_code,
    run,
    run_affiliate_signup,
    run_create_invite,
    run_execute_payout_batch,
    run_prepare_payout_batch,
    run_send_phone_code,
    run_validate_invite,
)
from src.components.catalog import Product
from src.components.coupons import Coupon, CouponType
from src.components.orders import Customer, Order, OrderItem

NOW = datetime(2025, 4, 9, 15, 0, tzinfo=UTC)


# --- Mocks ---


class MockAffiliateRepo:
    def __init__(self) -> None:
        self.affiliates: dict[UUID, Affiliate] = {}
        self.clicks: list[AffiliateClick] = []
        self.referrals: dict[UUID, Referral] = {}
        self.settings: AffiliateSettings | None = None

    def get_by_id(self, affiliate_id: UUID) -> Affiliate | None:
        return self.affiliates.get(affiliate_id)

    def get_by_code(self, code: str) -> Affiliate | None:
        return next((a for a in self.affiliates.values() if a.code == code), None)

    def get_by_customer_id(self, customer_id: UUID) -> Affiliate | None:
        return next((a for a in self.affiliates.values() if a.customer_id == customer_id), None)

    def list_all(self) -> list[Affiliate]:
        return list(self.affiliates.values())

    def save(self, affiliate: Affiliate) -> Affiliate:
        self.affiliates[affiliate.id] = affiliate
        return affiliate

    def save_click(self, click: AffiliateClick) -> AffiliateClick:
        self.clicks.append(click)
        return click

    def get_referral(self, referral_id: UUID) -> Referral | None:
        return self.referrals.get(referral_id)

    def get_referral_by_order(self, order_id: UUID) -> Referral | None:
        return next((r for r in self.referrals.values() if r.order_id == order_id), None)

    def list_referrals(self, affiliate_id=None, status=None) -> list[Referral]:
        return [
            r
            for r in self.referrals.values()
            if (affiliate_id is None or r.affiliate_id == affiliate_id)
            and (status is None or r.status == status)
        ]

    def save_referral(self, referral: Referral) -> Referral:
        self.referrals[referral.id] = referral
        return referral

    def get_settings(self) -> AffiliateSettings | None:
        return self.settings

    def save_settings(self, settings: AffiliateSettings) -> AffiliateSettings:
        self.settings = settings
        return settings


class MockOrderRepo:
    def __init__(self) -> None:
        self.orders: dict[UUID, Order] = {}

    def get_by_id(self, order_id: UUID) -> Order | None:
        return self.orders.get(order_id)

    def save(self, order: Order) -> Order:
        self.orders[order.id] = order
        return order


class MockProductRepo:
    def __init__(self, products: list[Product]) -> None:
        self.products = {p.id: p for p in products}

    def get_many(self, product_ids: list[UUID]) -> list[Product]:
        return [self.products[i] for i in product_ids if i in self.products]


class MockCustomerRepo:
    def __init__(self) -> None:
        self.customers: dict[UUID, Customer] = {}

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        return self.customers.get(customer_id)

    def get_by_email(self, email: str) -> Customer | None:
        return next((c for c in self.customers.values() if c.email == email), None)

    def save(self, customer: Customer) -> Customer:
        self.customers[customer.id] = customer
        return customer


class MockCouponRepo:
    def __init__(self, coupons: list[Coupon] | None = None) -> None:
        self.coupons = {c.code: c for c in coupons or []}

    def get_by_code(self, code: str) -> Coupon | None:
        return self.coupons.get(code)


class MockInviteRepo:
    def __init__(self) -> None:
        self.invites: dict[UUID, AffiliateInvite] = {}
        self.usages: list[InviteUsage] = []
        self.signatures: list[AgreementSignature] = []

    def get_by_id(self, invite_id: UUID) -> AffiliateInvite | None:
        return self.invites.get(invite_id)

    def get_by_code(self, invite_code: str) -> AffiliateInvite | None:
        return next((i for i in self.invites.values() if i.invite_code == invite_code), None)

    def list_all(self) -> list[AffiliateInvite]:
        return list(self.invites.values())

    def save(self, invite: AffiliateInvite) -> AffiliateInvite:
        self.invites[invite.id] = invite
        return invite

    def save_usage(self, usage: InviteUsage) -> InviteUsage:
        self.usages.append(usage)
        return usage

    def save_signature(self, signature: AgreementSignature) -> AgreementSignature:
        self.signatures.append(signature)
        return signature


class MockPayoutRepo:
    def __init__(self) -> None:
        self.batches: dict[str, PayoutBatch] = {}
        self.payouts: dict[UUID, Payout] = {}

    def get_batch(self, batch_id: str) -> PayoutBatch | None:
        return self.batches.get(batch_id)

    def list_batches(self) -> list[PayoutBatch]:
        return list(self.batches.values())

    def save_batch(self, batch: PayoutBatch) -> PayoutBatch:
        self.batches[batch.id] = batch
        return batch

    def list_payouts(self, batch_id: str) -> list[Payout]:
        return [p for p in self.payouts.values() if p.batch_id == batch_id]

    def save_payout(self, payout: Payout) -> Payout:
        self.payouts[payout.id] = payout
        return payout


class MockSms:
    def __init__(self, code: str = "123456") -> None:
        self.code = code
        self.started: list[str] = []

    def start_verification(self, phone: str) -> bool:
        self.started.append(phone)
        return True

    def check_verification(self, phone: str, code: str) -> bool:
        return phone in self.started and code == self.code


# --- Fixtures ---


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def world():
    """Affiliate CHILLER (owned by aff@example.com) and a plunge product."""
    affiliates = MockAffiliateRepo()
    customers = MockCustomerRepo()
    owner = customers.save(Customer(id=uuid4(), email="aff@example.com", name="Aff Owner"))
    affiliate = affiliates.save(Affiliate(id=uuid4(), customer_id=owner.id, code="CHILLER"))
    product = Product(id=uuid4(), name="Tub", slug="tub", price=10000)
    return {
        "affiliates": affiliates,
        "customers": customers,
        "affiliate": affiliate,
        "product": product,
    }


def place_order(world, email: str = "buyer@example.com", code: str = "CHILLER", **kwargs) -> Order:
    customers = world["customers"]
    buyer = customers.get_by_email(email) or customers.save(
        Customer(id=uuid4(), email=email, name="Buyer")
    )
    order_id = uuid4()
    product = world["product"]
    order = Order(
        id=order_id,
        customer_id=buyer.id,
        affiliate_code=code,
        subtotal=20000,
        total=20000,
        items=[
            OrderItem(
                id=uuid4(),
                order_id=order_id,
                product_id=product.id,
                product_name=product.name,
                quantity=2,
                unit_price=10000,
            )
        ],
        **kwargs,
    )
    world.setdefault("orders", MockOrderRepo()).save(order)
    return order


def commission(world, order: Order, settings: AffiliateSettings, clock, coupons=None):
    return run(
        CreateCommissionInput(order_id=order.id),
        repo=world["affiliates"],
        settings=settings,
        time=clock,
        orders=world["orders"],
        products=MockProductRepo([world["product"]]),
        customers=world["customers"],
        coupons=MockCouponRepo(coupons),
    )


# --- Tracking ---


class TestTracking:
    def test_hash_ip_is_salted(self) -> None:
        assert hash_ip("1.2.3.4", "a") != hash_ip("1.2.3.4", "b")
        assert len(hash_ip("1.2.3.4")) == 64

    def test_exact_code_wins_over_ff_prefix(self, world) -> None:
        ff_owner = world["affiliates"].save(
            Affiliate(id=uuid4(), customer_id=uuid4(), code="FFCHILLER")
        )
        settings = AffiliateSettings(ff_enabled=True)
        resolved = resolve_affiliate_code("ffchiller", world["affiliates"], settings)
        assert resolved.affiliate.id == ff_owner.id
        assert resolved.is_friends_family is False

    def test_ff_prefix_resolves_base_code(self, world) -> None:
        settings = AffiliateSettings(ff_enabled=True)
        resolved = resolve_affiliate_code("FFchiller", world["affiliates"], settings)
        assert resolved.affiliate.code == "CHILLER"
        assert resolved.is_friends_family is True

    def test_ff_prefix_resolves_when_program_disabled(self, world) -> None:
        resolved = resolve_affiliate_code("FFCHILLER", world["affiliates"], AffiliateSettings())
        assert resolved.affiliate.id == world["affiliate"].id
        assert resolved.is_friends_family is True

    def test_track_click_records_and_counts(self, world, clock) -> None:
        result = run(
            TrackClickInput(code="chiller", ip_address="10.0.0.1"),
            repo=world["affiliates"],
            settings=AffiliateSettings(),
            time=clock,
        )
        assert result.success
        assert len(result.session_id) == 32
        assert result.max_age_seconds == 30 * 86400
        assert world["affiliate"].total_clicks == 1
        click = world["affiliates"].clicks[0]
        assert click.ip_hash == hash_ip("10.0.0.1")

        cookie = decode_cookie(result.cookie_value, NOW)
        assert cookie.affiliate_id == world["affiliate"].id
        assert cookie.session_id == result.session_id

    def test_inactive_affiliate_not_tracked(self, world, clock) -> None:
        world["affiliate"].status = AffiliateStatus.PAUSED
        result = run(
            TrackClickInput(code="CHILLER"),
            repo=world["affiliates"],
            settings=AffiliateSettings(),
            time=clock,
        )
        assert not result.success
        assert world["affiliates"].clicks == []

    def test_cookie_expiry_and_garbage(self) -> None:
        cookie = AffiliateCookie(uuid4(), "abc", NOW + timedelta(minutes=1))
        value = encode_cookie(cookie)
        assert decode_cookie(value, NOW) == cookie
        assert decode_cookie(value, NOW + timedelta(minutes=2)) is None
        assert decode_cookie("not-base64!!", NOW) is None


# --- Discounts & commission ---


class TestDiscount:
    def test_default_discount_zero(self, world) -> None:
        lines = [(world["product"], 20000)]
        assert compute_affiliate_discount(lines, world["affiliate"], AffiliateSettings()) == 0

    def test_custom_discount_beats_default(self, world) -> None:
        world["affiliate"].custom_discount_type = RateType.FIXED
        world["affiliate"].custom_discount_value = 1500
        lines = [(world["product"], 20000)]
        assert compute_affiliate_discount(lines, world["affiliate"], AffiliateSettings()) == 1500

    def test_ff_discount(self, world) -> None:
        settings = AffiliateSettings(ff_enabled=True)
        lines = [(world["product"], 20000)]
        assert compute_affiliate_discount(lines, world["affiliate"], settings, True) == 4000

    def test_product_specific_discount(self, world) -> None:
        product = world["product"]
        product.affiliate_use_global_settings = False
        product.affiliate_discount_type = "PERCENT"
        product.affiliate_discount_value = 5
        assert compute_affiliate_discount([(product, 999)], world["affiliate"], AffiliateSettings()) == 49

    def test_disabled_product_excluded(self, world) -> None:
        world["product"].affiliate_enabled = False
        settings = AffiliateSettings(discount_value=10)
        assert compute_affiliate_discount([(world["product"], 5000)], world["affiliate"], settings) == 0


class TestCommission:
    def test_default_commission(self, world, clock) -> None:
        order = place_order(world)
        result = commission(world, order, AffiliateSettings(), clock)
        assert result.success and not result.flagged
        referral = result.referral
        assert referral.commission_amount == 2000
        assert referral.order_amount == 20000
        assert referral.commission_rate == 10
        assert referral.status == ReferralStatus.PENDING
        assert world["affiliate"].pending_balance == 2000
        assert world["affiliate"].total_referrals == 1

    def test_base_is_subtotal_with_mixed_cart(self, world) -> None:
        enabled = world["product"]
        disabled = Product(
            id=uuid4(), name="Cover", slug="cover", price=10000, affiliate_enabled=False
        )
        order_id = uuid4()
        items = [
            OrderItem(
                id=uuid4(),
                order_id=order_id,
                product_id=p.id,
                product_name=p.name,
                quantity=1,
                unit_price=10000,
            )
            for p in (enabled, disabled)
        ]
        products = {enabled.id: enabled, disabled.id: disabled}

        amount, base = compute_commission(
            items, products, world["affiliate"], AffiliateSettings(), fallback_base=20000
        )
        assert base == 20000
        assert amount == 1000

    def test_ff_code_uses_normal_rates_when_program_disabled(self, world, clock) -> None:
        order = place_order(world, code="FFCHILLER")
        result = commission(world, order, AffiliateSettings(), clock)
        assert result.referral.is_friends_family is True
        assert result.referral.commission_amount == 2000
        assert result.referral.commission_rate == 10

    def test_idempotent(self, world, clock) -> None:
        order = place_order(world)
        first = commission(world, order, AffiliateSettings(), clock)
        second = commission(world, order, AffiliateSettings(), clock)
        assert second.already_exists
        assert second.referral.id == first.referral.id
        assert world["affiliate"].pending_balance == 2000

    def test_fixed_custom_rate_capped_per_line(self, world, clock) -> None:
        world["affiliate"].custom_commission_type = RateType.FIXED
        world["affiliate"].custom_commission_value = 50000
        order = place_order(world)
        result = commission(world, order, AffiliateSettings(), clock)
        assert result.referral.commission_amount == 20000
        assert result.referral.commission_rate == 100

    def test_self_referral_flagged(self, world, clock) -> None:
        order = place_order(world, email="aff@example.com")
        result = commission(world, order, AffiliateSettings(), clock)
        assert result.flagged
        assert result.referral.status == ReferralStatus.FLAGGED
        assert result.referral.fraud_reason == "self_referral"
        assert world["affiliate"].pending_balance == 0
        assert world["affiliate"].total_referrals == 0

    def test_blocking_coupon_flagged(self, world, clock) -> None:
        coupon = Coupon(
            id=uuid4(),
            code="STAFF50",
            type=CouponType.PERCENTAGE,
            value=50,
            block_affiliate_commission=True,
        )
        order = place_order(world, coupon_code="staff50")
        result = commission(world, order, AffiliateSettings(), clock, coupons=[coupon])
        assert result.referral.fraud_reason == "coupon_abuse"

    def test_no_affiliate_code_skipped(self, world, clock) -> None:
        order = place_order(world, code=None)
        result = commission(world, order, AffiliateSettings(), clock)
        assert result.success and result.referral is None
        assert result.skipped_reason == "no_affiliate"

    def test_inactive_affiliate_skipped(self, world, clock) -> None:
        world["affiliate"].status = AffiliateStatus.SUSPENDED
        order = place_order(world)
        result = commission(world, order, AffiliateSettings(), clock)
        assert result.skipped_reason == "affiliate_inactive"


class TestReferralLifecycle:
    def test_approve_pending_moves_balance(self, world, clock) -> None:
        referral = commission(world, place_order(world), AffiliateSettings(), clock).referral
        result = run(
            ApproveReferralInput(referral.id),
            repo=world["affiliates"],
            settings=AffiliateSettings(),
            time=clock,
        )
        assert result.success
        assert world["affiliate"].pending_balance == 0
        assert world["affiliate"].approved_balance == 2000

    def test_approve_flagged_counts_referral(self, world, clock) -> None:
        order = place_order(world, email="aff@example.com")
        referral = commission(world, order, AffiliateSettings(), clock).referral
        run(
            ApproveReferralInput(referral.id),
            repo=world["affiliates"],
            settings=AffiliateSettings(),
            time=clock,
        )
        assert world["affiliate"].approved_balance == 2000
        assert world["affiliate"].total_referrals == 1

    def test_void_pending_reverses(self, world, clock) -> None:
        referral = commission(world, place_order(world), AffiliateSettings(), clock).referral
        result = run(
            VoidReferralInput(referral.id, reason="refunded"),
            repo=world["affiliates"],
            settings=AffiliateSettings(),
            time=clock,
        )
        assert result.success
        assert world["affiliate"].pending_balance == 0
        assert world["affiliate"].total_referrals == 0

    def test_void_paid_refused(self, world, clock) -> None:
        referral = commission(world, place_order(world), AffiliateSettings(), clock).referral
        referral.status = ReferralStatus.PAID
        result = run(
            VoidReferralInput(referral.id),
            repo=world["affiliates"],
            settings=AffiliateSettings(),
            time=clock,
        )
        assert result.errors[0].code == "ALREADY_PAID"

    def test_auto_approve_respects_period(self, world, clock) -> None:
        old = commission(world, place_order(world), AffiliateSettings(), clock).referral
        old.created_at = NOW - timedelta(days=15)
        fresh = commission(world, place_order(world), AffiliateSettings(), clock).referral

        result = run(
            AutoApproveInput(),
            repo=world["affiliates"],
            settings=AffiliateSettings(approval_days=14),
            time=clock,
        )
        assert result.approved_ids == [old.id]
        assert fresh.status == ReferralStatus.PENDING

    def test_stats_conversion_rate(self, world) -> None:
        world["affiliate"].total_clicks = 3
        world["affiliate"].total_referrals = 1
        assert affiliate_stats(world["affiliate"]).conversion_rate == 33.33


# --- Invites & signup ---


class TestInvites:
    def test_code_generation(self) -> None:
        code = generate_affiliate_code("Jo-Anne Smith", lambda c: False)
        assert code.startswith("JOANNE")
        assert len(code) == 12
        assert generate_affiliate_code("123", lambda c: False).startswith("REF")

    def test_code_generation_gives_up(self) -> None:
        with pytest.raises(RuntimeError):
            generate_affiliate_code("Sam", lambda c: True)

    def test_signup_happy_path(self, world, clock) -> None:
        invites = MockInviteRepo()
        invite = run_create_invite(
            CreateInviteInput(target_email="New@Example.com"), invites, clock
        ).invite
        assert invite.expires_at == NOW + timedelta(days=30)

        result = run_affiliate_signup(
            AffiliateSignupInput(
                invite_code=invite.invite_code,
                name="Nina Cold",
                email="new@example.com",
                agreement_accepted=True,
                signer_ip="8.8.8.8",
            ),
            invites,
            world["affiliates"],
            world["customers"],
            AffiliateSettings(),
            clock,
        )
        assert result.success
        assert result.affiliate.code.startswith("NINACO")
        assert invite.times_used == 1
        assert invites.signatures[0].signer_ip_hash == hash_ip("8.8.8.8")
        assert len(invites.usages) == 1

    def test_signup_rejects_wrong_email_generically(self, world, clock) -> None:
        invites = MockInviteRepo()
        invite = run_create_invite(
            CreateInviteInput(target_email="a@example.com"), invites, clock
        ).invite
        result = run_affiliate_signup(
            AffiliateSignupInput(
                invite_code=invite.invite_code,
                name="B",
                email="b@example.com",
                agreement_accepted=True,
            ),
            invites,
            world["affiliates"],
            world["customers"],
            AffiliateSettings(),
            clock,
        )
        assert result.errors[0].code == "INVALID_INVITE"

    def test_used_up_invite_invalid(self, world, clock) -> None:
        invites = MockInviteRepo()
        invite = run_create_invite(CreateInviteInput(), invites, clock).invite
        invite.times_used = 1
        result = run_validate_invite(
            ValidateInviteInput(invite.invite_code), invites, AffiliateSettings(), clock
        )
        assert not result.valid

    def test_program_inactive(self, world, clock) -> None:
        invites = MockInviteRepo()
        invite = run_create_invite(CreateInviteInput(), invites, clock).invite
        result = run_affiliate_signup(
            AffiliateSignupInput(
                invite_code=invite.invite_code, name="X", email="x@example.com",
                agreement_accepted=True,
            ),
            invites,
            world["affiliates"],
            world["customers"],
            AffiliateSettings(program_active=False),
            clock,
        )
        assert result.errors[0].code == "PROGRAM_INACTIVE"

    def test_agreement_required(self, world, clock) -> None:
        invites = MockInviteRepo()
        invite = run_create_invite(CreateInviteInput(), invites, clock).invite
        result = run_affiliate_signup(
            AffiliateSignupInput(
                invite_code=invite.invite_code, name="X", email="x@example.com",
                agreement_accepted=False,
            ),
            invites,
            world["affiliates"],
            world["customers"],
            AffiliateSettings(),
            clock,
        )
        assert result.errors[0].code == "AGREEMENT_REQUIRED"

    def test_existing_affiliate_rejected(self, world, clock) -> None:
        invites = MockInviteRepo()
        invite = run_create_invite(CreateInviteInput(), invites, clock).invite
        result = run_affiliate_signup(
            AffiliateSignupInput(
                invite_code=invite.invite_code, name="Aff", email="aff@example.com",
                agreement_accepted=True,
            ),
            invites,
            world["affiliates"],
            world["customers"],
            AffiliateSettings(),
            clock,
        )
        assert result.errors[0].code == "ALREADY_AFFILIATE"

    def test_phone_invite_requires_verification(self, world, clock) -> None:
        invites, sms = MockInviteRepo(), MockSms()
        invite = run_create_invite(
            CreateInviteInput(target_phone="+1 (555) 010-2000"), invites, clock
        ).invite
        assert invite.target_phone == "+15550102000"

        validated = run_validate_invite(
            ValidateInviteInput(invite.invite_code), invites, AffiliateSettings(), clock
        )
        assert validated.requires_phone_verification

        signup = AffiliateSignupInput(
            invite_code=invite.invite_code,
            name="Pat",
            email="pat@example.com",
            agreement_accepted=True,
            verification_code="123456",
        )
        args = (invites, world["affiliates"], world["customers"], AffiliateSettings(), clock)
        assert run_affiliate_signup(signup, *args, sms=sms).errors[0].code == "PHONE_NOT_VERIFIED"

        assert run_send_phone_code(SendPhoneCodeInput(invite.invite_code), invites, sms, clock).success
        assert run_affiliate_signup(signup, *args, sms=sms).success


# --- Payouts ---


class TestPayouts:
    def test_batch_id(self) -> None:
        assert batch_id_for(datetime(2025, 1, 2, tzinfo=UTC)) == "BATCH-2025-W01"
        assert batch_id_for(datetime(2024, 12, 30, tzinfo=UTC)) == "BATCH-2025-W01"

    def _approved(self, world, clock, amount_orders: int = 3) -> None:
        for _ in range(amount_orders):
            referral = commission(world, place_order(world), AffiliateSettings(), clock).referral
            run(
                ApproveReferralInput(referral.id),
                repo=world["affiliates"],
                settings=AffiliateSettings(),
                time=clock,
            )

    def test_ineligible_reasons(self, world, clock) -> None:
        self._approved(world, clock, 1)
        result = run_prepare_payout_batch(
            PreparePayoutBatchInput(), world["affiliates"], MockPayoutRepo(),
            AffiliateSettings(), clock,
        )
        assert result.success
        assert result.payouts == []
        reasons = result.ineligible[0].reasons
        assert reasons == [IneligibleReason.NO_PAYOUT_ACCOUNT, IneligibleReason.BELOW_MINIMUM]

    def test_prepare_and_execute(self, world, clock) -> None:
        affiliate = world["affiliate"]
        affiliate.payout_account_id = "acct_1"
        affiliate.payouts_enabled = True
        affiliate.details_submitted = True
        affiliate.payout_country = "US"
        self._approved(world, clock, 3)  # 3 x 2000 = 6000 >= 5000

        payouts = MockPayoutRepo()
        prepared = run_prepare_payout_batch(
            PreparePayoutBatchInput(), world["affiliates"], payouts, AffiliateSettings(), clock
        )
        assert prepared.batch.id == batch_id_for(NOW)
        assert prepared.batch.total_amount == 6000
        assert prepared.payouts[0].referral_count == 3

        again = run_prepare_payout_batch(
            PreparePayoutBatchInput(), world["affiliates"], payouts, AffiliateSettings(), clock
        )
        assert again.errors[0].code == "BATCH_EXISTS"

        executed = run_execute_payout_batch(
            ExecutePayoutBatchInput(prepared.batch.id), world["affiliates"], payouts, clock
        )
        assert executed.batch.status == "executed"
        assert affiliate.approved_balance == 0
        assert affiliate.paid_balance == 6000
        assert all(
            r.status == ReferralStatus.PAID for r in world["affiliates"].referrals.values()
        )
