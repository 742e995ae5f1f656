"""
Checkout component.

Turns a cart into a pending order with a payment intent, and finishes
the order when the payment gateway confirms it.

Pricing order:
1. subtotal = sum of effective unit price x quantity
2. affiliate discount on affiliate-enabled lines
3. coupon on what remains
4. tax on the discounted amount, rounded half up
5. flat shipping unless the cart qualifies for free shipping

Attribution: an explicit affiliate code beats a tracking cookie, and a
customer can never be referred by their own affiliate account.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID, uuid4

from src.components.affiliates.component import (
    compute_affiliate_discount,
    decode_cookie,
    resolve_affiliate_code,
    run_create_commission,
)
from src.components.affiliates.models import (
    AffiliateSettings,
    AffiliateStatus,
    CreateCommissionInput,
    ResolvedAffiliate,
)
from src.components.capi.component import enqueue_purchase
from src.components.capi.models import MetaConfig
from src.components.catalog.component import effective_price
from src.components.catalog.models import Product
from src.components.checkout.models import (
    REQUIRED_ADDRESS_FIELDS,
    CheckoutConfig,
    CheckoutOutput,
    CheckoutTotals,
    ConfirmPaymentInput,
    ConfirmPaymentOutput,
    CreateCheckoutInput,
    CustomerDetails,
    ValidationError,
)
from src.components.checkout.ports import CheckoutPorts
from src.components.coupons.component import (
    compute_coupon_discount,
    normalize_code,
    run_redeem_coupon,
    validate_coupon,
)
from src.components.coupons.models import Coupon, RedeemCouponInput
from src.components.newsletter.component import validate_email
from src.components.orders.component import mark_paid
from src.components.orders.models import Customer, Order, OrderItem, OrderStatus
from src.core.ports.email import mask_email
from src.core.ports.payment import PaymentGatewayError

logger = logging.getLogger(__name__)


def compute_tax(taxable: int, rate_percent: float) -> int:
    """Tax in cents, rounded half up."""
    if taxable <= 0 or rate_percent <= 0:
        return 0
    amount = Decimal(taxable) * Decimal(str(rate_percent)) / Decimal(100)
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_shipping(discounted_subtotal: int, config: CheckoutConfig, free_shipping: bool) -> int:
    if free_shipping or config.flat_shipping_amount <= 0:
        return 0
    if config.free_shipping_threshold and discounted_subtotal >= config.free_shipping_threshold:
        return 0
    return config.flat_shipping_amount


def attribution_type(affiliate_code: str | None, session_id: str | None) -> str:
    """`coupon` when the affiliate code was typed in at checkout, `cookie` for a tracked click."""
    if affiliate_code:
        return "coupon"
    if session_id:
        return "cookie"
    return "direct"


def validate_customer(details: CustomerDetails) -> list[ValidationError]:
    errors: list[ValidationError] = []
    if not details.name.strip():
        errors.append(ValidationError("NAME_REQUIRED", "Name is required", "name"))
    email_check = validate_email(details.email, check_disposable=False)
    if not email_check.is_valid:
        errors.append(ValidationError("INVALID_EMAIL", "A valid email is required", "email"))
    for field_name in REQUIRED_ADDRESS_FIELDS:
        if not (getattr(details, field_name) or "").strip():
            errors.append(
                ValidationError("ADDRESS_INCOMPLETE", f"{field_name} is required", field_name)
            )
    return errors


def upsert_customer(details: CustomerDetails, ports: CheckoutPorts) -> Customer:
    email = details.email.strip().lower()
    now = ports.time.now_utc()
    customer = ports.customers.get_by_email(email)
    if customer is None:
        customer = Customer(id=uuid4(), email=email, name=details.name.strip(), created_at=now)
    customer.name = details.name.strip()
    customer.phone = details.phone or customer.phone
    customer.address_line1 = details.address_line1
    customer.address_line2 = details.address_line2
    customer.city = details.city
    customer.state = details.state
    customer.postal_code = details.postal_code
    customer.country = details.country
    customer.updated_at = now
    return ports.customers.save(customer)


def _resolve_attribution(
    inp: CreateCheckoutInput,
    customer: Customer,
    ports: CheckoutPorts,
    settings: AffiliateSettings,
) -> tuple[ResolvedAffiliate | None, str | None, str | None]:
    """Return (affiliate, code to store on the order, tracking session id)."""
    resolved: ResolvedAffiliate | None = None
    code: str | None = None
    session_id: str | None = None

    if inp.affiliate_code:
        resolved = resolve_affiliate_code(inp.affiliate_code, ports.affiliates, settings)
        if resolved:
            code = inp.affiliate_code.strip().upper()
        else:
            logger.warning("Checkout with unknown affiliate code; ignoring it")

    if resolved is None:
        cookie = decode_cookie(inp.affiliate_cookie, ports.time.now_utc())
        if cookie:
            affiliate = ports.affiliates.get_by_id(cookie.affiliate_id)
            if affiliate:
                resolved = ResolvedAffiliate(affiliate=affiliate)
                code = affiliate.code
                session_id = cookie.session_id

    if resolved is None:
        return None, None, None
    if resolved.affiliate.status != AffiliateStatus.ACTIVE:
        logger.warning(f"Affiliate {resolved.affiliate.code} is not active; no attribution")
        return None, None, None

    owner = ports.customers.get_by_id(resolved.affiliate.customer_id)
    if owner and owner.email == customer.email:
        logger.warning(
            f"Self-referral blocked for {mask_email(customer.email)} "
            f"on code {resolved.affiliate.code}"
        )
        return None, None, None
    return resolved, code, session_id


def _load_lines(
    inp: CreateCheckoutInput, ports: CheckoutPorts
) -> tuple[list[tuple[Product, int]], list[ValidationError]]:
    if not inp.items:
        return [], [ValidationError("EMPTY_CART", "Cart is empty", "items")]

    products = {p.id: p for p in ports.products.get_many([line.product_id for line in inp.items])}
    lines: list[tuple[Product, int]] = []
    errors: list[ValidationError] = []
    for line in inp.items:
        product = products.get(line.product_id)
        if product is None or not product.active:
            errors.append(
                ValidationError(
                    "PRODUCT_UNAVAILABLE", f"Product {line.product_id} is unavailable", "items"
                )
            )
            continue
        if line.quantity < 1:
            errors.append(ValidationError("INVALID_QUANTITY", "Quantity must be at least 1", "items"))
            continue
        lines.append((product, line.quantity))
    return lines, errors


def run_create_checkout(
    inp: CreateCheckoutInput,
    ports: CheckoutPorts,
    settings: AffiliateSettings,
    config: CheckoutConfig,
) -> CheckoutOutput:
    errors = validate_customer(inp.customer)
    if errors:
        return CheckoutOutput(success=False, errors=errors)

    lines, errors = _load_lines(inp, ports)
    if errors:
        return CheckoutOutput(success=False, errors=errors)

    now = ports.time.now_utc()
    customer = upsert_customer(inp.customer, ports)

    priced = [(product, effective_price(product, now), qty) for product, qty in lines]
    subtotal = sum(unit * qty for _, unit, qty in priced)

    resolved, affiliate_code, session_id = _resolve_attribution(inp, customer, ports, settings)
    affiliate_discount = 0
    if resolved:
        affiliate_discount = compute_affiliate_discount(
            [(product, unit * qty) for product, unit, qty in priced],
            resolved.affiliate,
            settings,
            resolved.is_friends_family,
        )
    after_affiliate = max(0, subtotal - affiliate_discount)

    coupon: Coupon | None = None
    coupon_discount = 0
    free_shipping = False
    if inp.coupon_code:
        coupon = ports.coupons.get_by_code(normalize_code(inp.coupon_code))
        used = 0
        if coupon and coupon.per_customer_limit is not None:
            used = ports.coupons.count_redemptions(coupon.id, customer.id)
        coupon_errors = validate_coupon(coupon, after_affiliate, now, used)
        if coupon_errors or coupon is None:
            return CheckoutOutput(success=False, errors=coupon_errors)
        coupon_discount, free_shipping = compute_coupon_discount(coupon, after_affiliate)

    taxable = max(0, after_affiliate - coupon_discount)
    tax = compute_tax(taxable, config.tax_rate_percent)
    shipping = compute_shipping(taxable, config, free_shipping)
    total = taxable + tax + shipping

    order_id = uuid4()
    order = Order(
        id=order_id,
        customer_id=customer.id,
        status=OrderStatus.PENDING,
        items=[
            OrderItem(
                id=uuid4(),
                order_id=order_id,
                product_id=product.id,
                product_name=product.name,
                quantity=qty,
                unit_price=unit,
                sku=product.sku,
            )
            for product, unit, qty in priced
        ],
        subtotal=subtotal,
        affiliate_discount=affiliate_discount,
        coupon_discount=coupon_discount,
        tax_amount=tax,
        shipping_amount=shipping,
        total=total,
        currency=config.currency,
        affiliate_id=resolved.affiliate.id if resolved else None,
        affiliate_code=affiliate_code,
        affiliate_session_id=session_id,
        coupon_code=coupon.code if coupon else None,
        marketing_consent_granted=inp.marketing_consent_granted,
        client_ip=inp.client_ip,
        client_user_agent=inp.client_user_agent,
        fbp=inp.fbp,
        fbc=inp.fbc,
        created_at=now,
        updated_at=now,
    )
    ports.orders.save(order)

    # session_id is only set when attribution came from the cookie
    entered_code = affiliate_code if session_id is None else None
    attribution = attribution_type(entered_code, session_id)
    try:
        intent = ports.gateway.create_payment_intent(
            total,
            config.currency,
            metadata={
                "orderId": str(order.id),
                "affiliateCode": affiliate_code or "",
                "affiliateSessionId": session_id or "",
                "attributionType": attribution,
            },
            receipt_email=customer.email,
        )
    except PaymentGatewayError as e:
        logger.error(f"Payment intent failed for order {order.id}: {e}")
        return CheckoutOutput(
            success=False,
            order_id=order.id,
            errors=[ValidationError("PAYMENT_UNAVAILABLE", "Payment could not be started")],
        )

    order.payment_intent_id = intent.id
    ports.orders.save(order)
    logger.info(f"Checkout order {order.id} created: {total} cents ({attribution})")

    return CheckoutOutput(
        success=True,
        order_id=order.id,
        client_secret=intent.client_secret,
        totals=CheckoutTotals(
            subtotal=subtotal,
            affiliate_discount=affiliate_discount,
            coupon_discount=coupon_discount,
            tax_amount=tax,
            shipping_amount=shipping,
            total=total,
        ),
        affiliate_code=affiliate_code,
        attribution_type=attribution,
    )


def run_confirm_payment(
    inp: ConfirmPaymentInput,
    ports: CheckoutPorts,
    settings: AffiliateSettings,
    meta: MetaConfig | None = None,
    base_url: str = "",
) -> ConfirmPaymentOutput:
    """
    Finish a paid order. Replays of the same webhook return already_paid
    and repeat nothing.
    """
    order = ports.orders.get_by_payment_intent(inp.payment_intent_id)
    if order is None:
        logger.warning(f"Payment confirmation for unknown intent {inp.payment_intent_id}")
        return ConfirmPaymentOutput(
            success=False, errors=[ValidationError("ORDER_NOT_FOUND", "Order not found")]
        )

    if not mark_paid(order, ports.orders, ports.time):
        return ConfirmPaymentOutput(success=True, order_id=order.id, already_paid=True)

    customer = ports.customers.get_by_id(order.customer_id)

    coupon_redeemed = False
    if order.coupon_code:
        redeemed = run_redeem_coupon(
            RedeemCouponInput(
                code=order.coupon_code,
                order_id=order.id,
                customer_id=order.customer_id,
                discount_amount=order.coupon_discount,
            ),
            ports.coupons,
            ports.time,
        )
        coupon_redeemed = redeemed.success

    referral_id: UUID | None = None
    if order.affiliate_code:
        commission = run_create_commission(
            CreateCommissionInput(order_id=order.id),
            ports.affiliates,
            ports.orders,
            ports.products,
            ports.customers,
            ports.coupons,
            settings,
            ports.time,
        )
        if commission.referral:
            referral_id = commission.referral.id

    capi_queued = False
    if ports.capi_events is not None and meta is not None:
        products = {p.id: p for p in ports.products.get_many([i.product_id for i in order.items])}
        queued = enqueue_purchase(
            order, customer, products, ports.capi_events, meta, ports.time, base_url
        )
        capi_queued = queued.queued

    email_sent = False
    if ports.mailer is not None and customer is not None:
        ports.mailer.order_confirmed(order, customer)
        email_sent = True

    return ConfirmPaymentOutput(
        success=True,
        order_id=order.id,
        coupon_redeemed=coupon_redeemed,
        referral_id=referral_id,
        capi_queued=capi_queued,
        email_sent=email_sent,
    )


def run(
    inp: CreateCheckoutInput | ConfirmPaymentInput,
    *,
    ports: CheckoutPorts,
    settings: AffiliateSettings,
    config: CheckoutConfig | None = None,
    meta: MetaConfig | None = None,
) -> CheckoutOutput | ConfirmPaymentOutput:
    """Checkout component entry point."""
    cfg = config or CheckoutConfig()
    if isinstance(inp, CreateCheckoutInput):
        return run_create_checkout(inp, ports, settings, cfg)
    if isinstance(inp, ConfirmPaymentInput):
        return run_confirm_payment(inp, ports, settings, meta, cfg.base_url)
    raise ValueError(f"Unknown input type: {type(inp)}")
