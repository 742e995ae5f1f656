"""
Checkout component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID

REQUIRED_ADDRESS_FIELDS: tuple[str, ...] = (
    "address_line1",
    "city",
    "state",
    "postal_code",
    "country",
)


@dataclass(frozen=True)
class CheckoutLine:
    product_id: UUID
    quantity: int


@dataclass(frozen=True)
class CustomerDetails:
    email: str
    name: str
    phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class CheckoutConfig:
    currency: str = "USD"
    tax_rate_percent: float = 0
    flat_shipping_amount: int = 0
    free_shipping_threshold: int = 0  # 0 = never free by threshold
    base_url: str = ""


# --- Inputs ---


@dataclass(frozen=True)
class CreateCheckoutInput:
    customer: CustomerDetails
    items: tuple[CheckoutLine, ...]
    affiliate_code: str | None = None
    affiliate_cookie: str | None = None  # raw tracking cookie value
    coupon_code: str | None = None
    marketing_consent_granted: bool = False
    client_ip: str | None = None
    client_user_agent: str | None = None
    fbp: str | None = None
    fbc: str | None = None


@dataclass(frozen=True)
class ConfirmPaymentInput:
    payment_intent_id: str


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: int
    affiliate_discount: int
    coupon_discount: int
    tax_amount: int
    shipping_amount: int
    total: int


@dataclass(frozen=True)
class CheckoutOutput:
    success: bool
    order_id: UUID | None = None
    client_secret: str | None = None
    totals: CheckoutTotals | None = None
    affiliate_code: str | None = None
    attribution_type: str | None = None  # coupon | cookie | direct
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ConfirmPaymentOutput:
    success: bool
    order_id: UUID | None = None
    already_paid: bool = False
    coupon_redeemed: bool = False
    referral_id: UUID | None = None
    capi_queued: bool = False
    email_sent: bool = False
    errors: list[ValidationError] = field(default_factory=list)
