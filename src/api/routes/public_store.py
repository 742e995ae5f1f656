"""
Public store endpoints: catalog, coupon check, checkout and order status.

The affiliate tracking cookie set by /affiliate/track is read here so checkout
can attribute the order without the client resending the code.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from src.adapters.clock import SystemClock
from src.adapters.sqlite.commerce import (
    SQLiteCouponRepo,
    SQLiteCustomerRepo,
    SQLiteOrderRepo,
    SQLiteProductRepo,
)
from src.api.deps import (
    client_ip,
    get_affiliate_settings,
    get_checkout_config,
    get_checkout_ports,
    get_clock,
    get_coupon_repo,
    get_customer_repo,
    get_order_repo,
    get_product_repo,
)
from src.api.errors import raise_for_errors
from src.api.serializers import order_view, plain, product_view
from src.components.affiliates.models import AffiliateSettings
from src.components.catalog import (
    GetProductInput,
    ListProductsInput,
    run_get_public_product,
    run_list_products,
)
from src.components.checkout import run_create_checkout
from src.components.checkout.models import (
    CheckoutConfig,
    CheckoutLine,
    CreateCheckoutInput,
    CustomerDetails,
)
from src.components.checkout.ports import CheckoutPorts
from src.components.coupons import ApplyCouponInput, run_apply_coupon
from src.components.orders import GetOrderStatusInput, run_get_order_status

logger = logging.getLogger(__name__)

router = APIRouter()

AFFILIATE_COOKIE = "affiliate"


# --- Request Models ---


class CustomerIn(BaseModel):
    email: str = Field(..., max_length=254)
    name: str = Field(..., max_length=200)
    phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class LineIn(BaseModel):
    product_id: UUID
    quantity: int = Field(1, ge=1, le=100)


class CheckoutRequest(BaseModel):
    customer: CustomerIn
    items: list[LineIn] = Field(..., min_length=1)
    affiliate_code: str | None = None
    coupon_code: str | None = None
    marketing_consent: bool = False
    fbp: str | None = None
    fbc: str | None = None


class CouponCheckRequest(BaseModel):
    code: str
    subtotal: int = Field(..., ge=0)


class OrderStatusRequest(BaseModel):
    order_id: UUID
    email: str


# --- Catalog ---


@router.get("/products")
def list_products(
    tag: str | None = None,
    q: str | None = None,
    repo: SQLiteProductRepo = Depends(get_product_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    result = run_list_products(ListProductsInput(tag=tag, q=q), repo)
    now = clock.now_utc()
    return {
        "products": [product_view(p, now) for p in result.products],
        "total": result.total,
    }


@router.get("/products/{slug}")
def get_product(
    slug: str,
    repo: SQLiteProductRepo = Depends(get_product_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    result = run_get_public_product(GetProductInput(slug=slug), repo)
    if not result.success or result.product is None:
        raise_for_errors(result.errors)
    return product_view(result.product, clock.now_utc())


# --- Coupons ---


@router.post("/coupons/validate")
def validate_coupon(
    body: CouponCheckRequest,
    repo: SQLiteCouponRepo = Depends(get_coupon_repo),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    result = run_apply_coupon(ApplyCouponInput(code=body.code, subtotal=body.subtotal), repo, clock)
    if not result.success or result.coupon is None:
        raise_for_errors(result.errors)
    return {
        "code": result.coupon.code,
        "discount_amount": result.discount_amount,
        "free_shipping": result.free_shipping,
    }


# --- Checkout ---


@router.post("/checkout")
def create_checkout(
    body: CheckoutRequest,
    request: Request,
    ports: CheckoutPorts = Depends(get_checkout_ports),
    settings: AffiliateSettings = Depends(get_affiliate_settings),
    config: CheckoutConfig = Depends(get_checkout_config),
) -> dict[str, Any]:
    """Create a pending order and a payment intent; returns the client secret."""
    inp = CreateCheckoutInput(
        customer=CustomerDetails(**body.customer.model_dump()),
        items=tuple(CheckoutLine(product_id=i.product_id, quantity=i.quantity) for i in body.items),
        affiliate_code=body.affiliate_code,
        affiliate_cookie=request.cookies.get(AFFILIATE_COOKIE),
        coupon_code=body.coupon_code,
        marketing_consent_granted=body.marketing_consent,
        client_ip=client_ip(request),
        client_user_agent=request.headers.get("user-agent"),
        fbp=body.fbp or request.cookies.get("_fbp"),
        fbc=body.fbc or request.cookies.get("_fbc"),
    )
    result = run_create_checkout(inp, ports, settings, config)
    if not result.success:
        raise_for_errors(result.errors)

    return {
        "order_id": str(result.order_id),
        "client_secret": result.client_secret,
        "totals": plain(result.totals) if result.totals else None,
        "affiliate_code": result.affiliate_code,
        "attribution_type": result.attribution_type,
    }


# --- Order status ---


@router.post("/orders/status")
def order_status(
    body: OrderStatusRequest,
    repo: SQLiteOrderRepo = Depends(get_order_repo),
    customers: SQLiteCustomerRepo = Depends(get_customer_repo),
) -> dict[str, Any]:
    result = run_get_order_status(
        GetOrderStatusInput(order_id=body.order_id, email=body.email), repo, customers
    )
    if not result.success or result.order is None:
        raise_for_errors(result.errors)
    return {
        "order": order_view(result.order),
        "label": result.label,
        "subtext": result.subtext,
    }
