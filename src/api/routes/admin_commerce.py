"""
Admin commerce endpoints: dashboard, products, orders, refunds and coupons.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.adapters.clock import SystemClock
from src.adapters.payment_stub import PaymentStubAdapter
from src.adapters.sqlite.affiliates import SQLiteAffiliateRepo
from src.adapters.sqlite.commerce import (
    SQLiteCouponRepo,
    SQLiteCustomerRepo,
    SQLiteOrderRepo,
    SQLiteProductRepo,
    SQLiteRefundRepo,
)
from src.adapters.sqlite.marketing import SQLiteCapiEventRepo, SQLiteNewsletterRepo
from src.api.deps import (
    RefundFollowUp,
    get_affiliate_repo,
    get_audit_recorder,
    get_capi_repo,
    get_clock,
    get_coupon_repo,
    get_customer_repo,
    get_mailer,
    get_newsletter_repo,
    get_order_repo,
    get_payment_gateway,
    get_product_repo,
    get_refund_events,
    get_refund_repo,
    require_permission,
)
from src.api.errors import error_dicts, raise_for_errors
from src.api.serializers import coupon_view, order_view, plain, product_view, refund_view
from src.components.admin import DashboardInput, run_dashboard_summary
from src.components.audit import AuditRecorder
from src.components.catalog import (
    CreateProductInput,
    ListProductsInput,
    UpdateProductInput,
    run_create_product,
    run_list_products,
    run_update_product,
)
from src.components.coupons import CreateCouponInput, run_create_coupon
from src.components.notifications import StorefrontMailer
from src.components.orders import (
    ListOrdersInput,
    UpdateOrderStatusInput,
    run_list_orders,
    run_update_order_status,
)
from src.components.refunds import (
    CreateManualRefundInput,
    CreateRefundInput,
    RefundError,
    SetRefundStatusInput,
    run_create_manual_refund,
    run_create_refund,
    run_set_refund_status,
    summarize_refunds,
)
from src.domain.entities import User

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request Models ---


class ProductCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: int = Field(..., ge=0)
    slug: str | None = None
    sku: str | None = None
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    status: str = "draft"
    primary_image: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class OrderStatusRequest(BaseModel):
    status: str
    tracking_number: str | None = None
    carrier: str | None = None


class RefundRequest(BaseModel):
    amount: int | None = Field(None, gt=0)
    reason_code: str | None = None
    reason: str | None = Field(None, max_length=500)
    manual: bool = False


class RefundStatusRequest(BaseModel):
    status: str


class CouponCreateRequest(BaseModel):
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


class CouponActiveRequest(BaseModel):
    active: bool


def _refund_http_error(e: RefundError) -> HTTPException:
    return HTTPException(status_code=e.status, detail={"errors": error_dicts([e])})


# --- Dashboard ---


@router.get("/dashboard")
def dashboard(
    recent: int = Query(5, ge=1, le=50),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    affiliates: SQLiteAffiliateRepo = Depends(get_affiliate_repo),
    newsletter: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
    capi: SQLiteCapiEventRepo = Depends(get_capi_repo),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("dashboard:read")),
) -> dict[str, Any]:
    summary = run_dashboard_summary(
        DashboardInput(recent_limit=recent),
        orders=orders,
        affiliates=affiliates,
        newsletter=newsletter,
        time=clock,
        capi=capi,
    )
    return plain(summary)


# --- Products ---


@router.get("/products")
def list_products(
    tag: str | None = None,
    q: str | None = None,
    repo: SQLiteProductRepo = Depends(get_product_repo),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("products:read")),
) -> list[dict[str, Any]]:
    result = run_list_products(ListProductsInput(tag=tag, q=q, include_unpublished=True), repo)
    now = clock.now_utc()
    return [product_view(p, now, admin=True) for p in result.products]


@router.get("/products/{product_id}")
def get_product(
    product_id: UUID,
    repo: SQLiteProductRepo = Depends(get_product_repo),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("products:read")),
) -> dict[str, Any]:
    product = repo.get_by_id(product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product_view(product, clock.now_utc(), admin=True)


@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreateRequest,
    repo: SQLiteProductRepo = Depends(get_product_repo),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("products:write")),
) -> dict[str, Any]:
    inp = CreateProductInput(**{**body.model_dump(), "tags": tuple(body.tags)})
    result = run_create_product(inp, repo, clock)
    if not result.success or result.product is None:
        raise_for_errors(result.errors)
    audit.record(
        "create",
        "product",
        str(result.product.id),
        f"Created product {result.product.slug}",
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return product_view(result.product, clock.now_utc(), admin=True)


@router.patch("/products/{product_id}")
def update_product(
    product_id: UUID,
    updates: dict[str, Any] = Body(...),
    repo: SQLiteProductRepo = Depends(get_product_repo),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("products:write")),
) -> dict[str, Any]:
    result = run_update_product(UpdateProductInput(product_id=product_id, updates=updates), repo, clock)
    if not result.success or result.product is None:
        raise_for_errors(result.errors)
    audit.record(
        "update",
        "product",
        str(product_id),
        f"Updated {', '.join(sorted(updates))}",
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return product_view(result.product, clock.now_utc(), admin=True)


# --- Orders ---


@router.get("/orders")
def list_orders(
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    repo: SQLiteOrderRepo = Depends(get_order_repo),
    _: User = Depends(require_permission("orders:read")),
) -> dict[str, Any]:
    result = run_list_orders(ListOrdersInput(status=status_filter, limit=limit, offset=offset), repo)
    return {"orders": [order_view(o) for o in result.orders], "total": result.total}


@router.get("/orders/{order_id}")
def get_order(
    order_id: UUID,
    repo: SQLiteOrderRepo = Depends(get_order_repo),
    customers: SQLiteCustomerRepo = Depends(get_customer_repo),
    refunds: SQLiteRefundRepo = Depends(get_refund_repo),
    _: User = Depends(require_permission("orders:read")),
) -> dict[str, Any]:
    order = repo.get_by_id(order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    customer = customers.get_by_id(order.customer_id)
    order_refunds = refunds.list_for_order(order.id)
    return {
        "order": order_view(order),
        "customer": plain(customer) if customer else None,
        "refunds": [refund_view(r) for r in order_refunds],
        "refund_summary": plain(summarize_refunds(order, order_refunds)),
    }


@router.post("/orders/{order_id}/status")
def update_order_status(
    order_id: UUID,
    body: OrderStatusRequest,
    repo: SQLiteOrderRepo = Depends(get_order_repo),
    customers: SQLiteCustomerRepo = Depends(get_customer_repo),
    mailer: StorefrontMailer = Depends(get_mailer),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("orders:update")),
) -> dict[str, Any]:
    result = run_update_order_status(
        UpdateOrderStatusInput(
            order_id=order_id,
            status=body.status,
            tracking_number=body.tracking_number,
            carrier=body.carrier,
        ),
        repo,
        clock,
        customers,
        mailer,
    )
    if not result.success or result.order is None:
        raise_for_errors(result.errors)
    if not result.unchanged:
        audit.record(
            "status_change",
            "order",
            str(order_id),
            f"Order moved to {body.status}",
            actor_id=user.id,
            actor_name=user.display_name,
        )
    return {"order": order_view(result.order), "unchanged": result.unchanged}


# --- Refunds ---


@router.post("/orders/{order_id}/refunds", status_code=status.HTTP_201_CREATED)
def create_refund(
    order_id: UUID,
    body: RefundRequest,
    repo: SQLiteRefundRepo = Depends(get_refund_repo),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    gateway: PaymentStubAdapter = Depends(get_payment_gateway),
    follow_up: RefundFollowUp = Depends(get_refund_events),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("refunds:create")),
) -> dict[str, Any]:
    """Refund through the gateway, or record a manual refund settled elsewhere."""
    try:
        if body.manual:
            result = run_create_manual_refund(
                CreateManualRefundInput(
                    order_id=order_id,
                    amount=body.amount,
                    reason_code=body.reason_code,
                    reason=body.reason,
                    actor_id=user.id,
                    actor_name=user.display_name,
                ),
                repo,
                orders,
                clock,
                audit,
            )
        else:
            result = run_create_refund(
                CreateRefundInput(
                    order_id=order_id,
                    amount=body.amount,
                    reason_code=body.reason_code,
                    reason=body.reason,
                    actor_id=user.id,
                    actor_name=user.display_name,
                ),
                repo,
                orders,
                gateway,
                clock,
                audit,
                follow_up,
            )
    except RefundError as e:
        raise _refund_http_error(e) from e

    return {
        "refund": refund_view(result.refund),
        "refundable_remaining": result.refundable_remaining,
        "payment_status": result.payment_status.value,
    }


@router.post("/refunds/{refund_id}/status")
def set_refund_status(
    refund_id: UUID,
    body: RefundStatusRequest,
    repo: SQLiteRefundRepo = Depends(get_refund_repo),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    follow_up: RefundFollowUp = Depends(get_refund_events),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("refunds:create")),
) -> dict[str, Any]:
    try:
        result = run_set_refund_status(
            SetRefundStatusInput(
                refund_id=refund_id,
                status=body.status,
                actor_id=user.id,
                actor_name=user.display_name,
            ),
            repo,
            orders,
            clock,
            audit,
            follow_up,
        )
    except RefundError as e:
        raise _refund_http_error(e) from e
    assert result.refund is not None
    return {"refund": refund_view(result.refund), "changed": result.changed}


# --- Coupons ---


@router.get("/coupons")
def list_coupons(
    repo: SQLiteCouponRepo = Depends(get_coupon_repo),
    _: User = Depends(require_permission("coupons:read")),
) -> list[dict[str, Any]]:
    return [coupon_view(c) for c in repo.list_all()]


@router.post("/coupons", status_code=status.HTTP_201_CREATED)
def create_coupon(
    body: CouponCreateRequest,
    repo: SQLiteCouponRepo = Depends(get_coupon_repo),
    clock: SystemClock = Depends(get_clock),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("coupons:write")),
) -> dict[str, Any]:
    result = run_create_coupon(CreateCouponInput(**body.model_dump()), repo, clock)
    if not result.success or result.coupon is None:
        raise_for_errors(result.errors)
    audit.record(
        "create",
        "coupon",
        str(result.coupon.id),
        f"Created coupon {result.coupon.code}",
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return coupon_view(result.coupon)


@router.post("/coupons/{coupon_id}/active")
def set_coupon_active(
    coupon_id: UUID,
    body: CouponActiveRequest,
    repo: SQLiteCouponRepo = Depends(get_coupon_repo),
    audit: AuditRecorder = Depends(get_audit_recorder),
    user: User = Depends(require_permission("coupons:write")),
) -> dict[str, Any]:
    coupon = repo.get_by_id(coupon_id)
    if coupon is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Coupon not found")
    coupon.active = body.active
    repo.save(coupon)
    audit.record(
        "activate" if body.active else "deactivate",
        "coupon",
        str(coupon.id),
        f"Coupon {coupon.code} {'enabled' if body.active else 'disabled'}",
        actor_id=user.id,
        actor_name=user.display_name,
    )
    return coupon_view(coupon)
