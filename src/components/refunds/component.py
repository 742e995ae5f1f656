"""
Refund component.

Gateway and manual refunds against paid orders, status sync from
gateway webhooks, and the derived payment status of an order.

Key behaviors:
- Pending and processed refunds both reserve part of the order total;
  failed refunds release it
- A gateway refund whose status comes back `processed` immediately
  triggers the processed hooks (CAPI Refund event, customer email)
- Provider errors surface as GATEWAY_REFUND_FAILED, never as raw
  exceptions
"""

from __future__ import annotations

import logging
from uuid import uuid4

from src.components.audit import AuditRecorder
from src.components.orders.models import REVENUE_STATUSES, Order
from src.components.orders.ports import OrderRepoPort
from src.components.refunds.models import (
    REFUND_REASON_CODES,
    CreateManualRefundInput,
    CreateRefundInput,
    PaymentStatus,
    Refund,
    RefundError,
    RefundOutput,
    RefundStatus,
    RefundSummary,
    SetRefundStatusInput,
    SyncRefundOutput,
    SyncRefundStatusInput,
    can_transition,
)
from src.components.refunds.ports import RefundEventsPort, RefundRepoPort, TimePort
from src.core.ports.payment import GATEWAY_REFUND_REASONS, PaymentGatewayPort

logger = logging.getLogger(__name__)

_GATEWAY_STATUS_MAP: dict[str, RefundStatus] = {
    "succeeded": RefundStatus.PROCESSED,
    "pending": RefundStatus.PENDING,
    "requires_action": RefundStatus.PENDING,
    "failed": RefundStatus.FAILED,
    "canceled": RefundStatus.FAILED,
    "cancelled": RefundStatus.FAILED,
}


def normalize_gateway_status(gateway_status: str | None) -> RefundStatus:
    return _GATEWAY_STATUS_MAP.get((gateway_status or "").lower(), RefundStatus.PENDING)


def is_valid_reason_code(code: str) -> bool:
    return code in REFUND_REASON_CODES


def compute_refundable_amount(order: Order, refunds: list[Refund]) -> int:
    reserved = sum(
        r.amount for r in refunds if r.status in (RefundStatus.PROCESSED, RefundStatus.PENDING)
    )
    return max(0, order.total - reserved)


def order_is_paid(order: Order) -> bool:
    return order.status in REVENUE_STATUSES or order.paid_at is not None


def compute_payment_status(order: Order, refunds: list[Refund]) -> PaymentStatus:
    if not order_is_paid(order):
        return PaymentStatus.UNPAID
    if not refunds:
        return PaymentStatus.PAID

    processed = sum(r.amount for r in refunds if r.status == RefundStatus.PROCESSED)
    has_pending = any(r.status == RefundStatus.PENDING for r in refunds)
    has_failed = any(r.status == RefundStatus.FAILED for r in refunds)

    if processed >= order.total:
        return PaymentStatus.REFUNDED
    if has_pending:
        return PaymentStatus.REFUND_PENDING
    if processed > 0:
        return PaymentStatus.PARTIALLY_REFUNDED
    if has_failed:
        return PaymentStatus.REFUND_FAILED
    return PaymentStatus.PAID


def summarize_refunds(order: Order, refunds: list[Refund]) -> RefundSummary:
    latest = max(refunds, key=lambda r: r.created_at) if refunds else None
    return RefundSummary(
        payment_status=compute_payment_status(order, refunds),
        refunded_amount=sum(r.amount for r in refunds if r.status == RefundStatus.PROCESSED),
        refundable_amount=compute_refundable_amount(order, refunds),
        refund_count=len(refunds),
        latest_refund_status=latest.status.value if latest else None,
    )


def _resolve_amount(
    order: Order, refunds: list[Refund], amount: int | None, reason_code: str | None
) -> int:
    """Shared validation for gateway and manual refunds; returns the amount to refund."""
    refundable = compute_refundable_amount(order, refunds)
    resolved = refundable if amount is None else amount
    if resolved <= 0:
        raise RefundError("INVALID_AMOUNT", "Refund amount must be greater than zero")
    if reason_code and not is_valid_reason_code(reason_code):
        raise RefundError(
            "INVALID_REASON_CODE",
            f"Invalid reason code. Must be one of: {', '.join(REFUND_REASON_CODES)}",
        )
    if resolved > refundable:
        raise RefundError(
            "EXCEEDS_REFUNDABLE",
            f"Refund amount (${resolved / 100:.2f}) exceeds refundable amount "
            f"(${refundable / 100:.2f})",
        )
    return resolved


def _get_order(orders: OrderRepoPort, order_id) -> Order:
    order = orders.get_by_id(order_id)
    if order is None:
        raise RefundError("ORDER_NOT_FOUND", "Order not found", status=404)
    return order


def _output(order: Order, refund: Refund, repo: RefundRepoPort) -> RefundOutput:
    refunds = repo.list_for_order(order.id)
    return RefundOutput(
        refund=refund,
        refundable_remaining=compute_refundable_amount(order, refunds),
        payment_status=compute_payment_status(order, refunds),
    )


# --- Component Entry Points ---


def run_create_refund(
    inp: CreateRefundInput,
    repo: RefundRepoPort,
    orders: OrderRepoPort,
    gateway: PaymentGatewayPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
    events: RefundEventsPort | None = None,
) -> RefundOutput:
    """Refund through the payment gateway. Raises RefundError."""
    order = _get_order(orders, inp.order_id)
    if not order.payment_intent_id:
        raise RefundError(
            "NOT_GATEWAY_PAID",
            "Order was not paid through the payment gateway. Use a manual refund.",
        )
    if not order_is_paid(order):
        raise RefundError("ORDER_NOT_PAID", "Order has not been paid and cannot be refunded")

    existing = repo.list_for_order(order.id)
    amount = _resolve_amount(order, existing, inp.amount, inp.reason_code)
    reason_code = inp.reason_code or "other"

    result = gateway.create_refund(
        order.payment_intent_id,
        amount,
        reason=reason_code if reason_code in GATEWAY_REFUND_REASONS else "requested_by_customer",
        metadata={
            "orderId": str(order.id),
            "reasonCode": reason_code,
            "internalReason": inp.reason or "",
        },
    )
    if not result.success:
        logger.error(f"Gateway refund failed for order {order.id}: {result.error}")
        raise RefundError(
            "GATEWAY_REFUND_FAILED", f"Gateway refund failed: {result.error}", status=500
        )

    now = time.now_utc()
    status = normalize_gateway_status(result.status)
    refund = Refund(
        id=uuid4(),
        order_id=order.id,
        amount=amount,
        reason_code=reason_code,
        reason=inp.reason,
        type="full" if amount >= order.total else "partial",
        source="gateway",
        status=status,
        gateway_refund_id=result.refund_id,
        created_by=inp.actor_name,
        created_at=now,
        updated_at=now,
        processed_at=now if status == RefundStatus.PROCESSED else None,
    )
    repo.save(refund)
    logger.info(f"Refund {refund.id} for order {order.id}: {amount} cents ({status.value})")

    if audit:
        audit.record(
            "refund",
            "refund",
            str(refund.id),
            description=f"Refund of {amount} cents on order {order.id}",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
            metadata={
                "order_id": str(order.id),
                "amount": amount,
                "reason_code": reason_code,
                "gateway_refund_id": result.refund_id,
                "gateway_status": result.status,
                "status": status.value,
            },
        )

    if status == RefundStatus.PROCESSED and events:
        events.refund_processed(refund, order)

    return _output(order, refund, repo)


def run_create_manual_refund(
    inp: CreateManualRefundInput,
    repo: RefundRepoPort,
    orders: OrderRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
) -> RefundOutput:
    """Record a refund paid outside the gateway. It starts pending."""
    order = _get_order(orders, inp.order_id)
    existing = repo.list_for_order(order.id)
    amount = _resolve_amount(order, existing, inp.amount, inp.reason_code)

    now = time.now_utc()
    refund = Refund(
        id=uuid4(),
        order_id=order.id,
        amount=amount,
        reason_code=inp.reason_code or "other",
        reason=inp.reason,
        type="full" if amount >= order.total else "partial",
        source="manual",
        status=RefundStatus.PENDING,
        created_by=inp.actor_name,
        created_at=now,
        updated_at=now,
    )
    repo.save(refund)
    logger.info(f"Manual refund {refund.id} recorded for order {order.id}")

    if audit:
        audit.record(
            "refund",
            "refund",
            str(refund.id),
            description=f"Manual refund of {amount} cents on order {order.id}",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
            metadata={"order_id": str(order.id), "amount": amount, "source": "manual"},
        )

    return _output(order, refund, repo)


def _apply_status(
    refund: Refund,
    target: RefundStatus,
    repo: RefundRepoPort,
    orders: OrderRepoPort,
    time: TimePort,
    events: RefundEventsPort | None,
) -> bool:
    if target == refund.status or not can_transition(refund.status, target):
        return False
    now = time.now_utc()
    refund.status = target
    refund.updated_at = now
    if target == RefundStatus.PROCESSED:
        refund.processed_at = now
    repo.save(refund)
    logger.info(f"Refund {refund.id} is now {target.value}")

    if target == RefundStatus.PROCESSED and events:
        order = orders.get_by_id(refund.order_id)
        if order:
            events.refund_processed(refund, order)
    return True


def run_sync_refund_status(
    inp: SyncRefundStatusInput,
    repo: RefundRepoPort,
    orders: OrderRepoPort,
    time: TimePort,
    events: RefundEventsPort | None = None,
) -> SyncRefundOutput:
    """Apply a gateway refund status update. Unknown refunds are ignored."""
    refund = repo.get_by_gateway_id(inp.gateway_refund_id)
    if refund is None:
        logger.warning(f"Refund update for unknown gateway refund {inp.gateway_refund_id}")
        return SyncRefundOutput(refund=None)
    target = normalize_gateway_status(inp.gateway_status)
    changed = _apply_status(refund, target, repo, orders, time, events)
    return SyncRefundOutput(refund=refund, changed=changed)


def run_set_refund_status(
    inp: SetRefundStatusInput,
    repo: RefundRepoPort,
    orders: OrderRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
    events: RefundEventsPort | None = None,
) -> SyncRefundOutput:
    refund = repo.get_by_id(inp.refund_id)
    if refund is None:
        raise RefundError("REFUND_NOT_FOUND", "Refund not found", status=404)
    try:
        target = RefundStatus(inp.status)
    except ValueError:
        raise RefundError("INVALID_STATUS", f"Unknown refund status: {inp.status}") from None
    if target != refund.status and not can_transition(refund.status, target):
        raise RefundError(
            "INVALID_TRANSITION",
            f"Cannot move refund from {refund.status.value} to {target.value}",
            status=409,
        )
    changed = _apply_status(refund, target, repo, orders, time, events)
    if changed and audit:
        audit.record(
            "status_change",
            "refund",
            str(refund.id),
            description=f"Refund marked {target.value}",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
        )
    return SyncRefundOutput(refund=refund, changed=changed)


def run(
    inp: CreateRefundInput | CreateManualRefundInput | SyncRefundStatusInput | SetRefundStatusInput,
    *,
    repo: RefundRepoPort,
    orders: OrderRepoPort,
    time: TimePort,
    gateway: PaymentGatewayPort | None = None,
    audit: AuditRecorder | None = None,
    events: RefundEventsPort | None = None,
) -> RefundOutput | SyncRefundOutput:
    """Refund component entry point."""
    if isinstance(inp, CreateRefundInput):
        assert gateway is not None
        return run_create_refund(inp, repo, orders, gateway, time, audit, events)
    if isinstance(inp, CreateManualRefundInput):
        return run_create_manual_refund(inp, repo, orders, time, audit)
    if isinstance(inp, SyncRefundStatusInput):
        return run_sync_refund_status(inp, repo, orders, time, events)
    if isinstance(inp, SetRefundStatusInput):
        return run_set_refund_status(inp, repo, orders, time, audit, events)
    raise ValueError(f"Unknown input type: {type(inp)}")
