"""
Refund component.

Gateway and manual refunds, webhook status sync and derived payment status.
"""

from src.components.refunds.component import (
    compute_payment_status,
    compute_refundable_amount,
    is_valid_reason_code,
    normalize_gateway_status,
    order_is_paid,
    run,
    run_create_manual_refund,
    run_create_refund,
    run_set_refund_status,
    run_sync_refund_status,
    summarize_refunds,
)
from src.components.refunds.models import (
    REFUND_REASON_CODES,
    VALID_TRANSITIONS,
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
from src.components.refunds.ports import RefundEventsPort, RefundRepoPort

__all__ = [
    "run",
    "run_create_refund",
    "run_create_manual_refund",
    "run_sync_refund_status",
    "run_set_refund_status",
    "normalize_gateway_status",
    "is_valid_reason_code",
    "compute_refundable_amount",
    "compute_payment_status",
    "order_is_paid",
    "summarize_refunds",
    "REFUND_REASON_CODES",
    "VALID_TRANSITIONS",
    "can_transition",
    "Refund",
    "RefundStatus",
    "PaymentStatus",
    "RefundError",
    "CreateRefundInput",
    "CreateManualRefundInput",
    "SyncRefundStatusInput",
    "SetRefundStatusInput",
    "RefundOutput",
    "SyncRefundOutput",
    "RefundSummary",
    "RefundRepoPort",
    "RefundEventsPort",
]
