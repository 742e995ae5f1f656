"""
Meta Conversions API component.

Hashed server-side Purchase/Refund events with a deduplicated queue and
backoff dispatch.
"""

from src.components.capi.component import (
    build_purchase_event,
    build_refund_event,
    build_user_data,
    compute_retry_delay,
    enqueue_purchase,
    enqueue_refund,
    failure_status,
    is_retryable,
    normalize_city,
    normalize_country,
    normalize_email,
    normalize_name,
    normalize_phone,
    normalize_state,
    normalize_zip,
    purchase_event_key,
    queue_stats,
    refund_event_key,
    resolve_content_id,
    run,
    run_dispatch_batch,
    run_enqueue_event,
    sha256_hex,
)
from src.components.capi.models import (
    MAX_ATTEMPTS,
    CapiEvent,
    CapiEventStatus,
    DispatchBatchInput,
    DispatchOutput,
    EnqueueEventInput,
    EnqueueOutput,
    MetaConfig,
    MetaGraphError,
    NonRetryableDispatchError,
    QueueStats,
)
from src.components.capi.ports import CapiEventRepoPort, MetaEventSenderPort

__all__ = [
    "run",
    "run_enqueue_event",
    "run_dispatch_batch",
    "enqueue_purchase",
    "enqueue_refund",
    "build_user_data",
    "build_purchase_event",
    "build_refund_event",
    "purchase_event_key",
    "refund_event_key",
    "compute_retry_delay",
    "failure_status",
    "is_retryable",
    "queue_stats",
    "sha256_hex",
    "normalize_email",
    "normalize_phone",
    "normalize_name",
    "normalize_city",
    "normalize_state",
    "normalize_zip",
    "normalize_country",
    "resolve_content_id",
    "MAX_ATTEMPTS",
    "CapiEvent",
    "CapiEventStatus",
    "EnqueueEventInput",
    "DispatchBatchInput",
    "EnqueueOutput",
    "DispatchOutput",
    "QueueStats",
    "MetaConfig",
    "MetaGraphError",
    "NonRetryableDispatchError",
    "CapiEventRepoPort",
    "MetaEventSenderPort",
]
