"""
Meta Conversions API component.

Builds server-side Purchase and Refund events, queues them with a unique
dedupe key, and dispatches due events in batches with exponential
backoff.

Key behaviors:
- Nothing is queued unless the order carries marketing consent and a
  pixel id plus access token are configured
- Personal data is normalized and sha256-hashed before it is queued
- Consent is re-checked at dispatch time; a missing order or revoked
  consent fails the event permanently
- 429 and 5xx responses are retried until MAX_ATTEMPTS; other Graph
  errors fail immediately
"""

from __future__ import annotations

import hashlib
import logging
import random
import re
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID, uuid4

from src.components.capi.models import (
    BASE_RETRY_DELAY_SECONDS,
    MAX_ATTEMPTS,
    MAX_RETRY_DELAY_SECONDS,
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
from src.components.capi.ports import CapiEventRepoPort, MetaEventSenderPort, TimePort
from src.components.catalog.models import Product
from src.components.orders.models import Customer, Order
from src.components.orders.ports import OrderRepoPort

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^\d]")
_NON_LETTERS = re.compile(r"[^a-z]")


# --- Normalization ---


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode()).hexdigest()


def normalize_email(value: str | None) -> str | None:
    normalized = (value or "").strip().lower()
    return normalized or None


def normalize_phone(value: str | None) -> str | None:
    normalized = _NON_DIGITS.sub("", value or "")
    return normalized or None


def normalize_name(value: str | None) -> str | None:
    normalized = (value or "").strip().lower()
    return normalized or None


def normalize_city(value: str | None) -> str | None:
    normalized = _NON_LETTERS.sub("", (value or "").strip().lower())
    return normalized or None


normalize_state = normalize_city


def normalize_zip(value: str | None) -> str | None:
    normalized = (value or "").strip().split("-")[0].strip().lower()
    return normalized or None


def normalize_country(value: str | None) -> str:
    return (value or "").strip().lower() or "us"


def resolve_content_id(sku: str | None, product_id: UUID) -> str:
    return (sku or "").strip() or str(product_id)


def _split_name(name: str | None) -> tuple[str | None, str | None]:
    parts = (name or "").split()
    if not parts:
        return None, None
    first = normalize_name(parts[0])
    last = normalize_name(parts[-1]) if len(parts) > 1 else None
    return first, last


def _cents_to_dollars(cents: int) -> float:
    return round(cents / 100, 2)


# --- Payloads ---


def build_user_data(order: Order, customer: Customer | None) -> dict[str, Any]:
    """Hashed customer match keys plus browser identifiers from checkout."""
    user_data: dict[str, Any] = {}
    email = normalize_email(customer.email if customer else None)
    if email:
        user_data["em"] = [sha256_hex(email)]
    phone = normalize_phone(customer.phone if customer else None)
    if phone:
        user_data["ph"] = [sha256_hex(phone)]

    first, last = _split_name(customer.name if customer else None)
    if first:
        user_data["fn"] = [sha256_hex(first)]
    if last:
        user_data["ln"] = [sha256_hex(last)]

    if customer:
        city = normalize_city(customer.city)
        if city:
            user_data["ct"] = [sha256_hex(city)]
        state = normalize_state(customer.state)
        if state:
            user_data["st"] = [sha256_hex(state)]
        zip_code = normalize_zip(customer.postal_code)
        if zip_code:
            user_data["zp"] = [sha256_hex(zip_code)]
        user_data["external_id"] = [sha256_hex(str(customer.id))]

    user_data["country"] = [sha256_hex(normalize_country(customer.country if customer else None))]

    if order.fbp:
        user_data["fbp"] = order.fbp
    if order.fbc:
        user_data["fbc"] = order.fbc
    if order.client_ip:
        user_data["client_ip_address"] = order.client_ip
    if order.client_user_agent:
        user_data["client_user_agent"] = order.client_user_agent
    return user_data


def purchase_event_key(order_id: UUID) -> str:
    return f"purchase:{order_id}"


def refund_event_key(refund_id: UUID) -> str:
    return f"refund:{refund_id}:processed"


def build_purchase_event(
    order: Order,
    customer: Customer | None,
    products: dict[UUID, Product],
    event_source_url: str,
) -> dict[str, Any]:
    contents = []
    for item in order.items:
        product = products.get(item.product_id)
        sku = item.sku or (product.sku if product else None)
        contents.append(
            {
                "id": resolve_content_id(sku, item.product_id),
                "quantity": item.quantity,
                "item_price": _cents_to_dollars(item.unit_price),
            }
        )
    occurred = order.paid_at or order.updated_at or order.created_at
    return {
        "event_name": "Purchase",
        "event_time": int(occurred.timestamp()),
        "event_id": purchase_event_key(order.id),
        "action_source": "website",
        "event_source_url": event_source_url,
        "user_data": build_user_data(order, customer),
        "custom_data": {
            "currency": "USD",
            "value": _cents_to_dollars(order.total),
            "order_id": str(order.id),
            "content_type": "product",
            "content_ids": [c["id"] for c in contents],
            "contents": contents,
            "num_items": order.item_count,
        },
    }


def build_refund_event(
    refund_id: UUID,
    amount: int,
    occurred_at: datetime,
    order: Order,
    customer: Customer | None,
    event_source_url: str,
) -> dict[str, Any]:
    """Refund value is reported as the positive refunded amount."""
    return {
        "event_name": "Refund",
        "event_time": int(occurred_at.timestamp()),
        "event_id": refund_event_key(refund_id),
        "action_source": "website",
        "event_source_url": event_source_url,
        "user_data": build_user_data(order, customer),
        "custom_data": {
            "currency": "USD",
            "value": _cents_to_dollars(abs(amount)),
            "order_id": str(order.id),
        },
    }


# --- Queue ---


def run_enqueue_event(
    inp: EnqueueEventInput,
    repo: CapiEventRepoPort,
    config: MetaConfig,
    time: TimePort,
) -> EnqueueOutput:
    if not inp.marketing_consent_granted or not config.configured:
        return EnqueueOutput(
            success=True, queued=False, reason="marketing_consent_or_meta_config_missing"
        )

    existing = repo.get_by_key(inp.event_key)
    if existing:
        return EnqueueOutput(success=True, queued=False, event=existing, reason="already_exists")

    now = time.now_utc()
    event = CapiEvent(
        id=uuid4(),
        event_key=inp.event_key,
        event_name=inp.event_name,
        payload=inp.payload,
        order_id=inp.order_id,
        refund_id=inp.refund_id,
        next_attempt_at=now,
        created_at=now,
        updated_at=now,
    )
    repo.save(event)
    logger.info(f"CAPI {inp.event_name} queued ({inp.event_key})")
    return EnqueueOutput(success=True, queued=True, event=event)


def enqueue_purchase(
    order: Order,
    customer: Customer | None,
    products: dict[UUID, Product],
    repo: CapiEventRepoPort,
    config: MetaConfig,
    time: TimePort,
    base_url: str = "",
) -> EnqueueOutput:
    payload = build_purchase_event(order, customer, products, f"{base_url}/checkout")
    return run_enqueue_event(
        EnqueueEventInput(
            event_key=purchase_event_key(order.id),
            event_name="Purchase",
            payload=payload,
            marketing_consent_granted=order.marketing_consent_granted,
            order_id=order.id,
        ),
        repo,
        config,
        time,
    )


def enqueue_refund(
    refund_id: UUID,
    amount: int,
    occurred_at: datetime,
    order: Order,
    customer: Customer | None,
    repo: CapiEventRepoPort,
    config: MetaConfig,
    time: TimePort,
    base_url: str = "",
) -> EnqueueOutput:
    payload = build_refund_event(
        refund_id, amount, occurred_at, order, customer, f"{base_url}/checkout"
    )
    return run_enqueue_event(
        EnqueueEventInput(
            event_key=refund_event_key(refund_id),
            event_name="Refund",
            payload=payload,
            marketing_consent_granted=order.marketing_consent_granted,
            order_id=order.id,
            refund_id=refund_id,
        ),
        repo,
        config,
        time,
    )


def compute_retry_delay(attempts: int, jitter: int = 0) -> int:
    """Seconds until the next attempt: 15s doubling per attempt, capped at an hour."""
    base = min(MAX_RETRY_DELAY_SECONDS, (2 ** max(1, attempts)) * BASE_RETRY_DELAY_SECONDS)
    return base + max(0, jitter)


def failure_status(attempts: int, retryable: bool, max_attempts: int = MAX_ATTEMPTS) -> CapiEventStatus:
    if retryable and attempts < max_attempts:
        return CapiEventStatus.RETRY
    return CapiEventStatus.FAILED


def is_retryable(error: Exception) -> bool:
    if isinstance(error, NonRetryableDispatchError):
        return False
    if isinstance(error, MetaGraphError) and error.status:
        return error.status == 429 or error.status >= 500
    return True


def _default_jitter() -> int:
    return random.randint(0, 9)


def _check_consent(event: CapiEvent, orders: OrderRepoPort | None) -> None:
    if event.order_id is None or orders is None:
        return
    order = orders.get_by_id(event.order_id)
    if order is None:
        raise NonRetryableDispatchError("Order not found")
    if not order.marketing_consent_granted:
        raise NonRetryableDispatchError("Marketing consent not granted")


def run_dispatch_batch(
    inp: DispatchBatchInput,
    repo: CapiEventRepoPort,
    sender: MetaEventSenderPort,
    config: MetaConfig,
    time: TimePort,
    orders: OrderRepoPort | None = None,
    max_attempts: int = MAX_ATTEMPTS,
    jitter: Callable[[], int] = _default_jitter,
) -> DispatchOutput:
    if not config.configured:
        return DispatchOutput(success=True)

    now = time.now_utc()
    batch = repo.list_due(now, max(1, inp.limit))
    for event in batch:
        event.status = CapiEventStatus.PROCESSING
        event.updated_at = now
        repo.save(event)

    dispatched = 0
    failed = 0
    for event in batch:
        attempts = event.attempt_count + 1
        try:
            _check_consent(event, orders)
            response = sender.send_events(
                config.pixel_id or "", [event.payload], config.test_event_code
            )
        except (MetaGraphError, NonRetryableDispatchError) as e:
            failed += 1
            status = failure_status(attempts, is_retryable(e), max_attempts)
            event.status = status
            event.attempt_count = attempts
            event.last_error = str(e) or "dispatch_failed"
            if status == CapiEventStatus.RETRY:
                event.next_attempt_at = now + timedelta(
                    seconds=compute_retry_delay(attempts, jitter())
                )
                logger.warning(
                    f"CAPI event {event.event_key} attempt {attempts} failed; retrying: {e}"
                )
            else:
                logger.error(f"CAPI event {event.event_key} failed permanently: {e}")
            event.updated_at = now
            repo.save(event)
            continue

        dispatched += 1
        event.status = CapiEventStatus.SENT
        event.attempt_count = attempts
        event.sent_at = now
        event.updated_at = now
        event.last_error = None
        event.trace_id = (response or {}).get("fbtrace_id")
        repo.save(event)
        logger.info(f"CAPI event {event.event_key} sent")

    return DispatchOutput(success=failed == 0, dispatched=dispatched, failed=failed)


def queue_stats(repo: CapiEventRepoPort, time: TimePort) -> QueueStats:
    counts = repo.count_by_status()
    oldest = repo.oldest_queued_at()
    age = None
    if oldest is not None:
        age = max(0, int((time.now_utc() - oldest).total_seconds()))
    return QueueStats(
        queued=counts.get(CapiEventStatus.QUEUED, 0),
        processing=counts.get(CapiEventStatus.PROCESSING, 0),
        retry=counts.get(CapiEventStatus.RETRY, 0),
        sent=counts.get(CapiEventStatus.SENT, 0),
        failed=counts.get(CapiEventStatus.FAILED, 0),
        oldest_queued_at=oldest,
        oldest_queued_age_seconds=age,
        last_sent_at=repo.last_sent_at(),
    )


def run(
    inp: EnqueueEventInput | DispatchBatchInput,
    *,
    repo: CapiEventRepoPort,
    config: MetaConfig,
    time: TimePort,
    sender: MetaEventSenderPort | None = None,
    orders: OrderRepoPort | None = None,
) -> EnqueueOutput | DispatchOutput:
    """CAPI component entry point."""
    if isinstance(inp, EnqueueEventInput):
        return run_enqueue_event(inp, repo, config, time)
    if isinstance(inp, DispatchBatchInput):
        assert sender is not None
        return run_dispatch_batch(inp, repo, sender, config, time, orders)
    raise ValueError(f"Unknown input type: {type(inp)}")
