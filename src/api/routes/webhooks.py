"""
Payment provider webhooks.

The raw body is verified against the ``x-payment-signature`` header before
anything is parsed. Both handlers are idempotent, so provider retries are
safe to acknowledge with 200.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.adapters.clock import SystemClock
from src.adapters.payment_stub import PaymentStubAdapter
from src.adapters.sqlite.commerce import SQLiteOrderRepo, SQLiteRefundRepo
from src.api.deps import (
    RefundFollowUp,
    Settings,
    get_affiliate_settings,
    get_checkout_ports,
    get_clock,
    get_meta_config,
    get_order_repo,
    get_payment_gateway,
    get_refund_events,
    get_refund_repo,
    get_settings,
)
from src.components.affiliates.models import AffiliateSettings
from src.components.capi.models import MetaConfig
from src.components.checkout import ConfirmPaymentInput, run_confirm_payment
from src.components.checkout.ports import CheckoutPorts
from src.components.refunds import SyncRefundStatusInput, run_sync_refund_status

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "x-payment-signature"


async def verified_event(
    request: Request, gateway: PaymentStubAdapter = Depends(get_payment_gateway)
) -> dict[str, Any]:
    payload = await request.body()
    event = gateway.parse_webhook(payload, request.headers.get(SIGNATURE_HEADER))
    if event is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid signature")
    return event


@router.post("/payments")
def payment_webhook(
    event: dict[str, Any] = Depends(verified_event),
    ports: CheckoutPorts = Depends(get_checkout_ports),
    settings: AffiliateSettings = Depends(get_affiliate_settings),
    meta: MetaConfig = Depends(get_meta_config),
    app_settings: Settings = Depends(get_settings),
    refunds: SQLiteRefundRepo = Depends(get_refund_repo),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    follow_up: RefundFollowUp = Depends(get_refund_events),
    clock: SystemClock = Depends(get_clock),
) -> dict[str, Any]:
    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}

    if event_type == "payment_intent.succeeded":
        intent_id = obj.get("id")
        if not intent_id:
            raise HTTPException(status_code=400, detail="Missing payment intent id")
        result = run_confirm_payment(
            ConfirmPaymentInput(payment_intent_id=intent_id),
            ports,
            settings,
            meta=meta,
            base_url=app_settings.base_url,
        )
        if not result.success:
            # Unknown intents are acknowledged so the provider stops retrying.
            return {"received": True, "handled": False}
        return {
            "received": True,
            "handled": True,
            "order_id": str(result.order_id),
            "already_paid": result.already_paid,
        }

    if event_type == "charge.refund.updated":
        refund_id = obj.get("id")
        gateway_status = obj.get("status")
        if not refund_id or not gateway_status:
            raise HTTPException(status_code=400, detail="Missing refund id or status")
        sync = run_sync_refund_status(
            SyncRefundStatusInput(gateway_refund_id=refund_id, gateway_status=gateway_status),
            refunds,
            orders,
            clock,
            events=follow_up,
        )
        return {"received": True, "handled": sync.refund is not None, "changed": sync.changed}

    logger.info(f"Ignoring payment webhook type {event_type}")
    return {"received": True, "handled": False}
