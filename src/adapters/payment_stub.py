"""
Payment stub adapter (dev/test).

In-process stand-in for the payment gateway. Payment intents and refunds
get deterministic-looking ids, and webhooks are signed with an
HMAC-SHA256 of the raw body so the webhook route can be exercised end to
end without a provider.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import secrets
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from src.core.ports.payment import (
    PaymentGatewayError,
    PaymentGatewayPort,
    PaymentIntent,
    RefundResult,
)

logger = logging.getLogger(__name__)


@dataclass
class PaymentStubAdapter:
    """
    Stub gateway satisfying PaymentGatewayPort.

    `refund_status` controls the raw status returned for refunds and
    `fail_refunds` / `fail_intents` simulate provider errors in tests.
    """

    webhook_secret: str = "whsec_dev"
    refund_status: str = "succeeded"
    fail_refunds: bool = False
    fail_intents: bool = False
    intents: dict[str, PaymentIntent] = field(default_factory=dict)
    refunds: list[dict[str, Any]] = field(default_factory=list)

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        receipt_email: str | None = None,
    ) -> PaymentIntent:
        if self.fail_intents:
            raise PaymentGatewayError("Payment provider unavailable")
        intent_id = f"pi_dev_{uuid4().hex[:24]}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{secrets.token_hex(8)}",
            amount=amount,
            currency=currency.lower(),
            metadata=dict(metadata),
        )
        self.intents[intent_id] = intent
        logger.debug(f"PaymentStubAdapter intent {intent_id} for {amount} {currency}")
        return intent

    def create_refund(
        self,
        payment_intent_id: str,
        amount: int,
        reason: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> RefundResult:
        if self.fail_refunds:
            return RefundResult(success=False, status="failed", error="Refund declined")
        refund_id = f"re_dev_{uuid4().hex[:24]}"
        self.refunds.append(
            {
                "id": refund_id,
                "payment_intent": payment_intent_id,
                "amount": amount,
                "reason": reason,
                "metadata": dict(metadata or {}),
            }
        )
        return RefundResult(success=True, refund_id=refund_id, status=self.refund_status)

    # --- Webhooks ---

    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    def parse_webhook(self, payload: bytes, signature: str | None) -> dict[str, Any] | None:
        if not signature or not hmac.compare_digest(self.sign(payload), signature):
            logger.warning("Payment webhook rejected: bad signature")
            return None
        try:
            event = json.loads(payload)
        except ValueError:
            return None
        return event if isinstance(event, dict) else None


def _verify_protocol_compliance() -> None:
    adapter: PaymentGatewayPort = PaymentStubAdapter()
    _ = adapter


_verify_protocol_compliance()
