"""
Payment gateway port.

Checkout creates a payment intent, the gateway confirms payment through
a signed webhook, and admins issue refunds against the original intent.

Implementations:
- PaymentStubAdapter: deterministic in-process gateway (dev/test)
- A Stripe adapter implements the same interface in production
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str
    amount: int
    currency: str
    status: str = "requires_payment_method"
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RefundResult:
    """Outcome of a refund request; `status` is the gateway's raw status."""

    success: bool
    refund_id: str | None = None
    status: str = "pending"
    error: str | None = None


class PaymentGatewayError(Exception):
    """Raised when the gateway cannot create a payment intent."""


class PaymentGatewayPort(Protocol):
    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        receipt_email: str | None = None,
    ) -> PaymentIntent:
        """Create an intent; raises PaymentGatewayError on failure."""
        ...

    def create_refund(
        self,
        payment_intent_id: str,
        amount: int,
        reason: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> RefundResult:
        """Request a refund. Must not raise; failures come back in the result."""
        ...

    def parse_webhook(self, payload: bytes, signature: str | None) -> dict[str, Any] | None:
        """Verify the signature and decode the event; None if invalid."""
        ...


# Gateway refund reasons accepted as-is; everything else is sent without a reason
GATEWAY_REFUND_REASONS: frozenset[str] = frozenset(
    {"duplicate", "fraudulent", "requested_by_customer"}
)
