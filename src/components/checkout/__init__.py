"""
Checkout component.

Cart pricing, affiliate attribution, pending orders with payment intents
and payment confirmation.
"""

from src.components.checkout.component import (
    attribution_type,
    compute_shipping,
    compute_tax,
    run,
    run_confirm_payment,
    run_create_checkout,
    upsert_customer,
    validate_customer,
)
from src.components.checkout.models import (
    CheckoutConfig,
    CheckoutLine,
    CheckoutOutput,
    CheckoutTotals,
    ConfirmPaymentInput,
    ConfirmPaymentOutput,
    CreateCheckoutInput,
    CustomerDetails,
    ValidationError,
)
from src.components.checkout.ports import CheckoutPorts, OrderConfirmationPort

__all__ = [
    "run",
    "run_create_checkout",
    "run_confirm_payment",
    "compute_tax",
    "compute_shipping",
    "attribution_type",
    "validate_customer",
    "upsert_customer",
    "CheckoutConfig",
    "CheckoutLine",
    "CustomerDetails",
    "CreateCheckoutInput",
    "ConfirmPaymentInput",
    "CheckoutOutput",
    "CheckoutTotals",
    "ConfirmPaymentOutput",
    "ValidationError",
    "CheckoutPorts",
    "OrderConfirmationPort",
]
