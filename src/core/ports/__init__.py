# Ports (Protocol interfaces) for external services; no implementations here

from src.core.ports.email import (
    EmailAddress,
    EmailMessage,
    EmailResult,
    EmailSenderPort,
    EmailStatus,
    mask_email,
)
from src.core.ports.payment import (
    PaymentGatewayError,
    PaymentGatewayPort,
    PaymentIntent,
    RefundResult,
)
from src.core.ports.sms import SmsPort, mask_phone
from src.core.ports.time import TimePort

__all__ = [
    "EmailAddress",
    "EmailMessage",
    "EmailResult",
    "EmailSenderPort",
    "EmailStatus",
    "mask_email",
    "PaymentGatewayError",
    "PaymentGatewayPort",
    "PaymentIntent",
    "RefundResult",
    "SmsPort",
    "mask_phone",
    "TimePort",
]
