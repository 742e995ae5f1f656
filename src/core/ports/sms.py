"""
SMS port.

Phone verification for affiliate invites that target a phone number.
The production adapter wraps a verification service (Twilio Verify); the
dev adapter keeps codes in memory.
"""

from __future__ import annotations

from typing import Protocol


class SmsPort(Protocol):
    def start_verification(self, phone: str) -> bool:
        """Send a one-time code; False if the provider refused."""
        ...

    def check_verification(self, phone: str, code: str) -> bool:
        """True when the code matches the last one sent to the phone."""
        ...


def mask_phone(phone: str) -> str:
    digits = "".join(ch for ch in phone or "" if ch.isdigit())
    return f"***{digits[-4:]}" if digits else "***"
