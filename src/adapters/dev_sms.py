"""
Dev SMS adapter.

Generates six-digit verification codes and keeps them in memory instead
of texting them. `last_code(phone)` lets tests complete the flow.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field

from src.core.ports.sms import SmsPort, mask_phone

logger = logging.getLogger(__name__)


@dataclass
class DevSmsAdapter:
    codes: dict[str, str] = field(default_factory=dict)
    fail_sends: bool = False

    def start_verification(self, phone: str) -> bool:
        if self.fail_sends:
            logger.warning(f"SMS (dev): refusing verification to {mask_phone(phone)}")
            return False
        code = f"{secrets.randbelow(1_000_000):06d}"
        self.codes[phone] = code
        logger.info(f"SMS (dev): verification code sent to {mask_phone(phone)}")
        return True

    def check_verification(self, phone: str, code: str) -> bool:
        expected = self.codes.get(phone)
        if expected is None or not secrets.compare_digest(expected, code.strip()):
            return False
        del self.codes[phone]
        return True

    def last_code(self, phone: str) -> str | None:
        return self.codes.get(phone)


def _verify_protocol_compliance() -> None:
    adapter: SmsPort = DevSmsAdapter()
    _ = adapter


_verify_protocol_compliance()
