"""
Notification component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StoreInfo:
    """Branding used by every template."""

    name: str = "Power Plunge"
    base_url: str = "http://localhost:8000"
    support_email: str | None = None


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    body_html: str
    body_text: str


@dataclass(frozen=True)
class InviteEmailInput:
    recipient: str
    invite_url: str
    expires_at: datetime | None = None
    inviter_note: str | None = None


@dataclass(frozen=True)
class WelcomeEmailInput:
    recipient: str
    name: str
    affiliate_code: str
    portal_url: str
