"""
Notification component ports.
"""

from __future__ import annotations

from src.core.ports.email import EmailSenderPort

__all__ = ["EmailSenderPort"]
