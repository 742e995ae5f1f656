"""
Notification component.

Storefront email templates and the mailer that sends them.
"""

from src.components.notifications.component import (
    StorefrontMailer,
    format_money,
    render_affiliate_invite,
    render_affiliate_welcome,
    render_newsletter_confirmation,
    render_newsletter_welcome,
    render_order_confirmation,
    render_refund_notice,
    render_shipping_notice,
    send_rendered,
    short_order_id,
)
from src.components.notifications.models import (
    InviteEmailInput,
    RenderedEmail,
    StoreInfo,
    WelcomeEmailInput,
)

__all__ = [
    "StorefrontMailer",
    "format_money",
    "short_order_id",
    "send_rendered",
    "render_order_confirmation",
    "render_shipping_notice",
    "render_refund_notice",
    "render_affiliate_invite",
    "render_affiliate_welcome",
    "render_newsletter_confirmation",
    "render_newsletter_welcome",
    "InviteEmailInput",
    "WelcomeEmailInput",
    "RenderedEmail",
    "StoreInfo",
]
