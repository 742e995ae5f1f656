"""
Notification component.

Plain-text and HTML templates for storefront emails plus the
StorefrontMailer that sends them through an EmailSenderPort.

Templates are pure functions returning RenderedEmail. All interpolated
values are HTML-escaped in the HTML body.
"""

from __future__ import annotations

import html
import logging

from src.components.notifications.models import (
    InviteEmailInput,
    RenderedEmail,
    StoreInfo,
    WelcomeEmailInput,
)
from src.components.orders.models import Customer, Order
from src.core.ports.email import EmailResult, EmailSenderPort, mask_email

logger = logging.getLogger(__name__)


def format_money(cents: int, currency: str = "USD") -> str:
    symbol = "$" if currency.upper() == "USD" else f"{currency.upper()} "
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{abs(cents) / 100:,.2f}"


def short_order_id(order: Order) -> str:
    return str(order.id).split("-")[0].upper()


def _wrap_html(store: StoreInfo, heading: str, body: str) -> str:
    footer = ""
    if store.support_email:
        safe = html.escape(store.support_email)
        footer = f'<p style="color:#64748b">Questions? <a href="mailto:{safe}">{safe}</a></p>'
    return (
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto">'
        f"<h1>{html.escape(heading)}</h1>{body}{footer}"
        f'<p style="color:#94a3b8">{html.escape(store.name)}</p></div>'
    )


def _items_table(order: Order) -> tuple[str, str]:
    rows_html = []
    rows_text = []
    for item in order.items:
        rows_html.append(
            f"<tr><td>{html.escape(item.product_name)}</td>"
            f"<td>{item.quantity}</td>"
            f"<td>{format_money(item.line_total, order.currency)}</td></tr>"
        )
        rows_text.append(
            f"- {item.product_name} x{item.quantity}: {format_money(item.line_total, order.currency)}"
        )
    table = (
        '<table style="width:100%;border-collapse:collapse">'
        "<tr><th align=left>Item</th><th align=left>Qty</th><th align=left>Total</th></tr>"
        + "".join(rows_html)
        + "</table>"
    )
    return table, "\n".join(rows_text)


def _totals(order: Order) -> list[tuple[str, int]]:
    lines = [("Subtotal", order.subtotal)]
    if order.affiliate_discount:
        lines.append(("Referral discount", -order.affiliate_discount))
    if order.coupon_discount:
        lines.append(("Coupon discount", -order.coupon_discount))
    if order.tax_amount:
        lines.append(("Tax", order.tax_amount))
    if order.shipping_amount:
        lines.append(("Shipping", order.shipping_amount))
    lines.append(("Total", order.total))
    return lines


# --- Templates ---


def render_order_confirmation(order: Order, customer: Customer, store: StoreInfo) -> RenderedEmail:
    ref = short_order_id(order)
    table, items_text = _items_table(order)
    totals = _totals(order)
    totals_html = "".join(
        f"<p>{label}: <strong>{format_money(amount, order.currency)}</strong></p>"
        for label, amount in totals
    )
    totals_text = "\n".join(f"{label}: {format_money(amount, order.currency)}" for label, amount in totals)
    status_url = f"{store.base_url.rstrip('/')}/order-status?order={order.id}"

    body = (
        f"<p>Hi {html.escape(customer.first_name or customer.name)},</p>"
        f"<p>Thanks for your order #{ref}. We'll email you again when it ships.</p>"
        f"{table}{totals_html}"
        f'<p><a href="{html.escape(status_url)}">Track your order</a></p>'
    )
    text = (
        f"Hi {customer.first_name or customer.name},\n\n"
        f"Thanks for your order #{ref}. We'll email you again when it ships.\n\n"
        f"{items_text}\n\n{totals_text}\n\nTrack your order: {status_url}\n"
    )
    return RenderedEmail(
        subject=f"Order confirmed #{ref} - {store.name}",
        body_html=_wrap_html(store, "Order confirmed", body),
        body_text=text,
    )


def render_shipping_notice(order: Order, customer: Customer, store: StoreInfo) -> RenderedEmail:
    ref = short_order_id(order)
    carrier = order.carrier or "the carrier"
    tracking = order.tracking_number or ""
    body = (
        f"<p>Hi {html.escape(customer.first_name or customer.name)},</p>"
        f"<p>Your order #{ref} is on its way with {html.escape(carrier)}.</p>"
        f"<p>Tracking number: <strong>{html.escape(tracking)}</strong></p>"
    )
    text = (
        f"Hi {customer.first_name or customer.name},\n\n"
        f"Your order #{ref} is on its way with {carrier}.\n"
        f"Tracking number: {tracking}\n"
    )
    return RenderedEmail(
        subject=f"Your order #{ref} has shipped",
        body_html=_wrap_html(store, "Your order has shipped", body),
        body_text=text,
    )


def render_refund_notice(
    order: Order, customer: Customer, amount: int, store: StoreInfo
) -> RenderedEmail:
    ref = short_order_id(order)
    money = format_money(amount, order.currency)
    body = (
        f"<p>Hi {html.escape(customer.first_name or customer.name)},</p>"
        f"<p>We've issued a refund of <strong>{money}</strong> for order #{ref}. "
        "It can take 5-10 business days to appear on your statement.</p>"
    )
    text = (
        f"Hi {customer.first_name or customer.name},\n\n"
        f"We've issued a refund of {money} for order #{ref}. "
        "It can take 5-10 business days to appear on your statement.\n"
    )
    return RenderedEmail(
        subject=f"Refund issued for order #{ref}",
        body_html=_wrap_html(store, "Refund issued", body),
        body_text=text,
    )


def render_affiliate_invite(inp: InviteEmailInput, store: StoreInfo) -> RenderedEmail:
    expiry_text = ""
    if inp.expires_at:
        expiry_text = f"This invite expires on {inp.expires_at.strftime('%B %d, %Y')}."
    note_html = f"<p><em>{html.escape(inp.inviter_note)}</em></p>" if inp.inviter_note else ""
    body = (
        f"<p>You've been invited to join the {html.escape(store.name)} affiliate program.</p>"
        f"{note_html}"
        f'<p><a href="{html.escape(inp.invite_url)}">Accept your invite</a></p>'
        f"<p>{html.escape(expiry_text)}</p>"
    )
    text = (
        f"You've been invited to join the {store.name} affiliate program.\n"
        + (f"\n{inp.inviter_note}\n" if inp.inviter_note else "")
        + f"\nAccept your invite: {inp.invite_url}\n{expiry_text}\n"
    )
    return RenderedEmail(
        subject=f"You're invited to the {store.name} affiliate program",
        body_html=_wrap_html(store, "Affiliate invitation", body),
        body_text=text,
    )


def render_affiliate_welcome(inp: WelcomeEmailInput, store: StoreInfo) -> RenderedEmail:
    link = f"{store.base_url.rstrip('/')}/?ref={inp.affiliate_code}"
    body = (
        f"<p>Welcome aboard, {html.escape(inp.name)}!</p>"
        f"<p>Your affiliate code is <strong>{html.escape(inp.affiliate_code)}</strong>.</p>"
        f"<p>Share this link: {html.escape(link)}</p>"
        f'<p><a href="{html.escape(inp.portal_url)}">Open your affiliate dashboard</a></p>'
    )
    text = (
        f"Welcome aboard, {inp.name}!\n\n"
        f"Your affiliate code is {inp.affiliate_code}.\n"
        f"Share this link: {link}\n"
        f"Affiliate dashboard: {inp.portal_url}\n"
    )
    return RenderedEmail(
        subject=f"Welcome to the {store.name} affiliate program",
        body_html=_wrap_html(store, "Welcome, partner", body),
        body_text=text,
    )


def render_newsletter_confirmation(confirmation_url: str, site_name: str) -> RenderedEmail:
    body = (
        f"<p>Please confirm your subscription to {html.escape(site_name)}.</p>"
        f'<p><a href="{html.escape(confirmation_url)}">Confirm subscription</a></p>'
        "<p>If you didn't sign up, you can ignore this email.</p>"
    )
    text = (
        f"Please confirm your subscription to {site_name}:\n{confirmation_url}\n\n"
        "If you didn't sign up, you can ignore this email.\n"
    )
    return RenderedEmail(
        subject=f"Confirm your subscription to {site_name}",
        body_html=_wrap_html(StoreInfo(name=site_name), "Confirm your subscription", body),
        body_text=text,
    )


def render_newsletter_welcome(unsubscribe_url: str, site_name: str) -> RenderedEmail:
    body = (
        f"<p>You're subscribed to {html.escape(site_name)} news.</p>"
        f'<p><a href="{html.escape(unsubscribe_url)}">Unsubscribe</a></p>'
    )
    text = f"You're subscribed to {site_name} news.\n\nUnsubscribe: {unsubscribe_url}\n"
    return RenderedEmail(
        subject=f"Welcome to {site_name}",
        body_html=_wrap_html(StoreInfo(name=site_name), "You're subscribed", body),
        body_text=text,
    )


# --- Sending ---


def send_rendered(sender: EmailSenderPort, recipient: str, email: RenderedEmail) -> EmailResult:
    result = sender.send_email(recipient, email.subject, email.body_html, email.body_text)
    if not result.delivered:
        logger.error(f"Email '{email.subject}' to {mask_email(recipient)} failed: {result.error}")
    return result


class StorefrontMailer:
    """
    Sends storefront emails.

    Satisfies the order notifier and newsletter sender ports so routes can
    hand one object to every component that emails customers.
    """

    def __init__(self, sender: EmailSenderPort, store: StoreInfo) -> None:
        self.sender = sender
        self.store = store

    def order_confirmed(self, order: Order, customer: Customer) -> EmailResult:
        return send_rendered(
            self.sender, customer.email, render_order_confirmation(order, customer, self.store)
        )

    def order_shipped(self, order: Order, customer: Customer) -> None:
        send_rendered(self.sender, customer.email, render_shipping_notice(order, customer, self.store))

    def refund_issued(self, order: Order, customer: Customer, amount: int) -> EmailResult:
        return send_rendered(
            self.sender, customer.email, render_refund_notice(order, customer, amount, self.store)
        )

    def affiliate_invite(self, inp: InviteEmailInput) -> EmailResult:
        return send_rendered(self.sender, inp.recipient, render_affiliate_invite(inp, self.store))

    def affiliate_welcome(self, inp: WelcomeEmailInput) -> EmailResult:
        return send_rendered(self.sender, inp.recipient, render_affiliate_welcome(inp, self.store))

    # Newsletter sender port

    def send_confirmation_email(
        self, recipient_email: str, confirmation_url: str, site_name: str
    ) -> bool:
        email = render_newsletter_confirmation(confirmation_url, site_name)
        return send_rendered(self.sender, recipient_email, email).delivered

    def send_welcome_email(self, recipient_email: str, unsubscribe_url: str, site_name: str) -> bool:
        email = render_newsletter_welcome(unsubscribe_url, site_name)
        return send_rendered(self.sender, recipient_email, email).delivered
