"""
Notification component unit tests.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from src.adapters.dev_email import DevEmailAdapter
from src.components.notifications import (
    InviteEmailInput,
    StoreInfo,
    StorefrontMailer,
    WelcomeEmailInput,
    format_money,
    render_order_confirmation,
    render_shipping_notice,
)
from src.components.orders.models import Customer, Order, OrderItem

STORE = StoreInfo(name="Power Plunge", base_url="https://shop.test/", support_email="help@shop.test")


def make_order() -> tuple[Order, Customer]:
    customer = Customer(id=uuid4(), email="ana@example.com", name="Ana <Diaz>")
    order_id = uuid4()
    order = Order(
        id=order_id,
        customer_id=customer.id,
        items=[
            OrderItem(
                id=uuid4(),
                order_id=order_id,
                product_id=uuid4(),
                product_name="Chiller & Tub",
                quantity=1,
                unit_price=499900,
            )
        ],
        subtotal=499900,
        coupon_discount=10000,
        total=489900,
        tracking_number="1Z999",
        carrier="UPS",
    )
    return order, customer


def test_format_money():
    assert format_money(499900) == "$4,999.00"
    assert format_money(-250) == "-$2.50"
    assert format_money(100, "eur") == "EUR 1.00"


def test_order_confirmation_escapes_and_lists_totals():
    order, customer = make_order()
    email = render_order_confirmation(order, customer, STORE)
    assert "Order confirmed" in email.subject
    assert "Chiller &amp; Tub" in email.body_html
    assert "&lt;Diaz&gt;" not in email.body_html  # first name only
    assert "Coupon discount: -$100.00" in email.body_text
    assert "Total: $4,899.00" in email.body_text
    assert "https://shop.test/order-status?order=" in email.body_text
    assert "mailto:help@shop.test" in email.body_html


def test_shipping_notice_includes_tracking():
    order, customer = make_order()
    email = render_shipping_notice(order, customer, STORE)
    assert "1Z999" in email.body_text
    assert "UPS" in email.body_html


def test_mailer_sends_through_sender():
    sender = DevEmailAdapter()
    mailer = StorefrontMailer(sender, STORE)
    order, customer = make_order()

    mailer.order_confirmed(order, customer)
    mailer.order_shipped(order, customer)
    mailer.refund_issued(order, customer, 2500)

    assert sender.email_count == 3
    assert sender.get_emails_with_subject("Refund issued")[0].recipient == "ana@example.com"


def test_affiliate_emails():
    sender = DevEmailAdapter()
    mailer = StorefrontMailer(sender, STORE)
    mailer.affiliate_invite(
        InviteEmailInput(
            recipient="new@example.com",
            invite_url="https://shop.test/affiliate/join?invite=abc",
            expires_at=datetime(2025, 7, 1, tzinfo=UTC),
        )
    )
    mailer.affiliate_welcome(
        WelcomeEmailInput(
            recipient="new@example.com",
            name="Sam",
            affiliate_code="SAMABC123",
            portal_url="https://shop.test/affiliate",
        )
    )
    invite, welcome = sender.sent_emails
    assert "July 01, 2025" in invite.body_text
    assert "https://shop.test/?ref=SAMABC123" in welcome.body_text


def test_newsletter_sender_port():
    sender = DevEmailAdapter()
    mailer = StorefrontMailer(sender, STORE)
    assert mailer.send_confirmation_email("a@example.com", "https://x/confirm?token=t", "Power Plunge")
    assert sender.get_last_email().subject == "Confirm your subscription to Power Plunge"
