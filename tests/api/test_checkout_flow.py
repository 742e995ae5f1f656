"""
Storefront purchase flow through the HTTP surface: checkout, payment
webhook, order lookup, customer login and refunds.
"""

import json
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.adapters.dev_email import DevEmailAdapter
from src.adapters.payment_stub import PaymentStubAdapter


def _signed_post(client: TestClient, gateway: PaymentStubAdapter, event: dict[str, Any]):
    payload = json.dumps(event).encode()
    return client.post(
        "/api/webhooks/payments",
        content=payload,
        headers={"x-payment-signature": gateway.sign(payload), "content-type": "application/json"},
    )


def _intent_id(client_secret: str) -> str:
    return client_secret.split("_secret_")[0]


@pytest.fixture
def checkout(client: TestClient, published_product, customer_details) -> dict[str, Any]:
    resp = client.post(
        "/api/public/checkout",
        json={
            "customer": customer_details,
            "items": [{"product_id": published_product["id"], "quantity": 2}],
        },
    )
    assert resp.status_code == 200, resp.text
    body: dict[str, Any] = resp.json()
    return body


@pytest.fixture
def paid_order(client: TestClient, gateway: PaymentStubAdapter, checkout) -> dict[str, Any]:
    event = {
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": _intent_id(checkout["client_secret"])}},
    }
    resp = _signed_post(client, gateway, event)
    assert resp.status_code == 200
    assert resp.json()["handled"] is True
    return checkout


def test_public_catalog_hides_admin_fields(client: TestClient, published_product):
    resp = client.get("/api/public/products")
    assert resp.status_code == 200
    products = resp.json()["products"]
    assert [p["slug"] for p in products] == ["arctic-plunge-pro"]
    assert "sku" not in products[0]
    assert products[0]["effective_price"] == 499900

    assert client.get("/api/public/products/arctic-plunge-pro").status_code == 200
    assert client.get("/api/public/products/missing").status_code == 404


def test_draft_products_are_not_public(client: TestClient, admin_headers):
    client.post(
        "/api/admin/products", json={"name": "Prototype", "price": 100}, headers=admin_headers
    )
    assert client.get("/api/public/products").json()["total"] == 0
    assert client.get("/api/public/products/prototype").status_code == 404


def test_checkout_computes_totals(checkout):
    totals = checkout["totals"]
    assert totals["subtotal"] == 999800
    assert totals["total"] == 999800
    assert checkout["attribution_type"] == "direct"
    assert checkout["client_secret"].startswith("pi_dev_")


def test_checkout_rejects_incomplete_address(client: TestClient, published_product, customer_details):
    details = {**customer_details, "city": ""}
    resp = client.post(
        "/api/public/checkout",
        json={"customer": details, "items": [{"product_id": published_product["id"]}]},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["errors"][0]["code"] == "ADDRESS_INCOMPLETE"


def test_webhook_rejects_bad_signature(client: TestClient):
    resp = client.post(
        "/api/webhooks/payments",
        content=b'{"type": "payment_intent.succeeded"}',
        headers={"x-payment-signature": "deadbeef"},
    )
    assert resp.status_code == 400


def test_webhook_acknowledges_unknown_intent(client: TestClient, gateway: PaymentStubAdapter):
    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_unknown"}}}
    resp = _signed_post(client, gateway, event)
    assert resp.status_code == 200
    assert resp.json()["handled"] is False


def test_payment_marks_order_paid_and_emails_customer(
    client: TestClient, gateway: PaymentStubAdapter, outbox: DevEmailAdapter, paid_order
):
    resp = client.post(
        "/api/public/orders/status",
        json={"order_id": paid_order["order_id"], "email": "JANE@example.com"},
    )
    assert resp.status_code == 200
    assert resp.json()["order"]["status"] == "paid"
    assert outbox.get_emails_to("jane@example.com")

    # Replayed webhook is idempotent
    event = {
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": _intent_id(paid_order["client_secret"])}},
    }
    replay = _signed_post(client, gateway, event)
    assert replay.json()["already_paid"] is True


def test_order_status_requires_matching_email(client: TestClient, paid_order):
    resp = client.post(
        "/api/public/orders/status",
        json={"order_id": paid_order["order_id"], "email": "someone@example.com"},
    )
    assert resp.status_code == 404


def test_customer_login_with_order_id(client: TestClient, paid_order):
    resp = client.post(
        "/api/customer/login",
        json={"email": "jane@example.com", "order_id": paid_order["order_id"]},
    )
    assert resp.status_code == 200

    me = client.get("/api/customer/me")
    assert me.status_code == 200
    assert me.json()["email"] == "jane@example.com"
    assert me.json()["is_affiliate"] is False
    assert client.get("/api/customer/affiliate").status_code == 403


def test_customer_login_rejects_wrong_email(client: TestClient, paid_order):
    resp = client.post(
        "/api/customer/login",
        json={"email": "other@example.com", "order_id": paid_order["order_id"]},
    )
    assert resp.status_code == 401


def test_partial_then_full_refund(client: TestClient, admin_headers, paid_order):
    order_id = paid_order["order_id"]
    first = client.post(
        f"/api/admin/orders/{order_id}/refunds",
        json={"amount": 100000, "reason_code": "requested_by_customer"},
        headers=admin_headers,
    )
    assert first.status_code == 201, first.text
    assert first.json()["payment_status"] == "partially_refunded"
    assert first.json()["refundable_remaining"] == 899800

    too_much = client.post(
        f"/api/admin/orders/{order_id}/refunds",
        json={"amount": 900000},
        headers=admin_headers,
    )
    assert too_much.status_code == 400

    rest = client.post(
        f"/api/admin/orders/{order_id}/refunds", json={}, headers=admin_headers
    )
    assert rest.status_code == 201
    assert rest.json()["payment_status"] == "refunded"

    detail = client.get(f"/api/admin/orders/{order_id}", headers=admin_headers).json()
    assert len(detail["refunds"]) == 2
    assert detail["refund_summary"]["refunded_amount"] == 999800


def test_refund_rejected_for_unpaid_order(client: TestClient, admin_headers, checkout):
    resp = client.post(
        f"/api/admin/orders/{checkout['order_id']}/refunds", json={}, headers=admin_headers
    )
    assert resp.status_code in (400, 409)


def test_order_status_transitions(client: TestClient, admin_headers, paid_order):
    order_id = paid_order["order_id"]
    shipped = client.post(
        f"/api/admin/orders/{order_id}/status",
        json={"status": "shipped", "tracking_number": "1Z999", "carrier": "UPS"},
        headers=admin_headers,
    )
    assert shipped.status_code == 200
    assert shipped.json()["order"]["status"] == "shipped"

    back = client.post(
        f"/api/admin/orders/{order_id}/status", json={"status": "paid"}, headers=admin_headers
    )
    assert back.status_code == 409

    audit = client.get("/api/admin/audit?entity_type=order", headers=admin_headers).json()
    assert audit["total"] >= 1


def test_coupon_applies_at_checkout(client: TestClient, admin_headers, published_product, customer_details):
    created = client.post(
        "/api/admin/coupons",
        json={"code": "chill10", "type": "percentage", "value": 10},
        headers=admin_headers,
    )
    assert created.status_code == 201, created.text

    check = client.post("/api/public/coupons/validate", json={"code": "CHILL10", "subtotal": 10000})
    assert check.status_code == 200
    assert check.json()["discount_amount"] == 1000

    resp = client.post(
        "/api/public/checkout",
        json={
            "customer": customer_details,
            "items": [{"product_id": published_product["id"]}],
            "coupon_code": "CHILL10",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["totals"]["coupon_discount"] == 49990
