from fastapi.testclient import TestClient

from src.domain.entities import User


def test_login_sets_cookie_and_me_lists_permissions(client: TestClient, owner: User):
    resp = client.post(
        "/api/auth/login",
        data={"username": "owner@example.com", "password": "correct-horse-battery"},
    )
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"
    assert "access_token" in resp.cookies

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    body = me.json()
    assert body["email"] == "owner@example.com"
    assert body["roles"] == ["owner"]
    assert "*" in body["permissions"]


def test_login_wrong_password(client: TestClient, owner: User):
    resp = client.post(
        "/api/auth/login",
        data={"username": "owner@example.com", "password": "not-the-password"},
    )
    assert resp.status_code == 401


def test_login_is_rate_limited(client: TestClient, owner: User):
    for _ in range(5):
        client.post("/api/auth/login", data={"username": "x@example.com", "password": "nope"})
    resp = client.post(
        "/api/auth/login",
        data={"username": "owner@example.com", "password": "correct-horse-battery"},
    )
    assert resp.status_code == 429
    assert "retry-after" in resp.headers


def test_me_requires_auth(client: TestClient):
    assert client.get("/api/auth/me").status_code == 401


def test_logout_clears_cookie(client: TestClient, owner: User):
    client.post(
        "/api/auth/login",
        data={"username": "owner@example.com", "password": "correct-horse-battery"},
    )
    assert client.post("/api/auth/logout").status_code == 200
    assert client.get("/api/auth/me").status_code == 401


def test_role_without_permission_is_forbidden(client: TestClient, editor_headers):
    assert client.get("/api/admin/orders", headers=editor_headers).status_code == 403
    # Editors may still manage content
    assert client.get("/api/admin/pages", headers=editor_headers).status_code == 200


def test_customer_token_rejected_on_admin_routes(client: TestClient):
    from src.api.auth_utils import create_access_token

    token = create_access_token({"sub": "00000000-0000-0000-0000-000000000001"}, kind="customer")
    resp = client.get("/api/admin/dashboard", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_health(client: TestClient):
    assert client.get("/health").json()["status"] == "ok"
