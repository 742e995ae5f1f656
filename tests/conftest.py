from collections.abc import Iterator
from datetime import timedelta
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.adapters.dev_email import DevEmailAdapter
from src.adapters.dev_sms import DevSmsAdapter
from src.adapters.payment_stub import PaymentStubAdapter
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteUserRepo
from src.api import deps
from src.api.auth_utils import create_access_token, get_password_hash
from src.api.deps import (
    Settings,
    get_email_sender,
    get_payment_gateway,
    get_settings,
    get_sms,
)
from src.api.main import app
from src.domain.entities import User
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent
OWNER_PASSWORD = "correct-horse-battery"


@pytest.fixture
def rules() -> Rules:
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a freshly migrated database in a temp data dir."""
    s = Settings()
    s.data_dir = tmp_path / "data"
    s.data_dir.mkdir()
    s.db_path = str(s.data_dir / "test.db")
    s.migrations_dir = str(PROJECT_ROOT / "migrations")
    s.rules_path = PROJECT_ROOT / "rules.yaml"
    s.base_url = "https://shop.test"
    s.meta_access_token = None
    SQLiteMigrator(s.db_path, s.migrations_dir).run_migrations()
    return s


@pytest.fixture
def gateway() -> PaymentStubAdapter:
    return PaymentStubAdapter(webhook_secret="whsec_test")


@pytest.fixture
def outbox() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def sms() -> DevSmsAdapter:
    return DevSmsAdapter()


@pytest.fixture
def client(
    test_settings: Settings,
    gateway: PaymentStubAdapter,
    outbox: DevEmailAdapter,
    sms: DevSmsAdapter,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[TestClient]:
    # Process-wide singletons would leak state between tests
    monkeypatch.setattr(deps, "_rate_limiter_instance", None)
    monkeypatch.setattr(deps, "_purchase_dedupe_instance", None)

    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_email_sender] = lambda: outbox
    app.dependency_overrides[get_sms] = lambda: sms
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db_path: str, email: str, roles: list[str]) -> User:
    user = User(
        email=email,
        display_name=email.split("@")[0].title(),
        password_hash=get_password_hash(OWNER_PASSWORD),
        roles=roles,  # type: ignore[arg-type]
    )
    SQLiteUserRepo(db_path).save(user)
    return user


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id)}, expires_delta=timedelta(hours=1))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner(test_settings: Settings) -> User:
    return make_user(test_settings.db_path, "owner@example.com", ["owner"])


@pytest.fixture
def admin_headers(owner: User) -> dict[str, str]:
    return auth_headers(owner)


@pytest.fixture
def editor_headers(test_settings: Settings) -> dict[str, str]:
    return auth_headers(make_user(test_settings.db_path, "editor@example.com", ["editor"]))


@pytest.fixture
def customer_details() -> dict[str, Any]:
    return {
        "email": "jane@example.com",
        "name": "Jane Doe",
        "phone": "+1 555 0100",
        "address_line1": "1 Ice Way",
        "city": "Austin",
        "state": "TX",
        "postal_code": "78701",
        "country": "US",
    }



@pytest.fixture
def published_product(client: TestClient, admin_headers: dict[str, str]) -> dict[str, Any]:
    resp = client.post(
        "/api/admin/products",
        json={
            "name": "Arctic Plunge Pro",
            "price": 499900,
            "sku": "APP-1",
            "tags": ["tubs"],
            "status": "published",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text
    product: dict[str, Any] = resp.json()
    return product
