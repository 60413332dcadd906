"""
Pytest configuration and fixtures.
"""
import asyncio
import os

# Cheap bcrypt and no startup seeding of the shared singleton database
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_DEMO_DATA", "false")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lms.api.dependencies import (  # noqa: E402
    clear_caches,
    get_database,
    get_password_hasher,
    get_payment_gateway,
)
from lms.config import get_settings  # noqa: E402
from lms.core.security import PasswordHasher, TokenManager  # noqa: E402
from lms.main import app  # noqa: E402
from lms.models.interfaces import PaymentGateway  # noqa: E402
from lms.repositories.memory import InMemoryDatabase  # noqa: E402
from lms.repositories.seed import (  # noqa: E402
    ACME_TENANT_ID,
    DEMO_PASSWORD,
    RIVERSIDE_TENANT_ID,
    load_demo_data,
)

ACME_HOST = "acme.lms.example.com"
RIVERSIDE_HOST = "riverside.lms.example.com"


def run(coro):
    """Run a coroutine on a private loop (sync fixtures)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def password_hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_manager():
    return TokenManager(secret_key="test-secret", expire_minutes=5)


@pytest.fixture
def db(password_hasher):
    """Fresh database seeded with the demo tenants and content."""
    database = InMemoryDatabase()
    run(load_demo_data(database, password_hasher))
    return database


@pytest.fixture
def mock_gateway():
    """Fixture for a mocked PaymentGateway."""
    gateway = MagicMock(spec=PaymentGateway)
    gateway.create_checkout_session = AsyncMock(
        return_value={"id": "cs_test_123", "url": "https://checkout.stripe.com/c/cs_test_123"}
    )
    gateway.create_payment_intent = AsyncMock(
        return_value={
            "id": "pi_test_123",
            "client_secret": "pi_test_123_secret",
            "amount": 2900,
            "currency": "usd",
            "status": "requires_payment_method",
        }
    )
    gateway.update_subscription = AsyncMock(
        return_value={"id": "sub_test_123", "status": "active", "cancel_at_period_end": True}
    )
    return gateway


@pytest.fixture
def test_client(db, password_hasher, mock_gateway):
    """
    TestClient fixture with dependency overrides.
    Uses a fresh seeded database and a mocked payment gateway per test.
    """
    clear_caches()
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_password_hasher] = lambda: password_hasher
    app.dependency_overrides[get_payment_gateway] = lambda: mock_gateway

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
    clear_caches()


def login(client: TestClient, email: str, host: str = ACME_HOST) -> dict:
    """Log in a demo user and return auth headers for the same host."""
    response = client.post(
        "/api/auth/login",
        json={"email": email, "password": DEMO_PASSWORD},
        headers={"Host": host},
    )
    assert response.status_code == 200, response.text
    return {"Host": host, "Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def login_as(test_client):
    """Log in any demo user: login_as(email, host=ACME_HOST)."""
    def _login(email: str, host: str = ACME_HOST) -> dict:
        return login(test_client, email, host=host)
    return _login


@pytest.fixture
def acme_headers():
    return {"Host": ACME_HOST}


@pytest.fixture
def pro_headers(test_client):
    """Pro-tier regular user of the Acme tenant."""
    return login(test_client, "pro@acme-riding.com")


@pytest.fixture
def student_headers(test_client):
    """Basic-tier regular user of the Acme tenant."""
    return login(test_client, "student@acme-riding.com")


@pytest.fixture
def admin_headers(test_client):
    return login(test_client, "admin@acme-riding.com")


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def acme_tenant(db):
    return run(db.tenants.find_by_id(ACME_TENANT_ID))


@pytest.fixture
def riverside_tenant(db):
    return run(db.tenants.find_by_id(RIVERSIDE_TENANT_ID))


@pytest.fixture
def pro_user(db):
    return run(db.users.find_by_id("user-acme-pro"))


@pytest.fixture
def student_user(db):
    return run(db.users.find_by_id("user-acme-student"))
