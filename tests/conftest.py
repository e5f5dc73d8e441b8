import pytest
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict
from httpx import ASGITransport, AsyncClient
from fastapi import FastAPI
from asgi_lifespan import LifespanManager

from app.core.config import Settings
from main import create_app

ADMIN_EMAIL = "admin@sav.com"
ADMIN_PASSWORD = "admin123"

UserFactory = Callable[..., Awaitable[Dict[str, Any]]]

@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings for an in-memory app with the demo accounts seeded."""
    return Settings(
        DATABASE_URL=None,
        SEED_DEMO_ACCOUNTS=True,
        STORAGE_BACKEND="local",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        PUBLIC_BASE_URL="http://test",
        LOG_DIR=None,
        ENABLE_RESPONSE_COMPRESSION=False,
    )

@pytest.fixture
async def test_app(test_settings) -> AsyncGenerator[FastAPI, None]:
    """Create a fresh application, and so a fresh store, for each test."""
    app = create_app(test_settings)
    async with LifespanManager(app):
        yield app

@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client talking to the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client

@pytest.fixture
def test_password() -> str:
    """Return a test password."""
    return "secret123"

def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
async def admin_headers(client: AsyncClient) -> Dict[str, str]:
    """Log in as the seeded administrator."""
    response = await client.post(
        "/api/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200, response.text
    return auth_headers(response.json()["token"])

@pytest.fixture
def make_user(client: AsyncClient, admin_headers: Dict[str, str], test_password: str) -> UserFactory:
    """
    Register an account, approve it and log it in.

    Returns ``{"user": ..., "headers": ...}``.
    """
    async def _make_user(email: str, name: str, role: str) -> Dict[str, Any]:
        response = await client.post(
            "/api/auth/register",
            json={"email": email, "password": test_password, "name": name, "role": role}
        )
        assert response.status_code == 201, response.text
        user_id = response.json()["id"]

        response = await client.patch(
            f"/api/admin/users/{user_id}/status",
            json={"status": "active"},
            headers=admin_headers
        )
        assert response.status_code == 200, response.text

        response = await client.post(
            "/api/auth/login",
            json={"email": email, "password": test_password}
        )
        assert response.status_code == 200, response.text
        data = response.json()
        return {"user": data["user"], "headers": auth_headers(data["token"])}

    return _make_user

@pytest.fixture
async def commercial_a(make_user: UserFactory) -> Dict[str, Any]:
    return await make_user("alice@shop.com", "Alice", "commercial")

@pytest.fixture
async def commercial_b(make_user: UserFactory) -> Dict[str, Any]:
    return await make_user("bruno@shop.com", "Bruno", "commercial")

@pytest.fixture
async def technician_pierre(make_user: UserFactory) -> Dict[str, Any]:
    return await make_user("pierre@repair.com", "Pierre", "technician")

@pytest.fixture
async def technician_luc(make_user: UserFactory) -> Dict[str, Any]:
    return await make_user("luc@repair.com", "Luc", "technician")

@pytest.fixture
async def client_of_a(client: AsyncClient, commercial_a: Dict[str, Any]) -> Dict[str, Any]:
    """A customer record owned by commercial A."""
    response = await client.post(
        "/api/clients",
        json={"name": "Mme Dupont", "email": "Dupont@Mail.com", "phone": "0601020304"},
        headers=commercial_a["headers"]
    )
    assert response.status_code == 201, response.text
    return response.json()

@pytest.fixture
def declaration_data(client_of_a: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "category_id": "2",
        "client_id": client_of_a["id"],
        "product_name": "Laptop X1",
        "serial_number": "SN-0042",
        "description": "Does not boot",
        "accessories": [{"name": "Charger", "checked": True}, {"name": "Bag"}],
    }

@pytest.fixture
async def declaration(
    client: AsyncClient,
    commercial_a: Dict[str, Any],
    declaration_data: Dict[str, Any]
) -> Dict[str, Any]:
    """A new declaration opened by commercial A."""
    response = await client.post(
        "/api/declarations",
        json=declaration_data,
        headers=commercial_a["headers"]
    )
    assert response.status_code == 201, response.text
    return response.json()
