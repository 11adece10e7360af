import pytest
import os
import uuid
from datetime import date, timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.session import get_db
from app.models.base import Base
from app.models.user import User
from app.core.security import create_access_token, hash_password
from app.core.config import settings
from app.core.enums import UserRole


TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///./test_marketplace.db"
)

test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    future=True,
    poolclass=NullPool,
)

AsyncSessionTest = sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with AsyncSessionTest() as session:
        yield session


@pytest.fixture
async def setup_db():
    app.dependency_overrides[get_db] = override_get_db

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    app.dependency_overrides.clear()


@pytest.fixture
async def db_session(setup_db):
    async with AsyncSessionTest() as session:
        yield session


@pytest.fixture
def session_factory(setup_db):
    return AsyncSessionTest


@pytest.fixture
async def test_client(setup_db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register_user(test_client):
    """Register a user with a fresh organization; returns token, headers and profile."""
    async def _register(org_type="FARM", **kwargs):
        data = {
            "first_name": "Mario",
            "last_name": "Rossi",
            "email": f"user-{uuid.uuid4().hex[:10]}@agrimail.it",
            "organization_name": f"Org {uuid.uuid4().hex[:6]}",
            "org_type": org_type,
            "password": "sup3r-secret",
        }
        data.update(kwargs)

        response = await test_client.post("/auth/register", json=data)
        assert response.status_code == 200, response.text
        token = response.json()["access_token"]

        me = await test_client.get("/auth/me", headers=auth_headers(token))
        assert me.status_code == 200, me.text

        return {
            "token": token,
            "headers": auth_headers(token),
            "email": data["email"],
            "password": data["password"],
            **me.json(),
        }

    return _register


@pytest.fixture
async def buyer(register_user):
    return await register_user(org_type="FARM", base_location_lat=45.0, base_location_lng=9.0)


@pytest.fixture
async def operator(register_user):
    return await register_user(
        org_type="SERVICE_PROVIDER",
        organization_name="Alpha Droni",
        base_location_lat=45.0,
        base_location_lng=9.0,
    )


@pytest.fixture
async def operator_2(register_user):
    return await register_user(
        org_type="SERVICE_PROVIDER",
        organization_name="Beta Volo",
        base_location_lat=45.5,
        base_location_lng=9.5,
    )


@pytest.fixture
async def admin(db_session):
    user = User(
        email="admin@agrimail.it",
        first_name="Platform",
        last_name="Admin",
        password_hash=hash_password("admin-password"),
        role=UserRole.ADMIN,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)

    token = create_access_token(str(user.id), user.role)
    return {"id": user.id, "token": token, "headers": auth_headers(token)}


@pytest.fixture
def valid_rate_card_data():
    return {
        "service_type": "SPRAY",
        "base_rate_per_ha_cents": 5000,
        "min_charge_cents": 20000,
        "travel_fixed_cents": 1000,
        "travel_rate_per_km_cents": 50,
        "seasonal_multipliers": {"spring": 1.0, "summer": 1.2, "autumn": 1.0, "winter": 0.9},
    }


@pytest.fixture
def valid_job_data():
    start = date.today() + timedelta(days=10)
    return {
        "field_name": "Vigna Nord",
        "service_type": "SPRAY",
        "area_ha": 10.0,
        "location_lat": 45.0,
        "location_lng": 9.0,
        "crop_type": "VINEYARD",
        "treatment_type": "FUNGICIDE",
        "terrain_conditions": "FLAT",
        "target_date_start": start.isoformat(),
        "target_date_end": (start + timedelta(days=5)).isoformat(),
    }


@pytest.fixture
def create_rate_card_factory(test_client, valid_rate_card_data):
    async def _create_rate_card(user, **kwargs):
        data = dict(valid_rate_card_data)
        data.update(kwargs)

        response = await test_client.post("/rate-cards/", json=data, headers=user["headers"])
        assert response.status_code == 200, response.text
        return response.json()

    return _create_rate_card


@pytest.fixture
def create_job_factory(test_client, valid_job_data):
    async def _create_job(user, **kwargs):
        data = dict(valid_job_data)
        data.update(kwargs)

        response = await test_client.post("/jobs/", json=data, headers=user["headers"])
        assert response.status_code == 200, response.text
        return response.json()

    return _create_job


@pytest.fixture
def create_offer_factory(test_client):
    async def _create_offer(user, job_id, total_cents=60000, **kwargs):
        data = {"total_cents": total_cents}
        data.update(kwargs)

        response = await test_client.post(f"/jobs/{job_id}/offers", json=data, headers=user["headers"])
        assert response.status_code == 200, response.text
        return response.json()

    return _create_offer


@pytest.fixture
def create_product_factory(test_client):
    async def _create_product(user, sku=None, **kwargs):
        data = {
            "sku": sku or f"SKU-{uuid.uuid4().hex[:8]}",
            "name": "Ugello antideriva",
            "category": "SPARE_PART",
            "price_cents": 1500,
            "stock": 10,
        }
        data.update(kwargs)

        response = await test_client.post("/catalog/products", json=data, headers=user["headers"])
        assert response.status_code == 200, response.text
        return response.json()

    return _create_product


class FakeRedis:
    """In-memory stand-in for the few redis.asyncio calls the app makes."""

    def __init__(self):
        self.store = {}
        self.expiry = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiry[key] = ex
        return True

    async def incr(self, key):
        self.store[key] = str(int(self.store.get(key, 0)) + 1)
        return int(self.store[key])

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr("app.core.redis.redis", fake)
    return fake


@pytest.fixture
def app_settings():
    return settings


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "auth: marks tests related to authentication"
    )
    config.addinivalue_line(
        "markers", "webhooks: marks tests related to webhooks"
    )
    config.addinivalue_line(
        "markers", "rate_limit: marks tests related to rate limiting"
    )
    config.addinivalue_line(
        "markers", "audit: marks tests related to audit logging"
    )
    config.addinivalue_line(
        "markers", "idempotency: marks tests related to idempotency"
    )
