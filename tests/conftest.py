"""Shared fixtures: in-memory SQLite database, ASGI client and seed helpers."""

import os

# Settings are read at import time
os.environ.setdefault("API_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("API_JWT_SECRET_KEY", "test-secret-key-for-haven-care-suite-0123456789")
os.environ.setdefault("API_BCRYPT_ROUNDS", "4")
os.environ.setdefault("API_CRON_SECRET", "test-cron-secret")
os.environ.setdefault("API_RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("EMAIL__API_KEY", "")

from datetime import timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.dependencies import get_db_session
from api.main import app
from api.services.runners.billing import ContractBillingRunner
from database import Base
from database.care_models import FundingContractModel
from utils.date_utils import today_in

TIMEZONE = "Australia/Sydney"
PASSWORD = "Passw0rd!"
CRON_HEADERS = {"Authorization": "Bearer test-cron-secret"}


def org_today():
    """Billing date of the test organizations (default timezone)."""
    return today_in(TIMEZONE)


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker):
    async def override_get_db_session():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def register(client: AsyncClient, email: str, organization: str) -> dict:
    """Register an organization admin and return bearer headers."""
    response = await client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": PASSWORD, "fullName": "Test Admin", "organizationName": organization},
    )
    assert response.status_code == 201, response.text
    response = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['data']['accessToken']}"}


@pytest.fixture
async def auth_headers(client):
    return await register(client, "admin@example.com", "Sunrise Care")


@pytest.fixture
async def other_headers(client):
    return await register(client, "owner@example.org", "Other Provider")


@pytest.fixture
def seed(client, auth_headers):
    """Factory creating a house, a resident and a funding contract through the API."""

    async def _seed(
        *,
        next_run_date=None,
        daily_rate="10.00",
        original_amount="3650.00",
        current_balance=None,
        frequency="daily",
        contract_status="active",
        resident_status="active",
        headers=None,
        house_id=None,
    ) -> dict:
        headers = headers or auth_headers
        today = org_today()

        if house_id is None:
            house = await client.post(
                "/api/v1/houses",
                json={"name": "Banksia House", "address": "12 Wattle St", "suburb": "Parramatta", "bedrooms": 4},
                headers=headers,
            )
            assert house.status_code == 201, house.text
            house_id = house.json()["data"]["id"]

        resident = await client.post(
            "/api/v1/residents",
            json={"firstName": "Alex", "lastName": "Morgan", "houseId": house_id, "status": resident_status},
            headers=headers,
        )
        assert resident.status_code == 201, resident.text
        resident_id = resident.json()["data"]["id"]

        body = {
            "residentId": resident_id,
            "contractStatus": contract_status,
            "originalAmount": original_amount,
            "startDate": (today - timedelta(days=30)).isoformat(),
            "endDate": (today + timedelta(days=334)).isoformat(),
            "drawdownFrequency": frequency,
            "nextRunDate": (next_run_date or today).isoformat(),
            "dailySupportItemCost": daily_rate,
            "supportItemCode": "01_001_0107_1_1",
        }
        if current_balance is not None:
            body["currentBalance"] = current_balance
        contract = await client.post("/api/v1/contracts", json=body, headers=headers)
        assert contract.status_code == 201, contract.text
        return {"house_id": house_id, "resident_id": resident_id, "contract": contract.json()["data"]}

    return _seed


@pytest.fixture
def create_automation(client, auth_headers):
    """Factory creating an automation through the API; retries run without delay."""

    async def _create(
        *,
        type="contract_billing_run",
        enabled=True,
        parameters=None,
        schedule=None,
        headers=None,
        name="Nightly billing",
    ) -> dict:
        params = {"errorHandling": {"retryDelayMs": 0}}
        params.update(parameters or {})
        response = await client.post(
            "/api/v1/automations",
            json={
                "name": name,
                "type": type,
                "enabled": enabled,
                "schedule": schedule or {"frequency": "daily", "timeOfDay": "02:00", "timezone": TIMEZONE},
                "parameters": params,
            },
            headers=headers or auth_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def drain_after_evaluation(monkeypatch):
    """Drop a contract's balance after the billing run picked it, as a concurrent draw-down would."""

    def _drain(contract_id: int, balance: str = "4.00") -> None:
        load_items = ContractBillingRunner.load_items

        async def load_then_drain(self):
            items = await load_items(self)
            await self.session.execute(
                update(FundingContractModel)
                .where(FundingContractModel.id == contract_id)
                .values(current_balance=Decimal(balance))
            )
            return items

        monkeypatch.setattr(ContractBillingRunner, "load_items", load_then_drain)

    return _drain
