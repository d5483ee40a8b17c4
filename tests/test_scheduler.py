"""Scheduler endpoint: cron authentication, due selection and slot advancement."""

from datetime import timedelta

from sqlalchemy import func, select, update

from database.automation_models import AutomationModel, AutomationRunModel
from utils.date_utils import utcnow

from .conftest import CRON_HEADERS


async def _make_due(session_maker, automation_id: int, **values) -> None:
    async with session_maker() as session:
        await session.execute(
            update(AutomationModel)
            .where(AutomationModel.id == automation_id)
            .values(next_run_at=utcnow() - timedelta(minutes=5), **values)
        )
        await session.commit()


async def _automation(session_maker, automation_id: int) -> AutomationModel:
    async with session_maker() as session:
        return await session.get(AutomationModel, automation_id)


async def test_scheduler_requires_cron_secret(client):
    missing = await client.post("/api/v1/automations/scheduler")
    wrong = await client.post("/api/v1/automations/scheduler", headers={"Authorization": "Bearer nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


async def test_nothing_due(client, create_automation):
    await create_automation()

    response = await client.post("/api/v1/automations/scheduler", headers=CRON_HEADERS)

    assert response.status_code == 200
    assert response.json()["data"] == {"due": 0, "executed": 0, "skipped": 0, "failed": 0, "runs": []}


async def test_due_automation_runs_and_advances(client, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation()
    await _make_due(session_maker, automation["id"])

    response = await client.post("/api/v1/automations/scheduler", headers=CRON_HEADERS)

    data = response.json()["data"]
    assert data["due"] == 1
    assert data["executed"] == 1
    assert data["failed"] == 0
    assert data["runs"][0]["automationId"] == automation["id"]
    assert data["runs"][0]["success"] is True

    stored = await _automation(session_maker, automation["id"])
    assert stored.next_run_at > utcnow()
    assert stored.last_run_status == "success"
    assert stored.running_since is None

    async with session_maker() as session:
        run = (await session.execute(select(AutomationRunModel))).scalar_one()
    assert run.triggered_by == "scheduler"


async def test_failed_preflight_skips_the_slot(client, create_automation, session_maker):
    # No contracts at all, so the billing run has nothing to do
    automation = await create_automation()
    await _make_due(session_maker, automation["id"])

    response = await client.post("/api/v1/automations/scheduler", headers=CRON_HEADERS)

    data = response.json()["data"]
    assert data["skipped"] == 1
    assert data["runs"] == [{"automationId": automation["id"], "skipped": True, "reason": "no eligible contracts"}]

    stored = await _automation(session_maker, automation["id"])
    assert stored.next_run_at > utcnow()
    assert stored.last_run_at is None
    async with session_maker() as session:
        count = await session.execute(select(func.count(AutomationRunModel.id)))
    assert count.scalar_one() == 0


async def test_running_automation_keeps_its_slot(client, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation()
    await _make_due(session_maker, automation["id"], running_since=utcnow())
    before = (await _automation(session_maker, automation["id"])).next_run_at

    response = await client.post("/api/v1/automations/scheduler", headers=CRON_HEADERS)

    assert response.json()["data"]["runs"][0]["reason"] == "automation already running"
    assert (await _automation(session_maker, automation["id"])).next_run_at == before


async def test_disabled_automations_are_not_due(client, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation(enabled=False)
    await _make_due(session_maker, automation["id"])

    response = await client.post("/api/v1/automations/scheduler", headers=CRON_HEADERS)

    assert response.json()["data"]["due"] == 0


async def test_invalid_schedule_is_parked(client, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation()
    await _make_due(session_maker, automation["id"], schedule={"frequency": "hourly"})

    response = await client.post("/api/v1/automations/scheduler", headers=CRON_HEADERS)

    assert response.json()["data"]["runs"][0]["reason"].startswith("invalid schedule")
    assert (await _automation(session_maker, automation["id"])).next_run_at is None
