"""Run-now endpoints: preflight, execution, run ledger and error responses."""

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import delete, func, select, update

from api.repositories.automation_repos import AutomationRunRepository
from api.services.automation_run_service import AutomationRunService
from database.audit_models import AuditLogModel
from database.automation_models import AutomationModel, AutomationRunModel, AutomationSettingsModel
from database.care_models import FundingContractModel
from database.finance_models import TransactionModel
from utils.date_utils import utcnow

from .conftest import org_today


async def _run_count(session_maker, automation_id: int) -> int:
    async with session_maker() as session:
        result = await session.execute(
            select(func.count(AutomationRunModel.id)).where(AutomationRunModel.automation_id == automation_id)
        )
        return result.scalar_one()


def _instant(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", ""))


async def _detail(client, headers, automation_id: int) -> dict:
    return (await client.get(f"/api/v1/automations/{automation_id}", headers=headers)).json()["data"]


async def test_preflight_passes_for_due_contract(client, auth_headers, seed, create_automation):
    await seed()
    automation = await create_automation()

    response = await client.get(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"canRun": True, "reason": None}}


async def test_run_now_bills_eligible_contract(client, auth_headers, seed, create_automation, session_maker):
    seeded = await seed()
    automation = await create_automation()

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["success"] is True
    assert data["error"] is None
    assert data["metrics"]["processed"] == 1
    assert data["metrics"]["failed"] == 0
    assert data["metrics"]["outcome"] == "success"
    assert data["metrics"]["totalAmount"] == 10.0
    assert data["metrics"]["transactionIds"] == ["TXN-SUNRIS-A000001"]

    detail = await _detail(client, auth_headers, automation["id"])
    assert detail["lastRunStatus"] == "success"
    assert detail["isRunning"] is False
    assert detail["health"] == "active"
    assert detail["nextRunAt"].endswith("Z")
    assert _instant(detail["nextRunAt"]) > _instant(automation["nextRunAt"])

    runs = (await client.get(f"/api/v1/automations/{automation['id']}/runs", headers=auth_headers)).json()["data"]
    assert len(runs) == 1
    assert runs[0]["id"] == data["runId"]
    assert runs[0]["status"] == "success"
    assert runs[0]["triggeredBy"] == "manual"
    assert runs[0]["finishedAt"] is not None

    async with session_maker() as session:
        contract = await session.get(FundingContractModel, seeded["contract"]["id"])
        assert contract.current_balance == Decimal("3640.00")
        assert contract.next_run_date == org_today() + timedelta(days=1)

        transaction = (await session.execute(select(TransactionModel))).scalar_one()
        assert transaction.source == "automation"
        assert transaction.status == "draft"
        assert transaction.automation_run_id == data["runId"]

        audit = (await session.execute(select(AuditLogModel))).scalars().all()
        assert [entry.action for entry in audit] == ["AUTOMATED_TRANSACTION_CREATED"]


async def test_second_run_same_day_is_rejected(client, auth_headers, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation()
    first = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    assert first.status_code == 200

    second = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert second.status_code == 422
    assert second.json()["error"] == "no eligible contracts"
    assert await _run_count(session_maker, automation["id"]) == 1


async def test_resident_billed_once_per_day(client, auth_headers, seed, create_automation, session_maker):
    # Two days overdue: after one run the contract is still due, but the resident was billed today
    await seed(next_run_date=org_today() - timedelta(days=2))
    automation = await create_automation()
    await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.status_code == 200
    metrics = response.json()["data"]["metrics"]
    assert metrics["processed"] == 0
    assert metrics["skipped"] == 1
    assert metrics["transactionIds"] == []


async def test_catch_up_mode_bills_each_missed_period(client, auth_headers, seed, create_automation, session_maker):
    seeded = await seed(next_run_date=org_today() - timedelta(days=4))
    automation = await create_automation(parameters={"catchUpMode": True})

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    metrics = response.json()["data"]["metrics"]
    assert metrics["catchUpMode"] is True
    assert metrics["totalAmount"] == 50.0
    assert len(metrics["transactionIds"]) == 5
    async with session_maker() as session:
        contract = await session.get(FundingContractModel, seeded["contract"]["id"])
        assert contract.next_run_date == org_today() + timedelta(days=1)
        assert contract.current_balance == Decimal("3600.00")


async def test_balance_below_run_amount_is_not_eligible(client, auth_headers, seed, create_automation):
    await seed(current_balance="5.00")
    automation = await create_automation()

    preflight = await client.get(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    contracts = await client.get(
        "/api/v1/automation/eligible-contracts", params={"includeIneligible": "true"}, headers=auth_headers
    )

    assert preflight.json()["data"] == {"canRun": False, "reason": "no eligible contracts"}
    assert contracts.json()["data"][0]["reasons"] == ["Balance ($5.00) is less than run amount ($10.00)"]


async def test_insufficient_balance_fails_without_retry(
    client, auth_headers, seed, create_automation, drain_after_evaluation
):
    seeded = await seed()
    automation = await create_automation()
    drain_after_evaluation(seeded["contract"]["id"])

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["success"] is False
    assert data["metrics"]["outcome"] == "failed"
    assert data["metrics"]["errors"][0]["attempts"] == 1
    assert "Insufficient balance" in data["metrics"]["errors"][0]["error"]

    detail = await _detail(client, auth_headers, automation["id"])
    assert detail["lastRunStatus"] == "failed"
    assert detail["health"] == "broken"
    assert _instant(detail["nextRunAt"]) > _instant(automation["nextRunAt"])

    notifications = (await client.get("/api/v1/notifications", headers=auth_headers)).json()["data"]
    assert notifications[0]["type"] == "error"


async def test_one_failed_contract_gives_partial_run(
    client, auth_headers, seed, create_automation, drain_after_evaluation
):
    first = await seed()
    second = await seed(house_id=first["house_id"])
    automation = await create_automation()
    drain_after_evaluation(second["contract"]["id"])

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    data = response.json()["data"]
    assert data["success"] is True
    assert data["metrics"]["outcome"] == "partial"
    assert data["metrics"]["succeeded"] == 1
    assert data["metrics"]["failed"] == 1


async def test_disabled_automation(client, auth_headers, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation(enabled=False)

    preflight = await client.get(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    assert preflight.status_code == 200
    assert preflight.json()["data"] == {"canRun": False, "reason": "automation disabled"}

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    assert response.status_code == 422
    assert response.json() == {
        "success": False,
        "error": "automation disabled",
        "preflight": {"canRun": False, "reason": "automation disabled"},
    }
    assert await _run_count(session_maker, automation["id"]) == 0


async def test_no_eligible_contracts(client, auth_headers, seed, create_automation):
    await seed(next_run_date=org_today() + timedelta(days=3))
    automation = await create_automation()

    response = await client.get(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.json()["data"] == {"canRun": False, "reason": "no eligible contracts"}


async def test_already_running(client, auth_headers, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation()
    async with session_maker() as session:
        await session.execute(
            update(AutomationModel).where(AutomationModel.id == automation["id"]).values(running_since=utcnow())
        )
        await session.commit()

    preflight = await client.get(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert preflight.json()["data"]["reason"] == "automation already running"
    assert response.status_code == 422
    assert await _run_count(session_maker, automation["id"]) == 0


async def test_stale_claim_is_taken_over(client, auth_headers, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation()
    async with session_maker() as session:
        await session.execute(
            update(AutomationModel)
            .where(AutomationModel.id == automation["id"])
            .values(running_since=utcnow() - timedelta(hours=3))
        )
        await session.commit()

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"]["success"] is True


async def test_invalid_stored_schedule(client, auth_headers, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation()
    async with session_maker() as session:
        await session.execute(
            update(AutomationModel)
            .where(AutomationModel.id == automation["id"])
            .values(schedule={"frequency": "hourly"})
        )
        await session.commit()

    response = await client.get(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.json()["data"]["canRun"] is False
    assert response.json()["data"]["reason"].startswith("invalid schedule: frequency")


async def test_recurring_template_missing(client, auth_headers, create_automation):
    automation = await create_automation(type="recurring", parameters={"templateTransactionId": 999})

    response = await client.get(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.json()["data"] == {"canRun": False, "reason": "template transaction not found"}


async def test_recurring_clones_template(client, auth_headers, seed, create_automation):
    seeded = await seed()
    template = await client.post(
        "/api/v1/transactions",
        json={"residentId": seeded["resident_id"], "amount": "25.00", "description": "Weekly transport"},
        headers=auth_headers,
    )
    assert template.status_code == 201, template.text
    automation = await create_automation(
        type="recurring_transaction",
        parameters={"templateTransactionId": template.json()["data"]["id"]},
        name="Transport",
    )

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    data = response.json()["data"]
    assert data["success"] is True
    assert data["metrics"]["processed"] == 1
    transactions = (await client.get("/api/v1/transactions", headers=auth_headers)).json()["data"]
    assert len(transactions) == 2
    assert {t["source"] for t in transactions} == {"manual", "automation"}


async def test_daily_digest_without_email_skips_recipients(client, auth_headers, create_automation):
    automation = await create_automation(type="daily_digest", name="Morning digest")

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["success"] is True
    assert data["metrics"]["skipped"] == 1
    assert data["metrics"]["processed"] == 0


async def test_unknown_automation_is_404(client, auth_headers):
    get = await client.get("/api/v1/automations/9999/run-now", headers=auth_headers)
    post = await client.post("/api/v1/automations/9999/run-now", headers=auth_headers)

    assert get.status_code == 404
    assert post.status_code == 404
    assert post.json() == {"success": False, "error": "Automation with id 9999 not found"}


async def test_other_organization_cannot_run(client, auth_headers, other_headers, create_automation):
    automation = await create_automation()

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=other_headers)

    assert response.status_code == 404


async def test_run_now_requires_authentication(client, auth_headers, create_automation):
    automation = await create_automation()

    get = await client.get(f"/api/v1/automations/{automation['id']}/run-now")
    post = await client.post(
        f"/api/v1/automations/{automation['id']}/run-now", headers={"Authorization": "Bearer not-a-token"}
    )

    assert get.status_code == 401
    assert post.status_code == 401
    assert get.json()["success"] is False


async def test_unexpected_error_is_500(client, auth_headers, create_automation, monkeypatch):
    automation = await create_automation()

    async def boom(self, automation_id):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(AutomationRunService, "run_now", boom)
    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}


async def test_runner_crash_closes_the_run(client, auth_headers, seed, create_automation, monkeypatch):
    await seed()
    automation = await create_automation()

    async def crash(ctx, automation, run_id):
        raise RuntimeError("runner exploded")

    monkeypatch.setattr("api.services.automation_run_service.execute_runner", crash)
    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["success"] is False
    assert data["error"] == "Runner error: runner exploded"
    runs = (await client.get(f"/api/v1/automations/{automation['id']}/runs", headers=auth_headers)).json()["data"]
    assert runs[0]["status"] == "failed"
    assert runs[0]["error"] == {"message": "Runner error: runner exploded"}

    detail = await _detail(client, auth_headers, automation["id"])
    assert detail["lastRunStatus"] == "failed"
    assert detail["isRunning"] is False
    assert _instant(detail["nextRunAt"]) > _instant(automation["nextRunAt"])


async def test_claim_released_when_run_record_cannot_be_written(
    client, auth_headers, seed, create_automation, monkeypatch, session_maker
):
    await seed()
    automation = await create_automation()

    async def refuse(self, automation, triggered_by):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(AutomationRunRepository, "start", refuse)
    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    monkeypatch.undo()

    assert response.status_code == 500
    assert await _run_count(session_maker, automation["id"]) == 0
    preflight = await client.get(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    assert preflight.json()["data"] == {"canRun": True, "reason": None}

    retry = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    assert retry.json()["data"]["success"] is True


async def test_run_closed_when_finishing_fails(client, auth_headers, seed, create_automation, monkeypatch):
    await seed()
    automation = await create_automation()

    async def refuse(self, run, status, summary, metrics, error):
        raise RuntimeError("ledger unavailable")

    monkeypatch.setattr(AutomationRunRepository, "finish", refuse)
    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)
    monkeypatch.undo()

    assert response.status_code == 500
    runs = (await client.get(f"/api/v1/automations/{automation['id']}/runs", headers=auth_headers)).json()["data"]
    assert runs[0]["status"] == "failed"
    assert runs[0]["finishedAt"] is not None
    assert runs[0]["error"] == {"message": "Run aborted: ledger unavailable"}
    assert (await _detail(client, auth_headers, automation["id"]))["isRunning"] is False


async def test_finished_run_does_not_create_settings(client, auth_headers, seed, create_automation, session_maker):
    await seed()
    automation = await create_automation()
    async with session_maker() as session:
        await session.execute(delete(AutomationSettingsModel))
        await session.commit()

    response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    assert response.json()["data"]["success"] is True
    async with session_maker() as session:
        count = await session.execute(select(func.count(AutomationSettingsModel.id)))
    assert count.scalar_one() == 0
