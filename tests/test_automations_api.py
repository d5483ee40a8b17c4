"""Automation CRUD endpoints."""

from datetime import datetime
from typing import get_type_hints

from api.repositories.automation_repos import AutomationRepository
from api.repositories.care_repos import ContractRepository
from api.services.automation_service import AutomationService
from database.automation_models import AutomationModel
from database.care_models import FundingContractModel


async def test_create_automation(client, auth_headers):
    response = await client.post(
        "/api/v1/automations",
        json={
            "name": "Nightly billing",
            "type": "billing",
            "schedule": {"frequency": "weekly", "dayOfWeek": 3, "timeOfDay": "06:30", "timezone": "UTC"},
            "parameters": {"catch_up_mode": True},
        },
        headers=auth_headers,
    )

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["type"] == "contract_billing_run"
    assert data["enabled"] is True
    assert data["scheduleDescription"] == "Every Wednesday at 06:30"
    assert data["parameters"] == {"catchUpMode": True, "notifyEmails": []}
    assert data["lastRunAt"] is None
    assert data["health"] == "active"

    next_run = datetime.fromisoformat(data["nextRunAt"].replace("Z", ""))
    assert next_run.weekday() == 2
    assert (next_run.hour, next_run.minute) == (6, 30)


async def test_create_accepts_shorthand_schedule(client, auth_headers):
    response = await client.post(
        "/api/v1/automations",
        json={"name": "Digest", "type": "daily_digest", "schedule": "daily"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["data"]["scheduleDescription"] == "Daily at 02:00"


async def test_create_missing_fields_is_400(client, auth_headers):
    response = await client.post(
        "/api/v1/automations",
        json={"type": "contract_billing_run", "schedule": {"frequency": "daily"}},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["error"] == "Missing required fields: name"


async def test_create_invalid_type_is_400(client, auth_headers):
    response = await client.post(
        "/api/v1/automations",
        json={"name": "Bad", "type": "send_invoices", "schedule": {"frequency": "daily"}},
        headers=auth_headers,
    )

    assert response.status_code == 400


async def test_create_invalid_parameters_is_400(client, auth_headers):
    response = await client.post(
        "/api/v1/automations",
        json={"name": "Recurring", "type": "recurring_transaction", "schedule": {"frequency": "daily"}},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid parameters: templateTransactionId")


async def test_create_requires_authentication(client):
    response = await client.post(
        "/api/v1/automations",
        json={"name": "Nightly billing", "type": "contract_billing_run", "schedule": {"frequency": "daily"}},
    )

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Not authenticated"}


async def test_list_is_scoped_to_organization(client, auth_headers, other_headers, create_automation):
    await create_automation(name="First")
    await create_automation(name="Second")
    await create_automation(name="Elsewhere", headers=other_headers)

    response = await client.get("/api/v1/automations", headers=auth_headers)

    assert response.status_code == 200
    assert [a["name"] for a in response.json()["data"]] == ["Second", "First"]


async def test_update_schedule_recomputes_next_run(client, auth_headers, create_automation):
    automation = await create_automation()

    response = await client.patch(
        f"/api/v1/automations/{automation['id']}",
        json={"schedule": {"frequency": "monthly", "dayOfMonth": 15}},
        headers=auth_headers,
    )

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["schedule"]["frequency"] == "monthly"
    assert data["schedule"]["timezone"] == "Australia/Sydney"
    assert data["scheduleDescription"] == "Monthly on the 15th at 02:00"
    assert data["nextRunAt"] is not None


async def test_update_without_fields_is_400(client, auth_headers, create_automation):
    automation = await create_automation()

    response = await client.patch(f"/api/v1/automations/{automation['id']}", json={}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"] == "No fields to update"


async def test_toggle_and_delete(client, auth_headers, create_automation):
    automation = await create_automation()

    toggled = await client.post(f"/api/v1/automations/{automation['id']}/toggle", headers=auth_headers)
    assert toggled.json()["data"]["enabled"] is False
    assert toggled.json()["data"]["health"] == "disabled"

    deleted = await client.delete(f"/api/v1/automations/{automation['id']}", headers=auth_headers)
    assert deleted.status_code == 204

    missing = await client.get(f"/api/v1/automations/{automation['id']}", headers=auth_headers)
    assert missing.status_code == 404


async def test_organization_run_history(client, auth_headers, seed, create_automation):
    await seed()
    automation = await create_automation()
    await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

    response = await client.get("/api/v1/automations/runs", headers=auth_headers)

    runs = response.json()["data"]
    assert len(runs) == 1
    assert runs[0]["automationId"] == automation["id"]
    assert runs[0]["metrics"]["processed"] == 1


def test_list_methods_return_builtin_lists():
    assert get_type_hints(AutomationRepository.list)["return"] == list[AutomationModel]
    assert get_type_hints(AutomationService.list)["return"] == list[AutomationModel]
    assert get_type_hints(ContractRepository.list)["return"] == list[FundingContractModel]
