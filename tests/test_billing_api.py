"""Automation settings, eligibility, rate calculation, preview and transactions."""

from datetime import timedelta

from .conftest import org_today


class TestSettings:
    async def test_defaults_created_on_first_read(self, client, auth_headers):
        response = await client.get("/api/v1/automation/settings", headers=auth_headers)

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["enabled"] is True
        assert data["timezone"] == "Australia/Sydney"
        assert data["adminEmails"] == []
        assert data["errorHandling"] == {"maxRetries": 3, "retryDelayMs": 5000, "continueOnError": True}

    async def test_partial_update(self, client, auth_headers):
        response = await client.put(
            "/api/v1/automation/settings",
            json={
                "adminEmails": ["Finance@example.com", "finance@example.com", "ops@example.com"],
                "notifyOnSuccess": True,
                "errorHandling": {"maxRetries": 1, "retryDelayMs": 0, "continueOnError": False},
            },
            headers=auth_headers,
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["adminEmails"] == ["Finance@example.com", "ops@example.com"]
        assert data["notifyOnSuccess"] is True
        assert data["notifyOnFailure"] is True
        assert data["errorHandling"]["maxRetries"] == 1
        assert data["runTime"] == "02:00"

    async def test_invalid_timezone_is_400(self, client, auth_headers):
        response = await client.put(
            "/api/v1/automation/settings", json={"timezone": "Nowhere/Special"}, headers=auth_headers
        )

        assert response.status_code == 400

    async def test_organization_policy_applies_to_runs(
        self, client, auth_headers, seed, create_automation, drain_after_evaluation
    ):
        first = await seed()
        await seed(house_id=first["house_id"])
        drain_after_evaluation(first["contract"]["id"])
        await client.put(
            "/api/v1/automation/settings",
            json={"errorHandling": {"maxRetries": 1, "retryDelayMs": 0, "continueOnError": False}},
            headers=auth_headers,
        )
        automation = await create_automation(parameters={"errorHandling": {}})

        response = await client.post(f"/api/v1/automations/{automation['id']}/run-now", headers=auth_headers)

        data = response.json()["data"]
        assert data["success"] is False
        assert data["metrics"]["failed"] == 1


class TestEligibility:
    async def test_lists_only_eligible_by_default(self, client, auth_headers, seed):
        due = await seed()
        await seed(next_run_date=org_today() + timedelta(days=2), house_id=due["house_id"])

        eligible = await client.get("/api/v1/automation/eligible-contracts", headers=auth_headers)
        everything = await client.get(
            "/api/v1/automation/eligible-contracts", params={"includeIneligible": "true"}, headers=auth_headers
        )

        assert [c["contractId"] for c in eligible.json()["data"]] == [due["contract"]["id"]]
        assert len(everything.json()["data"]) == 2
        blocked = [c for c in everything.json()["data"] if not c["isEligible"]][0]
        assert blocked["reasons"][0].endswith("is in the future")

    async def test_single_contract(self, client, auth_headers, seed):
        seeded = await seed(resident_status="inactive")

        response = await client.get(
            f"/api/v1/automation/eligible-contracts/{seeded['contract']['id']}", headers=auth_headers
        )

        data = response.json()["data"]
        assert data["isEligible"] is False
        assert data["reasons"] == ["Resident status is 'inactive', must be active"]
        assert data["houseAddress"] == "12 Wattle St, Parramatta"
        assert data["runAmount"] == 10.0

    async def test_unknown_contract_is_404(self, client, auth_headers):
        response = await client.get("/api/v1/automation/eligible-contracts/404", headers=auth_headers)

        assert response.status_code == 404

    async def test_preview_projects_drawdown(self, client, auth_headers, seed):
        await seed(current_balance="25.00")

        response = await client.get("/api/v1/automation/preview", params={"days": 4}, headers=auth_headers)

        days = response.json()["data"]
        assert len(days) == 4
        assert [len(day["contracts"]) for day in days] == [1, 1, 0, 0]
        assert days[0]["totalAmount"] == 10.0

    async def test_preview_days_bounds(self, client, auth_headers):
        response = await client.get("/api/v1/automation/preview", params={"days": 0}, headers=auth_headers)

        assert response.status_code == 400


class TestCalculateRates:
    async def test_calculate_from_figures(self, client, auth_headers):
        response = await client.post(
            "/api/v1/automation/calculate-rates",
            json={"amount": "3650", "startDate": "2026-01-01", "endDate": "2026-12-31", "frequency": "weekly"},
            headers=auth_headers,
        )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["rates"] == {"totalDays": 365, "dailyRate": 10.0, "weeklyRate": 70.0, "fortnightlyRate": 140.0}
        assert data["transactionAmount"] == 70.0

    async def test_enable_stores_rates_on_contract(self, client, auth_headers, seed):
        seeded = await seed()
        contract_id = seeded["contract"]["id"]

        response = await client.post(
            "/api/v1/automation/calculate-rates",
            json={"action": "enable", "contractId": contract_id, "frequency": "fortnightly"},
            headers=auth_headers,
        )

        assert response.status_code == 200, response.text
        assert response.json()["data"]["enabled"] is True
        contract = (await client.get(f"/api/v1/contracts/{contract_id}", headers=auth_headers)).json()["data"]
        assert contract["drawdownFrequency"] == "fortnightly"
        assert contract["autoBillingEnabled"] is True
        assert contract["nextRunDate"] == org_today().isoformat()

    async def test_enable_requires_contract(self, client, auth_headers):
        response = await client.post(
            "/api/v1/automation/calculate-rates",
            json={"action": "enable", "amount": "100", "startDate": "2026-01-01", "endDate": "2026-01-10"},
            headers=auth_headers,
        )

        assert response.status_code == 400

    async def test_end_before_start_is_400(self, client, auth_headers):
        response = await client.post(
            "/api/v1/automation/calculate-rates",
            json={"amount": "100", "startDate": "2026-02-01", "endDate": "2026-01-10"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Contract end date must be on or after the start date"


class TestTransactions:
    async def test_manual_transaction_draws_down_and_void_restores(self, client, auth_headers, seed):
        seeded = await seed()
        contract_id = seeded["contract"]["id"]

        created = await client.post(
            "/api/v1/transactions",
            json={"residentId": seeded["resident_id"], "contractId": contract_id, "amount": "40.50"},
            headers=auth_headers,
        )
        assert created.status_code == 201, created.text
        transaction = created.json()["data"]
        assert transaction["txnId"] == "TXN-SUNRIS-A000001"
        assert transaction["status"] == "draft"
        assert transaction["supportItemCode"] == "01_001_0107_1_1"

        contract = (await client.get(f"/api/v1/contracts/{contract_id}", headers=auth_headers)).json()["data"]
        assert contract["currentBalance"] == 3609.5

        voided = await client.post(f"/api/v1/transactions/{transaction['id']}/void", headers=auth_headers)
        assert voided.json()["data"]["status"] == "voided"
        contract = (await client.get(f"/api/v1/contracts/{contract_id}", headers=auth_headers)).json()["data"]
        assert contract["currentBalance"] == 3650.0

        again = await client.post(f"/api/v1/transactions/{transaction['id']}/void", headers=auth_headers)
        assert again.status_code == 409

    async def test_sequence_is_per_organization(self, client, auth_headers, other_headers, seed):
        ours = await seed()
        theirs = await seed(headers=other_headers)

        for _ in range(2):
            await client.post(
                "/api/v1/transactions", json={"residentId": ours["resident_id"], "amount": "5"}, headers=auth_headers
            )
        other = await client.post(
            "/api/v1/transactions", json={"residentId": theirs["resident_id"], "amount": "5"}, headers=other_headers
        )

        ids = [t["txnId"] for t in (await client.get("/api/v1/transactions", headers=auth_headers)).json()["data"]]
        assert sorted(ids) == ["TXN-SUNRIS-A000001", "TXN-SUNRIS-A000002"]
        assert other.json()["data"]["txnId"] == "TXN-OTHERP-A000001"

    async def test_insufficient_balance_is_400(self, client, auth_headers, seed):
        seeded = await seed(current_balance="10.00")

        response = await client.post(
            "/api/v1/transactions",
            json={"residentId": seeded["resident_id"], "contractId": seeded["contract"]["id"], "amount": "10.01"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Insufficient balance: 10.00 available, 10.01 required"

    async def test_post_only_from_draft(self, client, auth_headers, seed):
        seeded = await seed()
        created = await client.post(
            "/api/v1/transactions", json={"residentId": seeded["resident_id"], "amount": "12"}, headers=auth_headers
        )
        transaction_id = created.json()["data"]["id"]

        posted = await client.post(f"/api/v1/transactions/{transaction_id}/post", headers=auth_headers)
        again = await client.post(f"/api/v1/transactions/{transaction_id}/post", headers=auth_headers)

        assert posted.json()["data"]["status"] == "posted"
        assert again.status_code == 409

    async def test_invalid_date_filter_is_400(self, client, auth_headers):
        response = await client.get("/api/v1/transactions", params={"from": "yesterday"}, headers=auth_headers)

        assert response.status_code == 400
