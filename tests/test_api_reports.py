"""Tests for the report endpoints."""

import csv
import io


def mark_partially_paid(client, admin_headers, customer_id: str) -> None:
    client.patch(f"/api/customers/{customer_id}", headers=admin_headers, json={
        "paymentStatus": "paid_partial",
        "paidToDateAmount": 2000,
        "commissionPaidAmount": 50,
        "paidDate": "2025-02-10",
    })


class TestCommissions:
    def test_json_report(self, client, admin_headers, customer) -> None:
        mark_partially_paid(client, admin_headers, customer.id)

        response = client.get("/api/reports/commissions", headers=admin_headers)
        assert response.status_code == 200
        body = response.json()
        entry = body["entries"][0]
        assert entry["customerId"] == customer.id
        assert entry["repCommission"] == 500
        assert entry["commissionOwedNow"] == 50
        assert body["totalOwedNow"] == 50

    def test_date_filter(self, client, admin_headers, customer) -> None:
        mark_partially_paid(client, admin_headers, customer.id)
        response = client.get("/api/reports/commissions", headers=admin_headers,
                              params={"dateFrom": "2025-03-01"})
        assert response.json()["entries"] == []

    def test_invalid_status(self, client, admin_headers) -> None:
        response = client.get("/api/reports/commissions", headers=admin_headers, params={"status": "bogus"})
        assert response.status_code == 400

    def test_csv_export(self, client, admin_headers, customer) -> None:
        mark_partially_paid(client, admin_headers, customer.id)

        response = client.get("/api/reports/commissions", headers=admin_headers, params={"format": "csv"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "commissions-report-" in response.headers["content-disposition"]

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "Customer"
        assert rows[1][0] == "Suds City Laundromat"
        assert rows[1][9] == "50.00"


class TestTasks:
    def test_filter_by_stage_and_status(self, client, admin_headers, customer) -> None:
        client.put(f"/api/customers/{customer.id}/tasks/confirm_data", headers=admin_headers,
                   json={"status": "complete"})

        response = client.get("/api/reports/tasks", headers=admin_headers,
                              params={"stageId": "contract_setup", "taskStatus": "complete"})
        assert response.status_code == 200
        body = response.json()
        assert [row["taskId"] for row in body["rows"]] == ["confirm_data"]
        assert body["rows"][0]["updatedBy"] == "Ops Admin"

    def test_unknown_stage_and_team(self, client, admin_headers) -> None:
        assert client.get("/api/reports/tasks", headers=admin_headers,
                          params={"stageId": "nowhere"}).status_code == 404
        assert client.get("/api/reports/tasks", headers=admin_headers,
                          params={"team": "Marketing"}).status_code == 400


class TestOverview:
    def test_overview_counts(self, client, admin_headers, customer) -> None:
        body = client.get("/api/reports/overview", headers=admin_headers).json()
        assert body["totalCustomers"] == 1
        assert body["byStatus"]["not_started"] == 1
        assert body["byCurrentStage"]["contract_setup"] == 1
        assert body["wizardsCompleted"] == 0


class TestHealth:
    def test_health(self, client) -> None:
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
