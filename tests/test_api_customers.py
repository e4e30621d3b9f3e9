"""Tests for the admin customer API."""

from bossboarding.onboarding.catalog import STAGES_BY_ID


class TestAuth:
    def test_requires_admin_token(self, client) -> None:
        response = client.get("/api/customers")
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    def test_rejects_garbage_token(self, client) -> None:
        response = client.get("/api/customers", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestCrud:
    def test_create_and_get(self, client, admin_headers) -> None:
        response = client.post("/api/customers", headers=admin_headers, json={
            "businessName": "Bubbles Wash",
            "ownerName": "Pat Lee",
            "dealAmount": 8000,
            "salesRepAssignments": [{"salesRepId": "sr2", "commissionPercent": 100}],
        })
        assert response.status_code == 201
        created = response.json()
        assert created["businessName"] == "Bubbles Wash"
        assert created["status"] == "not_started"
        assert len(created["onboardingToken"]) == 8
        assert created["paymentProcessors"][0]["addedBy"] == "Ops Admin"

        fetched = client.get(f"/api/customers/{created['id']}", headers=admin_headers)
        assert fetched.status_code == 200
        assert fetched.json()["dealAmount"] == 8000

    def test_create_requires_business_name(self, client, admin_headers) -> None:
        response = client.post("/api/customers", headers=admin_headers, json={"ownerName": "Pat"})
        assert response.status_code == 422
        assert response.json()["error"] == "Invalid request"

    def test_list_with_search(self, client, admin_headers, customer) -> None:
        response = client.get("/api/customers", headers=admin_headers, params={"search": "suds"})
        assert [c["id"] for c in response.json()] == [customer.id]

        response = client.get("/api/customers", headers=admin_headers, params={"status": "complete"})
        assert response.json() == []

    def test_get_missing(self, client, admin_headers) -> None:
        response = client.get("/api/customers/missing", headers=admin_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Customer not found"}

    def test_patch_renumbers_machines(self, client, admin_headers, customer) -> None:
        response = client.patch(f"/api/customers/{customer.id}", headers=admin_headers, json={
            "phone": "555-0199",
            "machines": [
                {"machineNumber": 150, "type": "washer", "make": "Speed Queen", "model": "SC40"},
                {"machineNumber": 101, "type": "dryer", "make": "Dexter", "model": "T30"},
            ],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["phone"] == "555-0199"
        assert body["email"] == "dana@sudscity.com"
        assert sorted(m["machineNumber"] for m in body["machines"]) == [1, 101]

    def test_patch_rejects_unknown_task_ids(self, client, admin_headers, customer) -> None:
        response = client.patch(f"/api/customers/{customer.id}", headers=admin_headers, json={
            "taskStatuses": {"not_a_task": "complete"},
        })
        assert response.status_code == 422
        assert response.json()["taskIds"] == ["not_a_task"]

    def test_patch_current_step_bounded(self, client, admin_headers, customer) -> None:
        response = client.patch(f"/api/customers/{customer.id}", headers=admin_headers, json={"currentStep": 12})
        assert response.status_code == 422

    def test_delete(self, client, admin_headers, customer) -> None:
        assert client.delete(f"/api/customers/{customer.id}", headers=admin_headers).status_code == 200
        assert client.delete(f"/api/customers/{customer.id}", headers=admin_headers).status_code == 404


class TestNotes:
    def test_add_edit_delete_note(self, client, admin_headers, customer) -> None:
        created = client.post(f"/api/customers/{customer.id}/notes", headers=admin_headers,
                              json={"content": "Left a voicemail"})
        assert created.status_code == 201
        note = created.json()
        assert note["createdBy"] == "Ops Admin"

        edited = client.put(f"/api/customers/{customer.id}/notes/{note['id']}", headers=admin_headers,
                            json={"content": "Left two voicemails"})
        assert edited.json()["isEdited"] is True

        deleted = client.delete(f"/api/customers/{customer.id}/notes/{note['id']}", headers=admin_headers)
        assert deleted.json() == {"success": True}


class TestTracking:
    def test_task_update_stamps_metadata(self, client, admin_headers, customer) -> None:
        response = client.put(f"/api/customers/{customer.id}/tasks/confirm_data", headers=admin_headers,
                              json={"status": "complete"})
        assert response.status_code == 200
        body = response.json()
        assert body["taskStatuses"]["confirm_data"] == "complete"
        assert body["taskMetadata"]["confirm_data"]["updatedBy"] == "Ops Admin"

    def test_unknown_task(self, client, admin_headers, customer) -> None:
        response = client.put(f"/api/customers/{customer.id}/tasks/bogus", headers=admin_headers,
                              json={"status": "complete"})
        assert response.status_code == 404

    def test_stage_update_and_progress(self, client, admin_headers, customer) -> None:
        client.put(f"/api/customers/{customer.id}/stages/contract_setup", headers=admin_headers,
                   json={"status": "complete"})

        progress = client.get(f"/api/customers/{customer.id}/progress", headers=admin_headers).json()
        assert progress["completedTasks"] == len(STAGES_BY_ID["contract_setup"].tasks)
        assert progress["suggestedStageId"] == "internal_kickoff"
        assert progress["stages"][0]["status"] == "complete"
        assert progress["customerVisibleTasks"]

    def test_set_current_stage(self, client, admin_headers, customer) -> None:
        response = client.put(f"/api/customers/{customer.id}/current-stage", headers=admin_headers,
                              json={"stageId": "production"})
        assert response.json()["currentStageId"] == "production"

        missing = client.put(f"/api/customers/{customer.id}/current-stage", headers=admin_headers,
                             json={"stageId": "nowhere"})
        assert missing.status_code == 404


class TestMachinesAndLinks:
    def test_clone_machine(self, client, admin_headers, customer) -> None:
        client.patch(f"/api/customers/{customer.id}", headers=admin_headers, json={"machines": [
            {"machineNumber": n, "type": "washer", "make": "Speed Queen", "model": "SC40", "serialNumber": f"SN{n}"}
            for n in range(1, 6)
        ]})

        response = client.post(f"/api/customers/{customer.id}/machines/1/clone", headers=admin_headers)
        assert response.status_code == 201
        clones = response.json()
        assert [c["machineNumber"] for c in clones] == [6]
        assert clones[0]["serialNumber"] == ""

    def test_clone_missing_machine(self, client, admin_headers, customer) -> None:
        response = client.post(f"/api/customers/{customer.id}/machines/42/clone", headers=admin_headers)
        assert response.status_code == 404

    def test_regenerate_token_invalidates_old_link(self, client, admin_headers, customer) -> None:
        response = client.post(f"/api/customers/{customer.id}/regenerate-token", headers=admin_headers)
        new_token = response.json()["onboardingToken"]
        assert new_token != customer.onboarding_token

        old = client.post("/api/onboarding/load", json={"token": customer.onboarding_token})
        assert old.status_code == 404

    def test_estimate_without_provider(self, client, admin_headers, customer) -> None:
        response = client.post(f"/api/customers/{customer.id}/estimate", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["success"] is False
