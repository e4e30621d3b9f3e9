"""Tests for the customer-facing onboarding API and wizard page."""

from bossboarding.onboarding.session import COMPLETED_MESSAGE, INVALID_LINK_MESSAGE
from bossboarding.onboarding.wizard import TOTAL_STEPS
from bossboarding.repositories.auth_repo import CustomerUserRepository

GENERAL = {
    "businessName": "Suds City Laundromat",
    "ownerName": "Dana Reyes",
    "email": "dana@sudscity.com",
    "phone": "555-0100",
}

LOCATION = {
    "locationName": "Main St", "locationPhone": "555-0111", "locationAddress": "1 Main St",
    "locationCity": "Austin", "locationState": "TX", "locationZip": "78701",
}


def walk_to_review(client, token: str) -> dict:
    """Fill each step's required fields and continue until the review step."""
    session = client.get(f"/api/onboarding/{token}/session").json()
    for _ in range(TOTAL_STEPS - 1):
        step = session["stepId"]
        form = {
            "general": GENERAL,
            "location": LOCATION,
            "machines": {"machines": [{"type": "washer", "make": "Speed Queen", "model": "SC40"}]},
            "pci": {"pciRepresentativeName": "Dana Reyes", "pciCompanyName": "Suds LLC",
                    "pciTitle": "Owner", "pciConsent": True},
        }.get(step, {})
        response = client.post(f"/api/onboarding/{token}/next", json={"formData": form})
        assert response.status_code == 200, response.json()
        session = response.json()
    return session


class TestLoad:
    def test_load_marks_started(self, client, customer) -> None:
        response = client.post("/api/onboarding/load", json={"token": customer.onboarding_token})
        assert response.status_code == 200
        body = response.json()
        assert body["onboardingStarted"] is True
        assert body["status"] == "in_progress"

    def test_invalid_token(self, client) -> None:
        response = client.post("/api/onboarding/load", json={"token": "ZZZZZZZZ"})
        assert response.status_code == 404
        assert response.json() == {"error": INVALID_LINK_MESSAGE}

    def test_session_payload(self, client, customer) -> None:
        body = client.get(f"/api/onboarding/{customer.onboarding_token}/session").json()
        assert body["currentStep"] == 0
        assert body["stepId"] == "general"
        assert body["totalSteps"] == TOTAL_STEPS
        assert body["formData"]["businessName"] == "Suds City Laundromat"
        assert len(body["steps"]) == TOTAL_STEPS
        assert body["steps"][0]["isCurrent"] is True


class TestNavigation:
    def test_next_blocked_by_missing_fields(self, client, customer) -> None:
        token = customer.onboarding_token
        response = client.post(f"/api/onboarding/{token}/next", json={"formData": {"phone": ""}})
        assert response.status_code == 422
        assert response.json()["missing"] == ["phone"]

    def test_next_autosaves(self, client, admin_headers, customer) -> None:
        token = customer.onboarding_token
        response = client.post(f"/api/onboarding/{token}/next", json={"formData": GENERAL})
        assert response.status_code == 200
        assert response.json()["stepId"] == "location"

        stored = client.get(f"/api/customers/{customer.id}", headers=admin_headers).json()
        assert stored["currentStep"] == 1
        assert stored["savedOnboardingData"]["formData"]["highestStepReached"] == 1

    def test_next_autosaves_info_blocks(self, client, admin_headers, customer) -> None:
        token = customer.onboarding_token
        client.post(f"/api/onboarding/{token}/next", json={"formData": GENERAL})
        response = client.post(f"/api/onboarding/{token}/next", json={"formData": LOCATION})
        assert response.status_code == 200

        stored = client.get(f"/api/customers/{customer.id}", headers=admin_headers).json()
        assert stored["currentStep"] == 2
        assert stored["locationInfo"]["commonName"] == "Main St"
        assert stored["locationInfo"]["zipCode"] == "78701"
        assert stored["shippingInfo"]["city"] == "Austin"
        assert stored["onboardingCompleted"] is False

    def test_back_and_goto(self, client, customer) -> None:
        token = customer.onboarding_token
        client.post(f"/api/onboarding/{token}/next", json={"formData": GENERAL})
        client.post(f"/api/onboarding/{token}/back")

        session = client.get(f"/api/onboarding/{token}/session").json()
        assert session["stepId"] == "general"
        assert session["highestStepReached"] == 1

        jumped = client.post(f"/api/onboarding/{token}/goto", json={"step": "location"})
        assert jumped.status_code == 200
        assert jumped.json()["currentStep"] == 1

    def test_goto_unreached_step(self, client, customer) -> None:
        response = client.post(f"/api/onboarding/{customer.onboarding_token}/goto", json={"step": 5})
        assert response.status_code == 422

    def test_explicit_save(self, client, customer) -> None:
        response = client.post(f"/api/onboarding/{customer.onboarding_token}/progress",
                               json={"formData": {"locationCity": "Austin"}})
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["savedAt"]

        resumed = client.get(f"/api/onboarding/{customer.onboarding_token}/session").json()
        assert resumed["formData"]["locationCity"] == "Austin"


class TestSave:
    def test_save_maps_kiosk_configuration(self, client, customer) -> None:
        response = client.post("/api/onboarding/save", json={
            "customerId": customer.id,
            "updates": {"kioskConfiguration": {"hasKiosk": True, "kiosks": [{"type": "rear_load"}]}},
        })
        assert response.status_code == 200
        assert response.json()["kioskInfo"]["hasKiosk"] is True

    def test_save_unknown_customer(self, client) -> None:
        response = client.post("/api/onboarding/save", json={"customerId": "missing", "updates": {}})
        assert response.status_code == 404


class TestSubmit:
    def test_submit_flow(self, client, db_session, customer) -> None:
        token = customer.onboarding_token
        session = walk_to_review(client, token)
        assert session["stepId"] == "review"

        response = client.post(f"/api/onboarding/{token}/submit", json={
            "formData": {"password": "portal-pass", "confirmPassword": "portal-pass"},
        })
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["customer"]["status"] == "needs_review"
        assert body["customer"]["onboardingCompleted"] is True
        assert body["portalUserCreated"] is True
        assert [m["machineNumber"] for m in body["customer"]["machines"]] == [1]

        user = CustomerUserRepository(db_session).get_by_email("dana@sudscity.com")
        assert user.customer_id == customer.id
        assert user.role == "owner"

        again = client.post(f"/api/onboarding/{token}/next", json={})
        assert again.status_code == 410
        assert again.json() == {"error": COMPLETED_MESSAGE}

    def test_submit_before_review(self, client, customer) -> None:
        response = client.post(f"/api/onboarding/{customer.onboarding_token}/submit", json={})
        assert response.status_code == 422


class TestWizardPage:
    def test_page_renders_current_step(self, client, customer) -> None:
        response = client.get(f"/onboarding/{customer.onboarding_token}")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Suds City Laundromat" in response.text
        assert 'data-field="businessName"' in response.text

    def test_invalid_link_page(self, client) -> None:
        response = client.get("/onboarding/ZZZZZZZZ")
        assert response.status_code == 404
        assert INVALID_LINK_MESSAGE in response.text

    def test_completed_page(self, client, sql_store, customer) -> None:
        sql_store.update(customer.id, {"onboarding_completed": True})
        response = client.get(f"/onboarding/{customer.onboarding_token}")
        assert response.status_code == 410
        assert COMPLETED_MESSAGE in response.text

    def test_values_are_escaped(self, client, sql_store, customer) -> None:
        sql_store.update(customer.id, {"business_name": "<script>x</script> Wash"})
        response = client.get(f"/onboarding/{customer.onboarding_token}")
        assert "<script>x</script>" not in response.text
        assert "&lt;script&gt;" in response.text
