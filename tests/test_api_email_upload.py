"""Tests for the email and upload endpoints without live providers."""

from bossboarding.config import settings
from bossboarding.services.storage_service import build_object_path, safe_filename, storage_service


def upload(client, customer_id: str, headers=None, **form):
    data = {"customerId": customer_id, "type": "photo", **form}
    return client.post("/api/upload", headers=headers or {}, data=data,
                       files={"file": ("front door.jpg", b"jpeg-bytes", "image/jpeg")})


class TestUpload:
    def test_requires_admin_or_link_token(self, client, customer) -> None:
        assert upload(client, customer.id).status_code == 401
        assert upload(client, customer.id, token="wrong").status_code == 401

    def test_link_token_reaches_storage(self, client, customer) -> None:
        response = upload(client, customer.id, token=customer.onboarding_token)
        assert response.status_code == 502
        assert response.json() == {"error": "File storage is not configured"}

    def test_stored_file_metadata(self, client, admin_headers, customer, monkeypatch) -> None:
        async def fake_upload(customer_id, media_type, filename, content, content_type):
            return {"url": "https://files/x", "pathname": build_object_path(customer_id, media_type, filename),
                    "contentType": content_type, "size": len(content), "name": filename}

        monkeypatch.setattr(storage_service, "upload", fake_upload)
        body = upload(client, customer.id, headers=admin_headers).json()
        assert body["size"] == len(b"jpeg-bytes")
        assert body["contentType"] == "image/jpeg"
        assert body["pathname"].startswith(f"customers/{customer.id}/photo/")
        assert body["pathname"].endswith("-front_door.jpg")

    def test_invalid_type(self, client, admin_headers, customer) -> None:
        response = upload(client, customer.id, headers=admin_headers, type="spreadsheet")
        assert response.status_code == 400

    def test_size_limit(self, client, admin_headers, customer, monkeypatch) -> None:
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
        assert upload(client, customer.id, headers=admin_headers).status_code == 413

    def test_unknown_customer(self, client, admin_headers) -> None:
        assert upload(client, "missing", headers=admin_headers).status_code == 404

    def test_safe_filename(self) -> None:
        assert safe_filename("../etc/passwd") == "etc_passwd"
        assert safe_filename("") == "file"


class TestEmail:
    def test_send_reports_unconfigured_provider(self, client, admin_headers, customer) -> None:
        response = client.post("/api/email/send", headers=admin_headers, json={
            "type": "onboarding_submitted", "customerId": customer.id,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["results"]["customer"]["error"] == "Email provider is not configured"

    def test_send_for_missing_customer(self, client, admin_headers) -> None:
        response = client.post("/api/email/send", headers=admin_headers, json={
            "type": "onboarding_complete", "customerId": "missing",
        })
        assert response.status_code == 404

    def test_test_email_fails_without_provider(self, client, admin_headers) -> None:
        response = client.post("/api/email/test", headers=admin_headers, json={"to": "ops@laundryboss.com"})
        assert response.status_code == 500
