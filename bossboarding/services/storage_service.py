import re
import time
import logging
import httpx
from bossboarding.config import settings
from bossboarding.exceptions import IntegrationError

logger = logging.getLogger(__name__)

UPLOAD_TYPES = ("photo", "video", "logo", "document")


def safe_filename(name: str) -> str:
    """Keep letters, digits, dot, dash and underscore"""
    cleaned = re.sub(r"[^A-Za-z0-9._-]", "_", name or "file")
    return cleaned.strip("._") or "file"


def build_object_path(customer_id: str, media_type: str, filename: str) -> str:
    timestamp = int(time.time() * 1000)
    return f"customers/{customer_id}/{media_type}/{timestamp}-{safe_filename(filename)}"


class StorageService:
    """Object storage over the storage REST API (bucket per deployment)."""

    @property
    def configured(self) -> bool:
        return bool(settings.STORAGE_URL and settings.STORAGE_SERVICE_KEY)

    def public_url(self, path: str) -> str:
        return f"{settings.STORAGE_URL.rstrip('/')}/storage/v1/object/public/{settings.STORAGE_BUCKET}/{path}"

    async def upload(
        self,
        customer_id: str,
        media_type: str,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> dict:
        """
        Upload a file for a customer

        Returns:
            {url, pathname, contentType, size, name}
        """
        if not self.configured:
            raise IntegrationError("File storage is not configured")

        path = build_object_path(customer_id, media_type, filename)
        endpoint = f"{settings.STORAGE_URL.rstrip('/')}/storage/v1/object/{settings.STORAGE_BUCKET}/{path}"

        try:
            async with httpx.AsyncClient(timeout=120.0) as client:
                response = await client.post(
                    endpoint,
                    content=content,
                    headers={
                        "Authorization": f"Bearer {settings.STORAGE_SERVICE_KEY}",
                        "Content-Type": content_type or "application/octet-stream",
                        "x-upsert": "true",
                    },
                )
        except httpx.HTTPError as e:
            logger.error(f"Upload failed for {path}: {e}")
            raise IntegrationError(f"Upload failed: {e}")

        if response.status_code >= 400:
            logger.error(f"Upload rejected for {path}: HTTP {response.status_code} {response.text}")
            raise IntegrationError(f"Upload failed: {response.text or response.status_code}")

        return {
            "url": self.public_url(path),
            "pathname": path,
            "contentType": content_type,
            "size": len(content),
            "name": filename,
        }


# Singleton instance
storage_service = StorageService()
