import logging
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from typing import Optional
from bossboarding.config import settings
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.services.storage_service import UPLOAD_TYPES, storage_service
from bossboarding.middleware.auth import get_customer_store, get_optional_admin
from bossboarding.models.auth import AdminUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Upload"])


def _too_large() -> HTTPException:
    limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
    return HTTPException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        detail=f"File exceeds the {limit_mb}MB upload limit"
    )


@router.post("")
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    customer_id: str = Form(..., alias="customerId"),
    media_type: str = Form("photo", alias="type"),
    token: Optional[str] = Form(None),
    current_user: Optional[AdminUser] = Depends(get_optional_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """
    Upload store media for a customer

    Staff upload with their admin token; customers upload from the wizard
    with their onboarding link token.
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > settings.MAX_UPLOAD_BYTES:
        raise _too_large()

    customer = store.get(customer_id)
    if current_user is None and (not token or token != customer.onboarding_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to upload for this customer"
        )

    if media_type not in UPLOAD_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid upload type '{media_type}'"
        )

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise _too_large()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file provided"
        )

    logger.info(f"Uploading {file.filename} ({len(content)} bytes) for customer {customer_id}")
    return await storage_service.upload(
        customer_id=customer_id,
        media_type=media_type,
        filename=file.filename or "file",
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )
