import logging
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import Field
from typing import Literal
from bossboarding.schemas.customer import CamelModel
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.services.email_service import email_service
from bossboarding.middleware.auth import get_current_admin, get_customer_store
from bossboarding.models.auth import AdminUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email", tags=["Email"])


class SendEmailRequest(CamelModel):
    type: Literal["onboarding_submitted", "onboarding_complete"]
    customer_id: str = Field(..., min_length=1)


class TestEmailRequest(CamelModel):
    to: str = Field(..., min_length=3)


@router.post("/send")
async def send_email(
    request: SendEmailRequest,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store)
):
    """Send the customer and admin notifications for an onboarding event"""
    customer = store.get(request.customer_id)

    if request.type == "onboarding_submitted":
        results = await email_service.send_onboarding_submitted(customer)
    else:
        results = await email_service.send_onboarding_complete(customer)

    failed = [name for name, result in results.items() if not result.get("success")]
    if failed:
        logger.warning(f"{request.type} email failed for {customer.id}: {', '.join(failed)}")

    return {"success": not failed, "results": results}


@router.post("/test")
async def send_test_email(
    request: TestEmailRequest,
    current_user: AdminUser = Depends(get_current_admin)
):
    """Check the email provider configuration with a test message"""
    result = await email_service.send_test(request.to)

    if not result.get("success"):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.get("error") or "Failed to send test email"
        )

    return result
