"""Customer portal user management shared by the admin and portal routes."""

import logging
from typing import Optional

from fastapi import HTTPException, status

from bossboarding.config import settings
from bossboarding.models.auth import CustomerUser
from bossboarding.repositories.auth_repo import CustomerUserRepository
from bossboarding.schemas.auth import CustomerUserAction, CustomerUserCreate, CustomerUserResponse
from bossboarding.services.email_service import email_service

logger = logging.getLogger(__name__)


def customer_user_response(user: CustomerUser) -> CustomerUserResponse:
    return CustomerUserResponse(
        id=user.id,
        customer_id=user.customer_id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_active=user.is_active is not False,
        password_set=bool(user.password_hash),
        created_at=user.created_at,
        last_login_at=user.last_login_at,
    )


def check_password_length(password: Optional[str]) -> str:
    if not password or len(password) < settings.PORTAL_PASSWORD_MIN_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {settings.PORTAL_PASSWORD_MIN_LENGTH} characters"
        )
    return password


def create_portal_user(repo: CustomerUserRepository, customer_id: str, data: CustomerUserCreate) -> CustomerUser:
    """Create a portal login; emails are unique across all customers"""
    if repo.get_by_email(data.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A user with this email already exists"
        )

    password = check_password_length(data.password) if data.password else None
    user = repo.create(customer_id, data.email, password, name=data.name, role=data.role)
    logger.info(f"Created portal user {user.id} ({user.role}) for customer {customer_id}")
    return user


def reset_link(user: CustomerUser, token: str) -> str:
    return f"{settings.SITE_URL.rstrip('/')}/portal/reset-password?token={token}&userId={user.id}"


async def apply_user_action(repo: CustomerUserRepository, user: CustomerUser, action: CustomerUserAction) -> dict:
    """Run one PATCH action against a portal user"""
    if action.action == "set-password":
        repo.set_password(user, check_password_length(action.password))
        return {"success": True}

    if action.action == "send-reset-email":
        token, expiry = repo.create_reset_token(user)
        result = await email_service.send_password_reset(user.email, user.name, reset_link(user, token))
        if not result.get("success"):
            logger.error(f"Password reset email to {user.email} failed: {result.get('error')}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=result.get("error") or "Failed to send reset email"
            )
        return {"success": True, "expiresAt": expiry.isoformat()}

    if action.action == "set-active":
        if action.is_active is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="isActive is required")
        user.is_active = action.is_active
        repo.db.commit()
        return {"success": True}

    if action.action == "update-role":
        if not action.role:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="role is required")
        repo.update(user, role=action.role)
        return {"success": True}

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid action")
