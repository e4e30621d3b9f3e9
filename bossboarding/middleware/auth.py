from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from bossboarding.database import get_db
from bossboarding.utils.security import decode_access_token
from bossboarding.models.auth import AdminUser, CustomerUser
from bossboarding.repositories.customer_store import CustomerStore
from typing import Optional


# Missing credentials are reported as 401 by the dependencies below
security = HTTPBearer(auto_error=False)

ADMIN_TOKEN = "admin"
PORTAL_TOKEN = "portal"


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _token_subject(credentials: Optional[HTTPAuthorizationCredentials], kind: str) -> str:
    if credentials is None:
        raise _credentials_exception("Not authenticated")

    payload = decode_access_token(credentials.credentials, kind)
    if payload is None:
        raise _credentials_exception()

    return payload["sub"]


def _optional_subject(credentials: Optional[HTTPAuthorizationCredentials], kind: str) -> Optional[str]:
    if credentials is None:
        return None
    payload = decode_access_token(credentials.credentials, kind)
    return payload["sub"] if payload else None


def get_customer_store(request: Request, db: Session = Depends(get_db)) -> CustomerStore:
    """Customer store for this request, from the backend chosen at startup"""
    return request.app.state.store_factory(db)


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> AdminUser:
    """Get current staff user from an admin JWT"""
    user_id = _token_subject(credentials, ADMIN_TOKEN)

    user = db.query(AdminUser).filter(AdminUser.id == user_id).first()
    if user is None or not user.is_active:
        raise _credentials_exception()

    return user


def get_current_portal_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> CustomerUser:
    """Get current customer portal user from a portal JWT"""
    user_id = _token_subject(credentials, PORTAL_TOKEN)

    user = db.query(CustomerUser).filter(CustomerUser.id == user_id).first()
    if user is None or not user.is_active:
        raise _credentials_exception()

    return user


def get_optional_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[AdminUser]:
    """Staff user when an admin token is present, otherwise None"""
    user_id = _optional_subject(credentials, ADMIN_TOKEN)
    if user_id is None:
        return None

    user = db.query(AdminUser).filter(AdminUser.id == user_id).first()
    return user if user and user.is_active else None


def get_optional_portal_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[CustomerUser]:
    """Portal user when a portal token is present, otherwise None"""
    user_id = _optional_subject(credentials, PORTAL_TOKEN)
    if user_id is None:
        return None

    user = db.query(CustomerUser).filter(CustomerUser.id == user_id).first()
    return user if user and user.is_active else None


def require_role(*roles: str):
    """Dependency to require one of the given staff roles"""
    def role_checker(
        user: AdminUser = Depends(get_current_admin)
    ) -> AdminUser:
        # Super admin passes every role check
        if user.role == "super_admin" or user.role in roles:
            return user

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{' or '.join(roles)}' required",
        )

    return role_checker
