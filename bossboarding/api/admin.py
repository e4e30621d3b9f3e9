import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from bossboarding.config import settings
from bossboarding.database import get_db
from bossboarding.schemas.auth import (
    AdminLoginRequest, LoginResponse, AdminUserResponse, AdminUsersRequest,
    CustomerUserCreate, CustomerUserAction, CustomerUserResponse,
)
from bossboarding.schemas.setting import SettingUpsert, SettingsBulkUpdate
from bossboarding.repositories.auth_repo import AdminUserRepository, CustomerUserRepository
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.repositories.setting_repo import SettingRepository
from bossboarding.services.portal_user_service import (
    apply_user_action, check_password_length, create_portal_user, customer_user_response,
)
from bossboarding.middleware.auth import ADMIN_TOKEN, get_current_admin, get_customer_store, require_role
from bossboarding.models.auth import AdminUser
from bossboarding.utils.security import create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])

MANAGER_ROLES = ("super_admin", "admin")


def _admin_response(user: AdminUser) -> dict:
    return AdminUserResponse.model_validate(user).model_dump(by_alias=True, mode="json")


def _require_manager(user: AdminUser) -> None:
    if user.role not in MANAGER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can manage admin users"
        )


def bootstrap_admin(db: Session) -> Optional[AdminUser]:
    """Create the first super admin from settings when no admin exists yet"""
    if not settings.ADMIN_BOOTSTRAP_EMAIL or not settings.ADMIN_BOOTSTRAP_PASSWORD:
        return None

    repo = AdminUserRepository(db)
    if repo.count() > 0:
        return None

    user = repo.create(
        email=settings.ADMIN_BOOTSTRAP_EMAIL,
        password=settings.ADMIN_BOOTSTRAP_PASSWORD,
        name="Administrator",
        role="super_admin",
        permissions=["all"],
    )
    logger.info(f"Bootstrapped super admin {user.email}")
    return user


@router.post("/login", response_model=LoginResponse)
def admin_login(
    request: AdminLoginRequest,
    db: Session = Depends(get_db)
):
    """Staff login; returns an admin JWT"""
    repo = AdminUserRepository(db)
    user = repo.authenticate(request.email, request.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    access_token = create_access_token(data={"sub": user.id, "kind": ADMIN_TOKEN, "role": user.role})
    return LoginResponse(access_token=access_token, user=_admin_response(user))


@router.get("/me", response_model=AdminUserResponse)
def get_me(
    current_user: AdminUser = Depends(get_current_admin)
):
    """Get current staff user information"""
    return current_user


@router.post("/users")
def admin_users(
    request: AdminUsersRequest,
    current_user: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Admin user management, one action per request"""
    repo = AdminUserRepository(db)

    if request.action == "list":
        return {"users": [_admin_response(u) for u in repo.get_all()]}

    if request.action == "update-last-login":
        # Any staff user may record their own login
        user_id = request.user_id or current_user.id
        if user_id != current_user.id:
            _require_manager(current_user)
        user = repo.touch_last_login(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return {"success": True}

    _require_manager(current_user)

    if request.action == "create":
        if not request.email or not request.password:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required")
        if repo.get_by_email(request.email):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This user is already an admin")
        check_password_length(request.password)

        user = repo.create(
            email=request.email,
            password=request.password,
            name=request.name,
            role=request.role or "staff",
            permissions=request.permissions,
        )
        logger.info(f"Admin {current_user.email} created admin user {user.email}")
        return {"success": True, "user": _admin_response(user)}

    if not request.user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User ID is required")

    if request.action == "update-role":
        if not request.role:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Role is required")
        if request.role == "super_admin" and current_user.role != "super_admin":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only a super admin can grant super admin")
        user = repo.update_role(request.user_id, request.role, request.permissions)

    elif request.action == "set-password":
        user = repo.set_password(request.user_id, check_password_length(request.password))

    else:  # delete
        if request.user_id == current_user.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
        if not repo.delete(request.user_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return {"success": True}

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return {"success": True, "user": _admin_response(user)}


# Customer portal users

@router.get("/customer-users", response_model=List[CustomerUserResponse])
def list_customer_users(
    customer_id: Optional[str] = Query(None, alias="customerId"),
    current_user: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Portal logins, optionally for one customer"""
    repo = CustomerUserRepository(db)
    return [customer_user_response(u) for u in repo.get_all(customer_id=customer_id)]


@router.post("/customer-users", response_model=CustomerUserResponse, status_code=status.HTTP_201_CREATED)
def create_customer_user(
    user_data: CustomerUserCreate,
    current_user: AdminUser = Depends(get_current_admin),
    store: CustomerStore = Depends(get_customer_store),
    db: Session = Depends(get_db)
):
    if not user_data.customer_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="customerId is required")
    store.get(user_data.customer_id)

    repo = CustomerUserRepository(db)
    user = create_portal_user(repo, user_data.customer_id, user_data)
    return customer_user_response(user)


@router.patch("/customer-users")
async def update_customer_user(
    action: CustomerUserAction,
    current_user: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    repo = CustomerUserRepository(db)
    user = repo.get_by_id(action.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return await apply_user_action(repo, user, action)


@router.delete("/customer-users")
def delete_customer_user(
    user_id: str = Query(..., alias="userId"),
    current_user: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    repo = CustomerUserRepository(db)
    if not repo.delete(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return {"success": True}


# App settings

@router.get("/settings")
def get_settings(
    current_user: AdminUser = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return {"settings": SettingRepository(db).get_all()}


@router.post("/settings")
def save_setting(
    request: SettingUpsert,
    current_user: AdminUser = Depends(require_role("admin")),
    db: Session = Depends(get_db)
):
    """Create or replace one setting"""
    SettingRepository(db).upsert(request.key, request.value)
    return {"success": True}


@router.put("/settings")
def save_settings(
    request: SettingsBulkUpdate,
    current_user: AdminUser = Depends(require_role("admin")),
    db: Session = Depends(get_db)
):
    """Create or replace several settings in one transaction"""
    return {"success": True, "settings": SettingRepository(db).upsert_many(request.settings)}
