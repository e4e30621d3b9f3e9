import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from bossboarding.database import get_db
from bossboarding.schemas.auth import (
    PortalAuthRequest, LoginResponse, CustomerUserCreate, CustomerUserAction,
    CustomerUserResponse, ResetPasswordRequest,
)
from bossboarding.repositories.auth_repo import CustomerUserRepository
from bossboarding.repositories.customer_store import CustomerStore
from bossboarding.services.portal_user_service import (
    apply_user_action, check_password_length, create_portal_user, customer_user_response,
)
from bossboarding.onboarding.progress import progress_summary, customer_visible_progress
from bossboarding.middleware.auth import (
    PORTAL_TOKEN, get_current_portal_user, get_optional_portal_user, get_customer_store,
)
from bossboarding.models.auth import CustomerUser
from bossboarding.utils.security import create_access_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portal", tags=["Customer Portal"])

# Portal roles allowed to manage other logins of the same customer
MANAGER_ROLES = ("owner", "manager")


def _portal_token(user: CustomerUser) -> str:
    return create_access_token(data={
        "sub": user.id,
        "kind": PORTAL_TOKEN,
        "customer_id": user.customer_id,
    })


def _require_manager(user: CustomerUser) -> None:
    if user.role not in MANAGER_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only owners and managers can manage portal users"
        )


def _same_customer_user(repo: CustomerUserRepository, user_id: str, current_user: CustomerUser) -> CustomerUser:
    user = repo.get_by_id(user_id)
    if not user or user.customer_id != current_user.customer_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.post("/auth")
def portal_auth(
    request: PortalAuthRequest,
    current_user: Optional[CustomerUser] = Depends(get_optional_portal_user),
    store: CustomerStore = Depends(get_customer_store),
    db: Session = Depends(get_db)
):
    """Portal login, self-registration from an onboarding link, and password change"""
    repo = CustomerUserRepository(db)

    if request.action == "login":
        user = repo.authenticate(request.email, request.password or "")
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )

        return LoginResponse(
            access_token=_portal_token(user),
            user=customer_user_response(user).model_dump(by_alias=True, mode="json"),
            customer=store.find(user.customer_id),
        )

    if request.action == "register":
        customer = store.find(request.customer_id) if request.customer_id else None
        # The onboarding link is the proof of ownership for self-registration
        if not customer or not request.onboarding_token or customer.onboarding_token != request.onboarding_token:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="A valid onboarding link is required to register"
            )

        check_password_length(request.password)
        user = create_portal_user(repo, customer.id, CustomerUserCreate(
            email=request.email,
            name=request.name,
            password=request.password,
            role="owner",
        ))
        return LoginResponse(
            access_token=_portal_token(user),
            user=customer_user_response(user).model_dump(by_alias=True, mode="json"),
            customer=customer,
        )

    # updatePassword
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not verify_password(request.password or "", current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect"
        )

    repo.set_password(current_user, check_password_length(request.new_password))
    return {"success": True}


@router.get("/customer", response_model=dict)
def get_portal_customer(
    current_user: CustomerUser = Depends(get_current_portal_user),
    store: CustomerStore = Depends(get_customer_store)
):
    """The logged-in user's customer with its customer-visible progress"""
    customer = store.get(current_user.customer_id)
    return {
        "customer": customer.model_dump(by_alias=True, mode="json"),
        "progress": progress_summary(customer.task_statuses, customer.current_stage_id),
        "tasks": customer_visible_progress(customer.task_statuses),
    }


@router.get("/users", response_model=List[CustomerUserResponse])
def list_portal_users(
    current_user: CustomerUser = Depends(get_current_portal_user),
    db: Session = Depends(get_db)
):
    """Portal logins of the current user's customer"""
    repo = CustomerUserRepository(db)
    return [customer_user_response(u) for u in repo.get_all(customer_id=current_user.customer_id)]


@router.post("/users", response_model=CustomerUserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: CustomerUserCreate,
    current_user: CustomerUser = Depends(get_current_portal_user),
    db: Session = Depends(get_db)
):
    _require_manager(current_user)
    check_password_length(user_data.password)

    repo = CustomerUserRepository(db)
    user = create_portal_user(repo, current_user.customer_id, user_data)
    return customer_user_response(user)


@router.patch("/users")
async def update_user(
    action: CustomerUserAction,
    current_user: CustomerUser = Depends(get_current_portal_user),
    db: Session = Depends(get_db)
):
    _require_manager(current_user)
    repo = CustomerUserRepository(db)
    user = _same_customer_user(repo, action.user_id, current_user)
    return await apply_user_action(repo, user, action)


@router.delete("/users")
def delete_user(
    user_id: str = Query(..., alias="userId"),
    current_user: CustomerUser = Depends(get_current_portal_user),
    db: Session = Depends(get_db)
):
    _require_manager(current_user)
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own login"
        )

    repo = CustomerUserRepository(db)
    _same_customer_user(repo, user_id, current_user)
    repo.delete(user_id)
    return {"success": True}


@router.post("/reset-password")
def reset_password(
    request: ResetPasswordRequest,
    db: Session = Depends(get_db)
):
    """Set a new password from an emailed reset link"""
    check_password_length(request.new_password)

    repo = CustomerUserRepository(db)
    user = repo.reset_password(request.user_id, request.token, request.new_password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset link"
        )

    logger.info(f"Portal password reset for user {user.id}")
    return {"success": True}
