from pydantic import Field
from typing import Optional, List, Literal
from datetime import datetime
from bossboarding.schemas.customer import CamelModel, Customer


AdminRole = Literal["super_admin", "admin", "staff"]
PortalRole = Literal["owner", "manager", "staff"]


class AdminLoginRequest(CamelModel):
    email: str
    password: str


class LoginResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: dict
    customer: Optional[Customer] = None


class AdminUserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    permissions: List[str] = []
    is_active: bool = True
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class AdminUsersRequest(CamelModel):
    """Action envelope for the admin users endpoint."""

    action: Literal["create", "list", "update-role", "set-password", "update-last-login", "delete"]
    user_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[AdminRole] = None
    permissions: Optional[List[str]] = None


class CustomerUserResponse(CamelModel):
    id: str
    customer_id: str
    email: str
    name: Optional[str] = None
    role: str
    is_active: bool = True
    password_set: bool = False
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class PortalAuthRequest(CamelModel):
    action: Literal["login", "register", "updatePassword"]
    email: str
    password: Optional[str] = None
    name: Optional[str] = None
    customer_id: Optional[str] = None
    onboarding_token: Optional[str] = None
    new_password: Optional[str] = None


class CustomerUserCreate(CamelModel):
    customer_id: Optional[str] = None
    email: str
    name: Optional[str] = None
    password: Optional[str] = None
    role: PortalRole = "staff"


class CustomerUserAction(CamelModel):
    user_id: str = Field(..., min_length=1)
    action: Literal["set-password", "send-reset-email", "set-active", "update-role"]
    password: Optional[str] = None
    is_active: Optional[bool] = None
    role: Optional[PortalRole] = None


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    new_password: str
