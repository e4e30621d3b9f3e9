from sqlalchemy.orm import Session
from datetime import datetime, timedelta, timezone
from typing import Optional, List, Tuple
from bossboarding.config import settings
from bossboarding.models.auth import AdminUser, CustomerUser
from bossboarding.utils.security import generate_id, generate_reset_token, hash_password, verify_password


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AdminUserRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        email: str,
        password: str,
        name: Optional[str] = None,
        role: str = "staff",
        permissions: Optional[List[str]] = None,
    ) -> AdminUser:
        """Create a staff login"""
        user = AdminUser(
            id=generate_id("admin"),
            email=email.strip().lower(),
            name=name,
            password_hash=hash_password(password),
            role=role,
            permissions=permissions or [],
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_by_id(self, user_id: str) -> Optional[AdminUser]:
        return self.db.query(AdminUser).filter(AdminUser.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[AdminUser]:
        return self.db.query(AdminUser).filter(AdminUser.email == email.strip().lower()).first()

    def get_all(self) -> List[AdminUser]:
        return self.db.query(AdminUser).order_by(AdminUser.created_at.desc()).all()

    def count(self) -> int:
        return self.db.query(AdminUser).count()

    def authenticate(self, email: str, password: str) -> Optional[AdminUser]:
        """Verify credentials and record the login"""
        user = self.get_by_email(email)
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            return None

        user.last_login = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_role(self, user_id: str, role: str, permissions: Optional[List[str]] = None) -> Optional[AdminUser]:
        user = self.get_by_id(user_id)
        if user:
            user.role = role
            if permissions is not None:
                user.permissions = permissions
            self.db.commit()
            self.db.refresh(user)
        return user

    def set_password(self, user_id: str, password: str) -> Optional[AdminUser]:
        user = self.get_by_id(user_id)
        if user:
            user.password_hash = hash_password(password)
            self.db.commit()
        return user

    def touch_last_login(self, user_id: str) -> Optional[AdminUser]:
        user = self.get_by_id(user_id)
        if user:
            user.last_login = datetime.now(timezone.utc)
            self.db.commit()
        return user

    def delete(self, user_id: str) -> bool:
        user = self.get_by_id(user_id)
        if not user:
            return False
        self.db.delete(user)
        self.db.commit()
        return True


class CustomerUserRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        customer_id: str,
        email: str,
        password: Optional[str] = None,
        name: Optional[str] = None,
        role: str = "owner",
    ) -> CustomerUser:
        """Create a portal login for a customer"""
        user = CustomerUser(
            id=generate_id("cuser"),
            customer_id=customer_id,
            email=email.strip().lower(),
            name=name,
            password_hash=hash_password(password) if password else None,
            role=role,
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_by_id(self, user_id: str) -> Optional[CustomerUser]:
        return self.db.query(CustomerUser).filter(CustomerUser.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[CustomerUser]:
        return self.db.query(CustomerUser).filter(CustomerUser.email == email.strip().lower()).first()

    def get_all(self, customer_id: Optional[str] = None) -> List[CustomerUser]:
        query = self.db.query(CustomerUser)
        if customer_id:
            query = query.filter(CustomerUser.customer_id == customer_id)
        return query.order_by(CustomerUser.created_at.desc()).all()

    def authenticate(self, email: str, password: str) -> Optional[CustomerUser]:
        user = self.get_by_email(email)
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            return None

        user.last_login_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)
        return user

    def set_password(self, user: CustomerUser, password: str) -> CustomerUser:
        user.password_hash = hash_password(password)
        user.reset_token_hash = None
        user.reset_token_expiry = None
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(self, user: CustomerUser, **kwargs) -> CustomerUser:
        for key, value in kwargs.items():
            if hasattr(user, key) and value is not None:
                setattr(user, key, value)
        self.db.commit()
        self.db.refresh(user)
        return user

    def create_reset_token(self, user: CustomerUser) -> Tuple[str, datetime]:
        """Issue a reset token; only its bcrypt hash is stored"""
        token = generate_reset_token()
        expiry = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
        user.reset_token_hash = hash_password(token)
        user.reset_token_expiry = expiry
        self.db.commit()
        return token, expiry

    def reset_password(self, user_id: str, token: str, new_password: str) -> Optional[CustomerUser]:
        """Set a new password if the reset token matches and has not expired"""
        user = self.get_by_id(user_id)
        if not user or not user.reset_token_hash or not user.reset_token_expiry:
            return None

        if _aware(user.reset_token_expiry) < datetime.now(timezone.utc):
            return None

        if not verify_password(token, user.reset_token_hash):
            return None

        return self.set_password(user, new_password)

    def delete(self, user_id: str) -> bool:
        user = self.get_by_id(user_id)
        if not user:
            return False
        self.db.delete(user)
        self.db.commit()
        return True
