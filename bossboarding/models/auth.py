from sqlalchemy import Column, String, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from bossboarding.database import Base


class AdminUser(Base):
    __tablename__ = "admin_profiles"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="staff")  # super_admin, admin, staff
    permissions = Column(JSON)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login = Column(DateTime(timezone=True))


class CustomerUser(Base):
    __tablename__ = "customer_users"

    id = Column(String, primary_key=True, index=True)
    customer_id = Column(String, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String)
    password_hash = Column(String)
    role = Column(String, nullable=False, default="owner")  # owner, manager, staff
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_login_at = Column(DateTime(timezone=True))

    # Password reset (bcrypt hash of the emailed token)
    reset_token_hash = Column(String)
    reset_token_expiry = Column(DateTime(timezone=True))
