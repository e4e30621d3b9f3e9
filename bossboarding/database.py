"""
Database connection module.

Engine and session factory are created lazily so importing the package never
opens a connection.
"""

import time
import logging
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from bossboarding.config import settings

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Normalize the configured database URL for SQLAlchemy."""
    url = settings.DATABASE_URL.strip().strip("'").strip('"')

    # SQLALCHEMY COMPATIBILITY: Fix 'postgres://' to 'postgresql://'
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    return url


def create_db_engine():
    """Create SQLAlchemy engine with connection pooling."""
    db_url = get_database_url()

    if db_url.startswith("sqlite"):
        # In-memory sqlite must share one connection across threads
        return create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # Sanitized host logging
    host = db_url.split("@")[1].split(":")[0] if "@" in db_url else "unknown"
    logger.info(f"Configuring database engine for host: {host}")

    return create_engine(
        db_url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=5,
        max_overflow=10,
        connect_args={
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000"
        }
    )


# Singleton instances
_engine = None
_SessionLocal = None


def get_engine():
    """Lazy engine initialization to prevent import-time crashes."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def get_session_local():
    """Lazy session factory initialization."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def SessionLocal(*args, **kwargs):
    return get_session_local()(*args, **kwargs)


def connect_with_retry(max_retries=5, delay=3):
    """Wait for the database with linear backoff. Returns True once reachable."""
    last_error = None
    for attempt in range(max_retries):
        try:
            with get_engine().connect() as conn:
                conn.execute(text("SELECT 1"))
                logger.info("Database connection established successfully.")
                return True
        except SQLAlchemyError as e:
            last_error = e
            wait = delay * (attempt + 1)
            logger.warning(f"DB Connection attempt {attempt + 1} failed. Retrying in {wait}s...")
            time.sleep(wait)
    logger.error(f"Failed to connect: {last_error}")
    return False


# Base class for models
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database_health() -> bool:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


def init_models():
    """Import every model module and create missing tables."""
    import bossboarding.models.customer
    import bossboarding.models.machine
    import bossboarding.models.employee
    import bossboarding.models.auth
    import bossboarding.models.setting

    _ = [bossboarding.models.customer.Customer, bossboarding.models.customer.CustomerNote,
         bossboarding.models.machine.Machine, bossboarding.models.employee.Employee,
         bossboarding.models.auth.AdminUser, bossboarding.models.auth.CustomerUser,
         bossboarding.models.setting.AppSetting]

    Base.metadata.create_all(bind=get_engine())
