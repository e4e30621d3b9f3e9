from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str
    SKIP_DB_INIT: bool = False

    # Customer store backend: "sql" or "memory"
    CUSTOMER_STORE: str = "sql"

    # JWT
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_MINUTES: int = 43200  # 30 days

    # Passwords
    BCRYPT_ROUNDS: int = 10
    PORTAL_PASSWORD_MIN_LENGTH: int = 6
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # First super admin, created on startup when no admin exists
    ADMIN_BOOTSTRAP_EMAIL: Optional[str] = None
    ADMIN_BOOTSTRAP_PASSWORD: Optional[str] = None

    # Public site
    SITE_URL: str = "http://localhost:8080"

    # Email (Resend)
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com"
    EMAIL_FROM: str = "BossBoarding <onboarding@laundryboss.com>"
    ADMIN_EMAIL: Optional[str] = None

    # File storage
    STORAGE_URL: Optional[str] = None
    STORAGE_SERVICE_KEY: Optional[str] = None
    STORAGE_BUCKET: str = "media"
    MAX_UPLOAD_BYTES: int = 500 * 1024 * 1024

    # AI completion estimate
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    # Onboarding
    INSTALLATION_LEAD_DAYS: int = 40
    STANDARD_ONBOARDING_DAYS: int = 28
    DEFAULT_PAYSTRI_LINK: str = "https://insights.paystri.com/laundryboss-self-registration"

    # Commissions
    DEFAULT_COMMISSION_RATE: float = 10.0
    DEFAULT_PAYMENT_TERM_MONTHS: int = 48

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: list = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
