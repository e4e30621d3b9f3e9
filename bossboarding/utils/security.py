import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt
from bossboarding.config import settings

# Unambiguous characters only (no 0/O, 1/l/I)
ONBOARDING_TOKEN_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"
ONBOARDING_TOKEN_LENGTH = 8


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT for a staff or portal login.

    ``data`` carries ``sub`` (user id) and ``kind`` ("admin" or "portal").
    """
    lifetime = expires_delta or timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, kind: Optional[str] = None) -> Optional[dict]:
    """Verified claims, or None when the token fails verification or has another kind"""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    if kind is not None and claims.get("kind") != kind:
        return None
    if not claims.get("sub"):
        return None
    return claims


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)).decode('utf-8')


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_onboarding_token() -> str:
    """8-character link token for the onboarding wizard"""
    return "".join(secrets.choice(ONBOARDING_TOKEN_ALPHABET) for _ in range(ONBOARDING_TOKEN_LENGTH))


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def generate_id(prefix: str) -> str:
    return f"{prefix}_{secrets.token_hex(8)}"
