"""Password hashing and JWT helpers."""
from datetime import timedelta
import hashlib
import secrets

import bcrypt
from jose import jwt

from vaultbank.clock import utcnow
from vaultbank.config import get_settings

settings = get_settings()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=settings.bcrypt_rounds),
    ).decode("utf-8")


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def create_admin_token(admin_id: str, username: str, role: str) -> str:
    """Create a JWT that only admin routes accept."""
    return create_access_token(
        {"sub": admin_id, "username": username, "role": role, "scope": "admin"},
        expires_delta=timedelta(minutes=settings.admin_token_expire_minutes),
    )


def create_refresh_token(data: dict) -> str:
    """Create a JWT refresh token."""
    to_encode = data.copy()
    expire = to_encode.pop("exp", utcnow() + timedelta(days=settings.refresh_token_expire_days))
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT. Raises ``jose.JWTError`` on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])


def hash_token_id(token_id: str) -> str:
    """Hash a token identifier before persisting."""
    return hashlib.sha256(token_id.encode("utf-8")).hexdigest()


def generate_reset_token() -> str:
    return secrets.token_hex(32)
