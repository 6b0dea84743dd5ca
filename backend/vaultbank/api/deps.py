"""Shared API dependencies."""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from vaultbank.database import get_db
from vaultbank.models.admin import Admin
from vaultbank.models.user import User
from vaultbank.security import decode_token

bearer_scheme = HTTPBearer(auto_error=False)

__all__ = ["get_db", "get_current_user", "get_current_admin"]


def _credentials_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode_access_token(credentials: HTTPAuthorizationCredentials | None) -> dict:
    if credentials is None:
        raise _credentials_exception("Access denied. No token provided.")
    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise _credentials_exception("Invalid or expired token")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise _credentials_exception("Invalid token type")
    return payload


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user."""
    payload = _decode_access_token(credentials)
    if payload.get("scope") == "admin":
        raise _credentials_exception("Invalid token type")

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if not user:
        raise _credentials_exception("User not found")
    if not user.is_active:
        raise _credentials_exception("Account is deactivated")
    return user


def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Admin:
    """Resolve the bearer token to an active admin."""
    payload = _decode_access_token(credentials)
    if payload.get("scope") != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    admin = db.query(Admin).filter(Admin.id == payload["sub"]).first()
    if not admin or not admin.is_active:
        raise _credentials_exception("Invalid token.")
    return admin
