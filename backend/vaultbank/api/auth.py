"""Authentication API endpoints."""
from datetime import datetime, timedelta
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from jose import JWTError
from sqlalchemy.orm import Session

from vaultbank.api.deps import get_current_user, get_db
from vaultbank.clock import utcnow, utcnow_iso
from vaultbank.config import get_settings
from vaultbank.exceptions import UserNotFound
from vaultbank.models.auth import RefreshSession
from vaultbank.models.user import User
from vaultbank.rate_limit import get_request_ip
from vaultbank.schemas.account import AccountResponse
from vaultbank.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LockStatusResponse,
    MessageResponse,
    ResetPasswordRequest,
    SessionResponse,
    SignupResponse,
    UserLogin,
    UserResponse,
    UserSignup,
)
from vaultbank.security import create_access_token, create_refresh_token, decode_token, hash_token_id
from vaultbank.services import users as user_service
from vaultbank.services.notifications import send_password_reset_email
from vaultbank.services.password_reset import consume_reset_token, issue_reset_token

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()

RESET_REQUESTED_MESSAGE = "If the email exists, a reset link has been sent"


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Issue secure HttpOnly refresh-token cookie."""
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite=settings.refresh_cookie_samesite,
        path=settings.refresh_cookie_path,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )


def clear_refresh_cookie(response: Response) -> None:
    """Clear refresh-token cookie."""
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path=settings.refresh_cookie_path,
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite=settings.refresh_cookie_samesite,
    )


def create_refresh_session(
    db: Session,
    user_id: str,
    request: Request,
    rotated_from_id: str | None = None,
) -> tuple[RefreshSession, str]:
    """Create persisted refresh session + JWT pair."""
    jti = str(uuid.uuid4())
    expires_at_dt = utcnow() + timedelta(days=settings.refresh_token_expire_days)

    session = RefreshSession(
        user_id=user_id,
        jti_hash=hash_token_id(jti),
        expires_at=expires_at_dt.isoformat(),
        rotated_from_id=rotated_from_id,
        user_agent=request.headers.get("user-agent"),
        ip_address=get_request_ip(request),
    )
    db.add(session)
    db.flush()

    refresh_token = create_refresh_token({"sub": user_id, "jti": jti, "exp": expires_at_dt})
    return session, refresh_token


def revoke_all_user_sessions(db: Session, user_id: str) -> None:
    """Revoke all active refresh sessions for a user."""
    now = utcnow_iso()
    db.query(RefreshSession).filter(
        RefreshSession.user_id == user_id,
        RefreshSession.revoked_at.is_(None),
    ).update(
        {"revoked_at": now, "last_used_at": now},
        synchronize_session=False,
    )


def _load_refresh_session(db: Session, request: Request, response: Response) -> tuple[RefreshSession, User]:
    """Validate the refresh cookie and return its live session and user."""
    refresh_cookie = request.cookies.get(settings.refresh_cookie_name)
    if not refresh_cookie:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing refresh token",
        )

    try:
        payload = decode_token(refresh_cookie)
    except JWTError:
        clear_refresh_cookie(response)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    user_id: str | None = payload.get("sub")
    jti: str | None = payload.get("jti")
    if payload.get("type") != "refresh" or user_id is None or jti is None:
        clear_refresh_cookie(response)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    session = db.query(RefreshSession).filter(
        RefreshSession.user_id == user_id,
        RefreshSession.jti_hash == hash_token_id(jti),
    ).first()
    if not session or session.revoked_at:
        clear_refresh_cookie(response)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh session",
        )

    try:
        expires_at = datetime.fromisoformat(session.expires_at)
    except ValueError:
        expires_at = None
    if expires_at is None or expires_at <= utcnow():
        clear_refresh_cookie(response)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh session expired",
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        clear_refresh_cookie(response)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return session, user


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserSignup, db: Session = Depends(get_db)):
    """Open a customer profile with checking, savings and credit-card accounts."""
    user, accounts = user_service.register_user(db, user_data)
    return SignupResponse(
        message="Account created successfully",
        access_token=create_access_token({"sub": user.id}),
        user=UserResponse.model_validate(user),
        accounts=[AccountResponse.model_validate(account) for account in accounts],
    )


@router.post("/login", response_model=SessionResponse)
def login(
    user_data: UserLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Login and get tokens."""
    user = user_service.authenticate_user(db, user_data.username, user_data.password)

    access_token = create_access_token({"sub": user.id})
    _, refresh_token = create_refresh_session(db, user.id, request)
    db.commit()
    set_refresh_cookie(response, refresh_token)

    return SessionResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.post("/refresh", response_model=SessionResponse)
def refresh_tokens(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Rotate the refresh cookie and issue a new access token."""
    session, user = _load_refresh_session(db, request, response)

    now = utcnow_iso()
    session.revoked_at = now
    session.last_used_at = now
    _, new_refresh_token = create_refresh_session(db, user.id, request, rotated_from_id=session.id)

    access_token = create_access_token({"sub": user.id})
    db.commit()
    set_refresh_cookie(response, new_refresh_token)

    return SessionResponse(access_token=access_token, user=UserResponse.model_validate(user))


@router.get("/session", response_model=SessionResponse)
def check_session(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Restore a session from the refresh cookie without rotating it."""
    session, user = _load_refresh_session(db, request, response)
    session.last_used_at = utcnow_iso()
    db.commit()
    return SessionResponse(access_token=create_access_token({"sub": user.id}), user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Logout and revoke all refresh sessions for the current user."""
    revoke_all_user_sessions(db, current_user.id)
    db.commit()
    clear_refresh_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/verify", response_model=UserResponse)
def verify_token(current_user: User = Depends(get_current_user)):
    """Return the user behind a valid access token."""
    return current_user


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Email a reset link. The answer does not reveal whether the email exists."""
    user = db.query(User).filter(User.email == str(data.email).lower()).first()
    if user:
        token = issue_reset_token(db, user)
        send_password_reset_email(user, token)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Set a new password with a reset token."""
    user = consume_reset_token(db, data.token, data.new_password)
    revoke_all_user_sessions(db, user.id)
    db.commit()
    return MessageResponse(message="Password reset successful")


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Change password after confirming the current one."""
    user_service.change_password(db, current_user, data.current_password, data.new_password)
    return MessageResponse(message="Password changed successfully")


@router.get("/lock-status/{identifier}", response_model=LockStatusResponse)
def get_lock_status(identifier: str, db: Session = Depends(get_db)):
    """Report whether a username or email is locked out."""
    user = user_service.find_user_by_identifier(db, identifier)
    if not user:
        raise UserNotFound()
    return LockStatusResponse(**user_service.lock_status(user))
