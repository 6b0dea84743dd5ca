"""User registration, login bookkeeping and profile updates."""
import logging
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from vaultbank.clock import utcnow, utcnow_iso
from vaultbank.config import get_settings
from vaultbank.database import unit_of_work
from vaultbank.exceptions import AccountLocked, AuthenticationError, DuplicateKey, UserNotFound, ValidationError
from vaultbank.models.account import Account
from vaultbank.models.user import User
from vaultbank.schemas.auth import UserSignup
from vaultbank.security import get_password_hash, verify_password
from vaultbank.services.accounts import create_default_accounts

logger = logging.getLogger(__name__)


def register_user(db: Session, data: UserSignup) -> tuple[User, list[Account]]:
    """Create a user and their default accounts in a single commit."""
    email = str(data.email).lower()
    existing = db.query(User).filter(
        or_(User.email == email, User.username == data.username, User.ssn == data.ssn)
    ).first()
    if existing:
        if existing.username == data.username:
            raise DuplicateKey("Username already taken")
        if existing.email == email:
            raise DuplicateKey("Email already registered")
        raise DuplicateKey("SSN already registered")

    with unit_of_work(db):
        user = User(
            username=data.username,
            email=email,
            password_hash=get_password_hash(data.password),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            date_of_birth=data.date_of_birth.isoformat(),
            phone=data.phone,
            ssn=data.ssn,
            street1=data.address1.strip(),
            street2=(data.address2 or "").strip(),
            city=data.city.strip(),
            state=data.state.upper(),
            zip_code=data.zip,
            employment_status=data.employment_status,
            employer=data.employer or "",
            occupation=data.occupation or "",
            annual_income=data.annual_income,
            source_of_funds=data.source_of_funds,
        )
        db.add(user)
        db.flush()
        accounts = create_default_accounts(db, user.id)

    db.refresh(user)
    logger.info(f"Registered user {user.username}", extra={"user_id": user.id, "action": "user.register"})
    return user, accounts


def find_user_by_identifier(db: Session, identifier: str) -> User | None:
    """Look a user up by username or email."""
    return db.query(User).filter(
        (User.username == identifier) | (User.email == identifier.lower())
    ).first()


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFound()
    return user


def authenticate_user(db: Session, identifier: str, password: str) -> User:
    """Check credentials and keep the failed-attempt counter.

    A user is locked for ``lockout_minutes`` once ``max_login_attempts``
    consecutive failures accumulate; an expired lock is cleared on the next
    attempt.
    """
    settings = get_settings()
    user = find_user_by_identifier(db, identifier)
    if not user:
        raise AuthenticationError()

    if user.lock_until and not user.is_locked:
        user.lock_until = None
        user.login_attempts = 0

    if user.is_locked:
        raise AccountLocked()

    if not verify_password(password, user.password_hash):
        with unit_of_work(db):
            user.login_attempts = (user.login_attempts or 0) + 1
            if user.login_attempts >= settings.max_login_attempts:
                user.lock_until = (utcnow() + timedelta(minutes=settings.lockout_minutes)).isoformat()
                logger.warning(
                    f"Locked {user.username} after {user.login_attempts} failed logins",
                    extra={"user_id": user.id, "action": "user.lock"},
                )
        raise AuthenticationError()

    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    with unit_of_work(db):
        user.login_attempts = 0
        user.lock_until = None
        user.last_login = utcnow_iso()
    return user


def unlock_user(db: Session, user: User) -> User:
    with unit_of_work(db):
        user.login_attempts = 0
        user.lock_until = None
    logger.info(f"Unlocked {user.username}", extra={"user_id": user.id, "action": "user.unlock"})
    return user


def lock_status(user: User) -> dict:
    remaining = 0
    if user.is_locked:
        remaining = max(0, int((datetime.fromisoformat(user.lock_until) - utcnow()).total_seconds()))
    return {
        "is_locked": user.is_locked,
        "login_attempts": user.login_attempts or 0,
        "lock_until": user.lock_until,
        "remaining_seconds": remaining,
    }


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    set_password(db, user, new_password)


def set_password(db: Session, user: User, new_password: str) -> None:
    with unit_of_work(db):
        user.password_hash = get_password_hash(new_password)
        user.password_changed_at = utcnow_iso()
    logger.info("Password changed", extra={"user_id": user.id, "action": "user.password"})


def update_profile(
    db: Session,
    user: User,
    first_name: str | None = None,
    last_name: str | None = None,
    email: str | None = None,
) -> User:
    """Update name and email; a new email must be unused and is unverified."""
    if email:
        email = email.lower()
    if email and email != user.email:
        taken = db.query(User.id).filter(User.email == email, User.id != user.id).first()
        if taken:
            raise DuplicateKey("Email already in use")

    with unit_of_work(db):
        if first_name:
            user.first_name = first_name.strip()
        if last_name:
            user.last_name = last_name.strip()
        if email and email != user.email:
            user.email = email
            user.is_email_verified = False
    return user


def set_user_active(db: Session, user: User, active: bool) -> User:
    with unit_of_work(db):
        user.is_active = active
    logger.info(
        f"User {user.username} {'activated' if active else 'suspended'}",
        extra={"user_id": user.id, "action": "user.activate" if active else "user.suspend"},
    )
    return user
