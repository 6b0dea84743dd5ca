"""Single-use password reset tokens."""
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from vaultbank.clock import utcnow
from vaultbank.config import get_settings
from vaultbank.database import unit_of_work
from vaultbank.exceptions import ValidationError
from vaultbank.models.auth import ResetToken
from vaultbank.models.user import User
from vaultbank.security import generate_reset_token, hash_token_id
from vaultbank.services.users import set_password

logger = logging.getLogger(__name__)


def issue_reset_token(db: Session, user: User) -> str:
    """Replace any outstanding token for the user and return the raw token."""
    settings = get_settings()
    token = generate_reset_token()
    expires_at = utcnow() + timedelta(minutes=settings.reset_token_ttl_minutes)

    with unit_of_work(db):
        db.query(ResetToken).filter(ResetToken.user_id == user.id).delete(synchronize_session=False)
        db.add(ResetToken(
            user_id=user.id,
            token_hash=hash_token_id(token),
            expires_at=expires_at.isoformat(),
        ))

    logger.info("Password reset token issued", extra={"user_id": user.id, "action": "password.reset_issue"})
    return token


def consume_reset_token(db: Session, token: str, new_password: str) -> User:
    """Set a new password using a reset token, which is then deleted."""
    reset_token = db.query(ResetToken).filter(ResetToken.token_hash == hash_token_id(token)).first()
    if not reset_token:
        raise ValidationError("Invalid or expired reset token")

    if reset_token.expires_at <= utcnow().isoformat():
        with unit_of_work(db):
            db.delete(reset_token)
        raise ValidationError("Invalid or expired reset token")

    user = db.query(User).filter(User.id == reset_token.user_id).first()
    if not user:
        raise ValidationError("User not found")

    db.delete(reset_token)
    set_password(db, user, new_password)
    logger.info("Password reset completed", extra={"user_id": user.id, "action": "password.reset"})
    return user


def purge_expired_tokens(db: Session) -> int:
    with unit_of_work(db):
        removed = db.query(ResetToken).filter(
            ResetToken.expires_at <= utcnow().isoformat()
        ).delete(synchronize_session=False)
    return removed
