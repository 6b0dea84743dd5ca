"""Authentication/session models."""
import uuid

from sqlalchemy import Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from vaultbank.clock import utcnow_iso
from vaultbank.database import Base


class RefreshSession(Base):
    """Tracks refresh-token sessions for rotation and revocation."""

    __tablename__ = "refresh_sessions"
    __table_args__ = (
        Index("ix_refresh_sessions_user_active", "user_id", "revoked_at"),
        Index("ix_refresh_sessions_expires_at", "expires_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    jti_hash = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(String(26), default=utcnow_iso)
    expires_at = Column(String(26), nullable=False)
    revoked_at = Column(String(26))
    last_used_at = Column(String(26))
    rotated_from_id = Column(String(36), ForeignKey("refresh_sessions.id", ondelete="SET NULL"))
    user_agent = Column(String(255))
    ip_address = Column(String(45))

    user = relationship("User", back_populates="refresh_sessions")


class ResetToken(Base):
    """Single-use password reset token. Only the SHA-256 of the token is stored."""

    __tablename__ = "reset_tokens"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(String(26), default=utcnow_iso)
    expires_at = Column(String(26), nullable=False, index=True)

    user = relationship("User", back_populates="reset_tokens")
