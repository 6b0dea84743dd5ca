"""Admin model."""
import uuid

from sqlalchemy import Boolean, Column, String

from vaultbank.clock import utcnow_iso
from vaultbank.database import Base


class Admin(Base):
    """Back-office operator allowed to use the admin dashboard."""

    __tablename__ = "admins"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), default="Admin User")
    role = Column(String(20), nullable=False, default="admin")  # admin, super_admin
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(String(26))
    created_at = Column(String(26), default=utcnow_iso)
