"""User model."""
import uuid
from datetime import date

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from vaultbank.clock import utcnow, utcnow_iso
from vaultbank.database import Base


class User(Base):
    """Online-banking customer."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Personal information
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    date_of_birth = Column(String(10), nullable=False)  # YYYY-MM-DD
    phone = Column(String(20), nullable=False)
    ssn = Column(String(11), unique=True, nullable=False, index=True)

    # Address
    street1 = Column(String(100), nullable=False)
    street2 = Column(String(100), default="")
    city = Column(String(50), nullable=False)
    state = Column(String(2), nullable=False)
    zip_code = Column(String(10), nullable=False)

    # Employment / financial
    employment_status = Column(String(20), nullable=False)
    employer = Column(String(100), default="")
    occupation = Column(String(100), default="")
    annual_income = Column(String(20), nullable=False)
    source_of_funds = Column(String(20), nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    last_login = Column(String(26))
    password_changed_at = Column(String(26))
    login_attempts = Column(Integer, default=0, nullable=False)
    lock_until = Column(String(26))

    created_at = Column(String(26), default=utcnow_iso)
    updated_at = Column(String(26), default=utcnow_iso, onupdate=utcnow_iso)

    # Relationships
    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="user", cascade="all, delete-orphan")
    refresh_sessions = relationship("RefreshSession", back_populates="user", cascade="all, delete-orphan")
    reset_tokens = relationship("ResetToken", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def full_address(self) -> str:
        address = self.street1
        if self.street2:
            address += f", {self.street2}"
        return f"{address}, {self.city}, {self.state} {self.zip_code}"

    @property
    def age(self) -> int:
        return calculate_age(date.fromisoformat(self.date_of_birth))

    @property
    def is_locked(self) -> bool:
        return bool(self.lock_until and self.lock_until > utcnow().isoformat())


def calculate_age(birth_date: date, today: date | None = None) -> int:
    """Whole years between birth_date and today."""
    today = today or date.today()
    years = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years
