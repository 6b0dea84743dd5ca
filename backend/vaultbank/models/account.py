"""Account model."""
import uuid
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.orm import relationship

from vaultbank.clock import utcnow_iso
from vaultbank.database import Base

DISPLAY_NAMES = {
    "checking": "Checking Account",
    "savings": "Savings Account",
    "credit_card": "Credit Card",
}


class Account(Base):
    """A user's checking, savings or credit-card account.

    For credit cards ``balance`` is the negated debt: 0 means nothing owed.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("type IN ('checking', 'savings', 'credit_card')", name="ck_account_type"),
        CheckConstraint("statement_day BETWEEN 1 AND 31", name="ck_account_statement_day"),
        Index("ix_accounts_user_type", "user_id", "type"),
        # At most one primary account per user
        Index(
            "uq_accounts_user_primary",
            "user_id",
            unique=True,
            sqlite_where=text("is_primary = 1"),
            postgresql_where=text("is_primary"),
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    account_number = Column(String(10), unique=True, nullable=False, index=True)
    type = Column(String(20), nullable=False)

    balance = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    credit_limit = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    minimum_balance = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    interest_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))  # percent

    is_primary = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    overdraft_protection = Column(Boolean, nullable=False, default=False)

    nickname = Column(String(50))
    statement_day = Column(Integer, nullable=False, default=1)
    opened_at = Column(String(26), default=utcnow_iso)
    last_transaction_at = Column(String(26))
    created_at = Column(String(26), default=utcnow_iso)
    updated_at = Column(String(26), default=utcnow_iso, onupdate=utcnow_iso)

    # Relationships
    user = relationship("User", back_populates="accounts")
    transactions = relationship("Transaction", back_populates="account")

    @property
    def masked_number(self) -> str:
        return f"****{self.account_number[-4:]}"

    @property
    def display_name(self) -> str:
        if self.nickname:
            return self.nickname
        return DISPLAY_NAMES.get(self.type, "Account")

    @property
    def available_credit(self) -> Decimal | None:
        if self.type != "credit_card":
            return None
        return self.credit_limit + self.balance

    @property
    def credit_utilization(self) -> int:
        """Percentage of the credit limit in use, rounded to an integer."""
        if self.type != "credit_card" or not self.credit_limit:
            return 0
        return round(abs(self.balance) / self.credit_limit * 100)
