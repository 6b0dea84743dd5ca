"""Transaction model for transfers and deposits."""
import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import relationship

from vaultbank.clock import utcnow_iso
from vaultbank.database import Base
from vaultbank.schemas.metadata import TransactionMetadata, dump_metadata, load_metadata

TRANSACTION_TYPES = ("credit", "debit")


class Transaction(Base):
    """Ledger entry describing an intended balance change.

    The owning account's balance only moves when the entry is completed
    (or is reversed when a completed entry fails).
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("type IN ('credit', 'debit')", name="ck_transaction_type"),
        CheckConstraint("status IN ('pending', 'completed', 'failed')", name="ck_transaction_status"),
        CheckConstraint("amount >= 0", name="ck_transaction_amount"),
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_status", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"))

    type = Column(String(10), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)  # Unsigned magnitude
    description = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    reference = Column(String(20), unique=True, nullable=False, index=True)
    metadata_json = Column("metadata", Text, nullable=False, default="{}")

    date = Column(String(26), default=utcnow_iso)
    created_at = Column(String(26), default=utcnow_iso)
    updated_at = Column(String(26), default=utcnow_iso, onupdate=utcnow_iso)

    # Relationships
    user = relationship("User", back_populates="transactions")
    account = relationship("Account", back_populates="transactions")

    @property
    def details(self) -> TransactionMetadata:
        return load_metadata(self.metadata_json)

    @details.setter
    def details(self, value: TransactionMetadata) -> None:
        self.metadata_json = dump_metadata(value)
