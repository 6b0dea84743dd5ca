"""Transaction schemas."""
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field

from vaultbank.schemas.metadata import TransactionMetadata


class TransferRequest(BaseModel):
    """Outgoing transfer form."""

    recipient_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr | None = None
    bank_name: str | None = Field(None, max_length=100)
    account_type: str | None = Field(None, max_length=20)
    account_number: str = Field(..., pattern=r"^\d{4,17}$")
    routing_number: str | None = Field(None, pattern=r"^\d{9}$")
    transfer_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    transfer_fee: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    transfer_purpose: str | None = Field(None, max_length=255)


class StatusUpdate(BaseModel):
    status: Literal["pending", "completed", "failed"]


class DepositRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str = Field("Deposit", min_length=1, max_length=255)
    details: dict[str, Any] = Field(default_factory=dict)


class TransactionResponse(BaseModel):
    """Transaction summary."""

    id: str
    type: str
    amount: Decimal
    description: str
    status: str
    reference: str
    account_id: str | None = None
    date: str

    class Config:
        from_attributes = True


class TransactionDetailResponse(TransactionResponse):
    """Transaction with its tagged metadata."""

    metadata: TransactionMetadata

    @classmethod
    def from_transaction(cls, transaction) -> "TransactionDetailResponse":
        base = TransactionResponse.model_validate(transaction).model_dump()
        return cls(**base, metadata=transaction.details.model_dump())


class TransactionListResponse(BaseModel):
    """Paginated transaction list response."""

    transactions: list[TransactionResponse]
    total: int
    limit: int
    offset: int
