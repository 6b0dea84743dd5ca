"""Account schemas."""
from decimal import Decimal

from pydantic import BaseModel


class AccountResponse(BaseModel):
    """Account as seen by its owner."""

    id: str
    type: str
    account_number: str
    display_name: str
    balance: Decimal
    credit_limit: Decimal | None = None
    available_credit: Decimal | None = None
    minimum_balance: Decimal
    interest_rate: Decimal
    is_primary: bool
    is_active: bool
    overdraft_protection: bool
    nickname: str | None = None
    last_transaction_at: str | None = None
    created_at: str

    class Config:
        from_attributes = True


class AccountSummaryItem(BaseModel):
    id: str
    type: str
    account_number: str  # Masked
    display_name: str
    balance: Decimal
    is_primary: bool
    is_active: bool
    credit_limit: Decimal | None = None
    available_credit: Decimal | None = None
    utilization: int | None = None


class AccountSummaryResponse(BaseModel):
    total_accounts: int
    total_balance: Decimal
    total_debt: Decimal
    accounts: list[AccountSummaryItem]
