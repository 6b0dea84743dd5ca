"""Admin dashboard schemas."""
from decimal import Decimal

from pydantic import BaseModel

from vaultbank.schemas.transaction import TransactionResponse


class AdminLogin(BaseModel):
    username: str
    password: str


class AdminResponse(BaseModel):
    id: str
    username: str
    name: str | None
    role: str

    class Config:
        from_attributes = True


class AdminToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    admin: AdminResponse


class DashboardStats(BaseModel):
    total_users: int
    total_transactions: int
    total_volume: Decimal  # Sum of completed amounts
    pending_reviews: int


class AdminUserResponse(BaseModel):
    """User record without credentials or SSN."""

    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    phone: str
    city: str
    state: str
    employment_status: str
    is_active: bool
    is_email_verified: bool
    is_locked: bool
    login_attempts: int
    last_login: str | None = None
    created_at: str

    class Config:
        from_attributes = True


class AdminUserListResponse(BaseModel):
    users: list[AdminUserResponse]
    total: int
    limit: int
    offset: int


class AdminTransactionResponse(TransactionResponse):
    user_id: str
    username: str | None = None
    user_email: str | None = None

    @classmethod
    def from_transaction(cls, transaction) -> "AdminTransactionResponse":
        base = TransactionResponse.model_validate(transaction).model_dump()
        user = transaction.user
        return cls(
            **base,
            user_id=transaction.user_id,
            username=user.username if user else None,
            user_email=user.email if user else None,
        )


class AdminTransactionListResponse(BaseModel):
    transactions: list[AdminTransactionResponse]
    total: int
    limit: int
    offset: int
