"""User profile API endpoints."""
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from vaultbank.api.deps import get_current_user, get_db
from vaultbank.models.user import User
from vaultbank.schemas.account import AccountResponse
from vaultbank.schemas.auth import NAME_PATTERN, UserResponse
from vaultbank.schemas.transaction import TransactionResponse
from vaultbank.services import users as user_service
from vaultbank.services.accounts import get_checking_account, get_user_accounts
from vaultbank.services.transactions import list_transactions

router = APIRouter(prefix="/users", tags=["users"])


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=2, max_length=50, pattern=NAME_PATTERN)
    last_name: str | None = Field(None, min_length=2, max_length=50, pattern=NAME_PATTERN)
    email: EmailStr | None = None


class ProfileResponse(BaseModel):
    user: UserResponse
    checking_account_number: str | None
    checking_balance: Decimal
    accounts: list[AccountResponse]
    recent_transactions: list[TransactionResponse]


class BalanceResponse(BaseModel):
    balance: Decimal
    account_number: str
    account_type: str = "checking"


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Profile, accounts and the 10 most recent transactions."""
    accounts = get_user_accounts(db, current_user.id, include_inactive=True)
    transactions, _ = list_transactions(db, user_id=current_user.id, limit=10)
    checking = next((a for a in accounts if a.type == "checking"), None)

    return ProfileResponse(
        user=UserResponse.model_validate(current_user),
        checking_account_number=checking.account_number if checking else None,
        checking_balance=checking.balance if checking else Decimal("0.00"),
        accounts=[AccountResponse.model_validate(a) for a in accounts],
        recent_transactions=[TransactionResponse.model_validate(t) for t in transactions],
    )


@router.put("/profile", response_model=UserResponse)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update name or email. Changing email clears its verified flag."""
    return user_service.update_profile(
        db,
        current_user,
        first_name=data.first_name,
        last_name=data.last_name,
        email=str(data.email) if data.email else None,
    )


@router.get("/balance", response_model=BalanceResponse)
def get_balance(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Checking account balance."""
    checking = get_checking_account(db, current_user.id)
    return BalanceResponse(balance=checking.balance, account_number=checking.account_number)
