"""Accounts API endpoints."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from vaultbank.api.deps import get_current_user, get_db
from vaultbank.models.user import User
from vaultbank.schemas.account import AccountResponse, AccountSummaryResponse
from vaultbank.services import accounts as account_service

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=list[AccountResponse])
def list_accounts(
    include_inactive: bool = Query(False, description="Include deactivated accounts"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List the current user's accounts, primary first."""
    return account_service.get_user_accounts(db, current_user.id, include_inactive=include_inactive)


@router.get("/summary", response_model=AccountSummaryResponse)
def get_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Balances and credit usage across active accounts."""
    return account_service.get_accounts_summary(db, current_user.id)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return account_service.get_user_account(db, current_user.id, account_id)


@router.post("/{account_id}/primary", response_model=AccountResponse)
def make_primary(
    account_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Make this the user's primary account."""
    return account_service.set_primary_account(db, current_user.id, account_id)


@router.post("/{account_id}/deactivate", response_model=AccountResponse)
def deactivate(
    account_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Deactivate a non-primary account."""
    return account_service.deactivate_account(db, current_user.id, account_id)
