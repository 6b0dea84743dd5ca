"""Transactions API endpoints."""
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from vaultbank.api.deps import get_current_user, get_db
from vaultbank.models.user import User
from vaultbank.schemas.transaction import (
    StatusUpdate,
    TransactionDetailResponse,
    TransactionListResponse,
    TransactionResponse,
    TransferRequest,
)
from vaultbank.services.transactions import (
    Recipient,
    create_transfer,
    get_transaction,
    list_transactions,
    set_transaction_status,
)

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post("/transfer", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def initiate_transfer(
    transfer: TransferRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a pending transfer out of the checking account."""
    recipient = Recipient(
        name=transfer.recipient_name,
        account_number=transfer.account_number,
        email=transfer.email,
        bank_name=transfer.bank_name,
        account_type=transfer.account_type,
        routing_number=transfer.routing_number,
        purpose=transfer.transfer_purpose,
    )
    return create_transfer(
        db,
        current_user.id,
        recipient,
        transfer.transfer_amount,
        fee=transfer.transfer_fee,
    )


@router.get("", response_model=TransactionListResponse)
def list_my_transactions(
    status_filter: Literal["pending", "completed", "failed"] | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List the current user's transactions, newest first."""
    transactions, total = list_transactions(
        db,
        user_id=current_user.id,
        status=status_filter,
        limit=limit,
        offset=offset,
    )
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{transaction_id}", response_model=TransactionDetailResponse)
def get_transaction_detail(
    transaction_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Transaction with its transfer details."""
    transaction = get_transaction(db, transaction_id, user_id=current_user.id)
    return TransactionDetailResponse.from_transaction(transaction)


@router.patch("/{transaction_id}/status", response_model=TransactionResponse)
def update_transaction_status(
    transaction_id: str,
    update: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Complete or fail one of the current user's transactions."""
    transaction = get_transaction(db, transaction_id, user_id=current_user.id)
    return set_transaction_status(db, transaction, update.status)
