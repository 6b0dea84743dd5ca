"""Admin dashboard API endpoints."""
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from vaultbank.api.deps import get_current_admin, get_db
from vaultbank.models.admin import Admin
from vaultbank.schemas.admin import (
    AdminLogin,
    AdminResponse,
    AdminToken,
    AdminTransactionListResponse,
    AdminTransactionResponse,
    AdminUserListResponse,
    AdminUserResponse,
    DashboardStats,
)
from vaultbank.schemas.auth import MessageResponse
from vaultbank.schemas.transaction import DepositRequest, TransactionDetailResponse, TransactionResponse
from vaultbank.security import create_admin_token
from vaultbank.services import admin as admin_service
from vaultbank.services import users as user_service
from vaultbank.services.transactions import (
    create_deposit,
    get_transaction,
    list_transactions,
    set_transaction_status,
)

router = APIRouter(prefix="/admin", tags=["admin"])

StatusFilter = Literal["pending", "completed", "failed"]
TypeFilter = Literal["credit", "debit"]


@router.post("/login", response_model=AdminToken)
def admin_login(credentials: AdminLogin, db: Session = Depends(get_db)):
    """Login as an admin and get an admin-scoped token."""
    admin = admin_service.authenticate_admin(db, credentials.username, credentials.password)
    return AdminToken(
        access_token=create_admin_token(admin.id, admin.username, admin.role),
        admin=AdminResponse.model_validate(admin),
    )


@router.get("/profile", response_model=AdminResponse)
def admin_profile(admin: Admin = Depends(get_current_admin)):
    return admin


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """Users, transactions, pending reviews and completed volume."""
    return admin_service.get_dashboard_stats(db)


@router.get("/transactions", response_model=AdminTransactionListResponse)
def all_transactions(
    status_filter: StatusFilter | None = Query(None, alias="status"),
    type_filter: TypeFilter | None = Query(None, alias="type"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    transactions, total = list_transactions(
        db,
        status=status_filter,
        transaction_type=type_filter,
        limit=limit,
        offset=offset,
    )
    return AdminTransactionListResponse(
        transactions=[AdminTransactionResponse.from_transaction(t) for t in transactions],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/transactions/recent", response_model=list[AdminTransactionResponse])
def recent_transactions(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    transactions, _ = list_transactions(db, limit=limit)
    return [AdminTransactionResponse.from_transaction(t) for t in transactions]


@router.get("/transactions/{transaction_id}", response_model=TransactionDetailResponse)
def transaction_detail(
    transaction_id: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    return TransactionDetailResponse.from_transaction(get_transaction(db, transaction_id))


@router.put("/transactions/{transaction_id}/approve", response_model=TransactionResponse)
def approve_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """Complete a pending transaction, moving the checking balance."""
    transaction = get_transaction(db, transaction_id)
    return set_transaction_status(db, transaction, "completed")


@router.put("/transactions/{transaction_id}/reject", response_model=TransactionResponse)
def reject_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """Fail a transaction, reversing it if it had completed."""
    transaction = get_transaction(db, transaction_id)
    return set_transaction_status(db, transaction, "failed")


@router.get("/users", response_model=AdminUserListResponse)
def all_users(
    search: str | None = Query(None, max_length=100),
    is_active: bool | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    users, total = admin_service.list_users(db, search=search, is_active=is_active, limit=limit, offset=offset)
    return AdminUserListResponse(
        users=[AdminUserResponse.model_validate(u) for u in users],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/users/recent", response_model=list[AdminUserResponse])
def recent_users(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    users, _ = admin_service.list_users(db, limit=limit)
    return users


@router.get("/users/{user_id}", response_model=AdminUserResponse)
def user_detail(
    user_id: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    return user_service.get_user(db, user_id)


@router.put("/users/{user_id}/activate", response_model=AdminUserResponse)
def activate_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    return user_service.set_user_active(db, user_service.get_user(db, user_id), True)


@router.put("/users/{user_id}/suspend", response_model=AdminUserResponse)
def suspend_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    return user_service.set_user_active(db, user_service.get_user(db, user_id), False)


@router.post("/users/{user_id}/unlock", response_model=MessageResponse)
def unlock_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    user_service.unlock_user(db, user_service.get_user(db, user_id))
    return MessageResponse(message="Account unlocked successfully")


@router.post(
    "/users/{user_id}/deposits",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def deposit_to_user(
    user_id: str,
    deposit: DepositRequest,
    db: Session = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    """Create a pending credit to the user's checking account."""
    user = user_service.get_user(db, user_id)
    details = {**deposit.details, "created_by": admin.username}
    return create_deposit(db, user.id, deposit.amount, description=deposit.description, details=details)
