"""Transfers, deposits and transaction status transitions."""
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from vaultbank.config import get_settings
from vaultbank.database import unit_of_work
from vaultbank.exceptions import InsufficientFunds, InvalidStatusTransition, TransactionNotFound, ValidationError
from vaultbank.models.transaction import Transaction
from vaultbank.schemas.metadata import OtherMetadata, TransferMetadata
from vaultbank.services.accounts import get_checking_account
from vaultbank.services.balances import apply_transaction_effect, can_process_transaction, to_money
from vaultbank.services.identifiers import generate_reference

logger = logging.getLogger(__name__)

# (current, requested) -> balance effect to perform on the checking account
STATUS_TRANSITIONS = {
    ("pending", "completed"): "apply",
    ("pending", "failed"): None,
    ("completed", "failed"): "reverse",
}


@dataclass
class Recipient:
    """Destination of an outgoing transfer."""

    name: str
    account_number: str
    email: str | None = None
    bank_name: str | None = None
    account_type: str | None = None
    routing_number: str | None = None
    purpose: str | None = None


def calculate_fee(amount: Decimal, fee: Decimal | None = None) -> Decimal:
    """Explicit fee when given, otherwise the configured percentage of amount."""
    if fee is not None:
        return to_money(fee)
    return to_money(amount * get_settings().transfer_fee_rate)


def create_transfer(
    db: Session,
    user_id: str,
    recipient: Recipient,
    amount: Decimal,
    fee: Decimal | None = None,
) -> Transaction:
    """Record a pending debit for ``amount + fee`` against the checking account.

    The checking balance is left untouched; it moves when the transaction is
    completed through ``set_transaction_status``.
    """
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError("Transfer amount must be greater than zero")
    if fee is not None and Decimal(fee) < 0:
        raise ValidationError("Transfer fee cannot be negative")
    if not recipient.name or not recipient.account_number:
        raise ValidationError("Missing required fields: recipient name, account number")

    fee = calculate_fee(amount, fee)
    total = amount + fee

    checking = get_checking_account(db, user_id)
    if checking.balance < total or not can_process_transaction(checking, -total):
        logger.warning(
            f"Transfer of {total} rejected: balance {checking.balance}, minimum {checking.minimum_balance}",
            extra={"user_id": user_id, "action": "transfer.reject", "resource": checking.id},
        )
        raise InsufficientFunds()

    metadata = TransferMetadata(
        recipient_name=recipient.name,
        recipient_email=recipient.email,
        bank_name=recipient.bank_name,
        account_type=recipient.account_type,
        account_last4=recipient.account_number[-4:],
        routing_number=recipient.routing_number,
        transfer_amount=amount,
        transfer_fee=fee,
        transfer_purpose=recipient.purpose,
        total_amount=total,
    )

    description = f"Transfer to {recipient.name}"
    if recipient.bank_name:
        description += f" - {recipient.bank_name}"

    with unit_of_work(db):
        transaction = Transaction(
            user_id=user_id,
            account_id=checking.id,
            type="debit",
            amount=total,
            description=description,
            status="pending",
            reference=generate_reference(db),
        )
        transaction.details = metadata
        db.add(transaction)

    db.refresh(transaction)
    logger.info(
        f"Transfer {transaction.reference} created for {total}",
        extra={"user_id": user_id, "action": "transfer.create", "resource": transaction.id},
    )
    return transaction


def create_deposit(
    db: Session,
    user_id: str,
    amount: Decimal,
    description: str = "Deposit",
    details: dict | None = None,
) -> Transaction:
    """Record a pending credit to the user's checking account."""
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError("Deposit amount must be greater than zero")

    checking = get_checking_account(db, user_id)

    with unit_of_work(db):
        transaction = Transaction(
            user_id=user_id,
            account_id=checking.id,
            type="credit",
            amount=amount,
            description=description,
            status="pending",
            reference=generate_reference(db),
        )
        transaction.details = OtherMetadata(details=details or {})
        db.add(transaction)

    db.refresh(transaction)
    logger.info(
        f"Deposit {transaction.reference} created for {amount}",
        extra={"user_id": user_id, "action": "deposit.create", "resource": transaction.id},
    )
    return transaction


def set_transaction_status(db: Session, transaction: Transaction, new_status: str) -> Transaction:
    """Move a transaction to ``new_status`` and apply its balance effect.

    Allowed: pending -> completed (apply), pending -> failed (no effect),
    completed -> failed (reverse). Everything else, including failed ->
    completed and same-status requests, raises ``InvalidStatusTransition``.

    The status write is a compare-and-set on the current status, so of two
    concurrent identical requests only one can succeed. Status and balance
    are committed together or not at all.
    """
    current = transaction.status
    key = (current, new_status)
    if key not in STATUS_TRANSITIONS:
        raise InvalidStatusTransition(current, new_status)
    effect = STATUS_TRANSITIONS[key]

    with unit_of_work(db):
        updated = db.query(Transaction).filter(
            Transaction.id == transaction.id,
            Transaction.status == current,
        ).update({Transaction.status: new_status}, synchronize_session=False)
        if updated != 1:
            raise InvalidStatusTransition(
                current,
                new_status,
                f"Transaction {transaction.reference} was modified concurrently",
            )

        if effect is not None:
            checking = get_checking_account(db, transaction.user_id)
            apply_transaction_effect(db, checking, transaction, effect)

    db.refresh(transaction)
    logger.info(
        f"Transaction {transaction.reference} {current} -> {new_status}",
        extra={"user_id": transaction.user_id, "action": "transaction.status", "resource": transaction.id},
    )
    return transaction


def get_transaction(db: Session, transaction_id: str, user_id: str | None = None) -> Transaction:
    """Fetch a transaction, optionally scoped to its owner."""
    query = db.query(Transaction).filter(Transaction.id == transaction_id)
    if user_id is not None:
        query = query.filter(Transaction.user_id == user_id)
    transaction = query.first()
    if not transaction:
        raise TransactionNotFound()
    return transaction


def list_transactions(
    db: Session,
    user_id: str | None = None,
    status: str | None = None,
    transaction_type: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Transaction], int]:
    """Newest-first page of transactions and the total matching count."""
    query = db.query(Transaction)
    if user_id is not None:
        query = query.filter(Transaction.user_id == user_id)
    if status:
        query = query.filter(Transaction.status == status)
    if transaction_type:
        query = query.filter(Transaction.type == transaction_type)

    total = query.count()
    transactions = (
        query.order_by(Transaction.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return transactions, total


def get_transaction_stats(db: Session) -> dict:
    """Counts and completed volume for the admin dashboard."""
    total = db.query(func.count(Transaction.id)).scalar() or 0
    pending = db.query(func.count(Transaction.id)).filter(Transaction.status == "pending").scalar() or 0
    completed_volume = (
        db.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(Transaction.status == "completed")
        .scalar()
    )
    return {
        "total_transactions": total,
        "pending_reviews": pending,
        "total_volume": to_money(completed_volume or 0),
    }
