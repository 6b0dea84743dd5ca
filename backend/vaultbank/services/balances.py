"""Balance-mutation rules.

A debit lowers the signed balance and a credit raises it, for every account
type. On a credit card a lower balance means more debt.
"""
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from sqlalchemy.orm import Session

from vaultbank.clock import utcnow_iso
from vaultbank.models.account import Account
from vaultbank.models.transaction import TRANSACTION_TYPES, Transaction

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

Direction = Literal["apply", "reverse"]


@dataclass(frozen=True)
class BalanceChange:
    old_balance: Decimal
    new_balance: Decimal
    change: Decimal


def to_money(value) -> Decimal:
    """Coerce to a Decimal rounded half-up to cents."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def signed_effect(transaction_type: str, amount: Decimal, direction: Direction = "apply") -> Decimal:
    if transaction_type not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown transaction type: {transaction_type}")
    if direction not in ("apply", "reverse"):
        raise ValueError(f"Unknown direction: {direction}")

    effect = amount if transaction_type == "credit" else -amount
    return -effect if direction == "reverse" else effect


def can_process_transaction(account: Account, amount: Decimal) -> bool:
    """Whether a balance change of ``amount`` is admissible.

    Credit cards compare a charge against available credit. Deposit accounts
    require the resulting balance to stay at or above the minimum balance;
    pass a negative ``amount`` for a debit.
    """
    amount = Decimal(str(amount))
    if account.type == "credit_card":
        return amount <= account.credit_limit + account.balance
    return account.balance + amount >= account.minimum_balance


def apply_transaction_effect(
    db: Session,
    account: Account,
    transaction: Transaction,
    direction: Direction = "apply",
) -> BalanceChange:
    """Move ``account.balance`` by the transaction's signed amount.

    Admissibility is not re-checked here. The update is issued as a relative
    ``balance = balance + delta`` so a concurrent writer's change is kept.
    Nothing is committed.
    """
    delta = signed_effect(transaction.type, transaction.amount, direction)
    old_balance = account.balance

    db.query(Account).filter(Account.id == account.id).update(
        {
            Account.balance: Account.balance + delta,
            Account.last_transaction_at: utcnow_iso(),
        },
        synchronize_session=False,
    )
    db.refresh(account)

    logger.info(
        f"{direction} {transaction.reference} on account {account.masked_number}: "
        f"{old_balance} -> {account.balance}",
        extra={"user_id": account.user_id, "action": f"balance.{direction}", "resource": account.id},
    )
    return BalanceChange(old_balance=old_balance, new_balance=account.balance, change=delta)
