"""Account provisioning and account-level operations."""
import logging
from decimal import Decimal

from sqlalchemy import case
from sqlalchemy.orm import Session

from vaultbank.database import unit_of_work
from vaultbank.exceptions import AccountNotFound, ValidationError
from vaultbank.models.account import Account
from vaultbank.services.identifiers import generate_account_number

logger = logging.getLogger(__name__)

# Order matters: the first entry becomes the primary account.
DEFAULT_ACCOUNTS = (
    {
        "type": "checking",
        "balance": Decimal("0.00"),
        "is_primary": True,
        "overdraft_protection": True,
        "minimum_balance": Decimal("25.00"),
    },
    {
        "type": "savings",
        "balance": Decimal("0.00"),
        "interest_rate": Decimal("0.50"),
        "minimum_balance": Decimal("100.00"),
    },
    {
        "type": "credit_card",
        "balance": Decimal("0.00"),
        "credit_limit": Decimal("5000.00"),
        "interest_rate": Decimal("18.99"),
    },
)

_TYPE_ORDER = case(
    {"checking": 0, "savings": 1, "credit_card": 2},
    value=Account.type,
    else_=3,
)


def create_default_accounts(db: Session, user_id: str) -> list[Account]:
    """Create checking, savings and credit-card accounts for a new user.

    Accounts are flushed as they are created so each account-number draw sees
    the previous ones. The caller owns the commit.
    """
    accounts = []
    for template in DEFAULT_ACCOUNTS:
        account = Account(
            user_id=user_id,
            account_number=generate_account_number(db),
            **template,
        )
        db.add(account)
        db.flush()
        accounts.append(account)

    logger.info(
        f"Provisioned {len(accounts)} default accounts",
        extra={"user_id": user_id, "action": "accounts.provision"},
    )
    return accounts


def get_user_accounts(db: Session, user_id: str, include_inactive: bool = False) -> list[Account]:
    """User's accounts, primary first, then checking, savings, credit card."""
    query = db.query(Account).filter(Account.user_id == user_id)
    if not include_inactive:
        query = query.filter(Account.is_active.is_(True))
    return query.order_by(Account.is_primary.desc(), _TYPE_ORDER).all()


def get_user_account(db: Session, user_id: str, account_id: str) -> Account:
    account = db.query(Account).filter(
        Account.id == account_id,
        Account.user_id == user_id,
    ).first()
    if not account:
        raise AccountNotFound()
    return account


def get_checking_account(db: Session, user_id: str) -> Account:
    account = db.query(Account).filter(
        Account.user_id == user_id,
        Account.type == "checking",
    ).first()
    if not account:
        raise AccountNotFound("Checking account not found")
    return account


def set_primary_account(db: Session, user_id: str, account_id: str) -> Account:
    """Make one account the user's primary account.

    Siblings are cleared with a single update scoped by user before the
    target is flagged, and both writes commit together.
    """
    account = get_user_account(db, user_id, account_id)
    if not account.is_active:
        raise ValidationError("Inactive accounts cannot be primary")
    if account.is_primary:
        return account

    with unit_of_work(db):
        db.query(Account).filter(
            Account.user_id == user_id,
            Account.id != account_id,
            Account.is_primary.is_(True),
        ).update({Account.is_primary: False}, synchronize_session="fetch")
        db.query(Account).filter(Account.id == account_id).update(
            {Account.is_primary: True},
            synchronize_session="fetch",
        )

    db.refresh(account)
    logger.info(
        f"Primary account set to {account.masked_number}",
        extra={"user_id": user_id, "action": "accounts.set_primary", "resource": account_id},
    )
    return account


def deactivate_account(db: Session, user_id: str, account_id: str) -> Account:
    """Soft-deactivate an account. Accounts are never deleted."""
    account = get_user_account(db, user_id, account_id)
    if account.is_primary:
        raise ValidationError("Primary account cannot be deactivated; choose another primary account first")
    if not account.is_active:
        return account

    with unit_of_work(db):
        account.is_active = False

    logger.info(
        f"Deactivated account {account.masked_number}",
        extra={"user_id": user_id, "action": "accounts.deactivate", "resource": account_id},
    )
    return account


def get_accounts_summary(db: Session, user_id: str) -> dict:
    """Totals across the user's active accounts plus a per-account view."""
    accounts = get_user_accounts(db, user_id)

    total_balance = Decimal("0.00")
    total_debt = Decimal("0.00")
    views = []
    for account in accounts:
        if account.type == "credit_card":
            total_debt += abs(account.balance)
        else:
            total_balance += account.balance

        view = {
            "id": account.id,
            "type": account.type,
            "account_number": account.masked_number,
            "display_name": account.display_name,
            "balance": account.balance,
            "is_primary": account.is_primary,
            "is_active": account.is_active,
        }
        if account.type == "credit_card":
            view.update(
                credit_limit=account.credit_limit,
                available_credit=account.available_credit,
                utilization=account.credit_utilization,
            )
        views.append(view)

    return {
        "total_accounts": len(accounts),
        "total_balance": total_balance,
        "total_debt": total_debt,
        "accounts": views,
    }
