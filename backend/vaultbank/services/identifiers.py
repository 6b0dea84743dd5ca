"""Random identifiers for accounts and transactions."""
import logging
import secrets
import string
from collections.abc import Callable
from datetime import date

from sqlalchemy.orm import Session

from vaultbank.config import get_settings
from vaultbank.exceptions import PersistenceFailure
from vaultbank.models.account import Account
from vaultbank.models.transaction import Transaction

logger = logging.getLogger(__name__)

REFERENCE_ALPHABET = string.digits + string.ascii_uppercase


def generate_unique(draw: Callable[[], str], exists: Callable[[str], bool], label: str) -> str:
    """Draw candidates until one is unused.

    Gives up with ``PersistenceFailure`` after ``identifier_max_attempts``
    collisions; the storage unique constraint remains the final guard.
    """
    max_attempts = get_settings().identifier_max_attempts
    for attempt in range(1, max_attempts + 1):
        candidate = draw()
        if not exists(candidate):
            return candidate
        logger.debug(f"{label} collision on attempt {attempt}")

    logger.error(f"Could not generate a unique {label} after {max_attempts} attempts")
    raise PersistenceFailure(f"Could not generate a unique {label}")


def random_account_number() -> str:
    """Uniform 10-digit number without a leading zero."""
    return str(1_000_000_000 + secrets.randbelow(9_000_000_000))


def random_reference(today: date | None = None) -> str:
    today = today or date.today()
    suffix = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(4))
    return f"TXN-{today:%y%m%d}-{suffix}"


def generate_account_number(db: Session) -> str:
    return generate_unique(
        random_account_number,
        lambda number: db.query(Account.id).filter(Account.account_number == number).first() is not None,
        "account number",
    )


def generate_reference(db: Session) -> str:
    return generate_unique(
        random_reference,
        lambda reference: db.query(Transaction.id).filter(Transaction.reference == reference).first() is not None,
        "transaction reference",
    )
