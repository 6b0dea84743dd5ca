"""SQLAlchemy models package."""
from vaultbank.models.user import User
from vaultbank.models.account import Account
from vaultbank.models.transaction import Transaction
from vaultbank.models.auth import RefreshSession, ResetToken
from vaultbank.models.admin import Admin

__all__ = [
    "User",
    "Account",
    "Transaction",
    "RefreshSession",
    "ResetToken",
    "Admin",
]
