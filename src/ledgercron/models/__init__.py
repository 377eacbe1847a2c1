"""SQLModel table exports."""

from .category import Category
from .recurring_rule import FREQUENCIES, TRANSACTION_TYPES, RecurringRule
from .transaction import Transaction
from .user import User
from .wallet import Wallet

__all__ = [
    "Category",
    "FREQUENCIES",
    "RecurringRule",
    "TRANSACTION_TYPES",
    "Transaction",
    "User",
    "Wallet",
]
