"""ORM models package."""
from .account import Account, AccountType
from .base import Base, TimestampMixin
from .expense import Expense, ExpenseType
from .order import Order
from .payment_method import PaymentMethod, PaymentMethodType
from .transaction import Transaction, TransactionKind, TransactionType

__all__ = [
    "Account",
    "AccountType",
    "Base",
    "Expense",
    "ExpenseType",
    "Order",
    "PaymentMethod",
    "PaymentMethodType",
    "TimestampMixin",
    "Transaction",
    "TransactionKind",
    "TransactionType",
]
