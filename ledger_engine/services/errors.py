"""Errors raised by the ledger query services."""
from __future__ import annotations


class LedgerQueryError(RuntimeError):
    """Base class for ledger query errors."""


class ReferenceNotFoundError(LedgerQueryError):
    """Raised when a referenced entity does not exist."""


class AccountNotFoundError(ReferenceNotFoundError):
    """Raised when an account reference cannot be resolved."""


class ExpenseNotFoundError(ReferenceNotFoundError):
    """Raised when an expense reference cannot be resolved."""


class OrderNotFoundError(ReferenceNotFoundError):
    """Raised when an order reference cannot be resolved."""


class LimitExceededError(LedgerQueryError):
    """Raised when a page size above the allowed ceiling is requested."""


__all__ = [
    "AccountNotFoundError",
    "ExpenseNotFoundError",
    "LedgerQueryError",
    "LimitExceededError",
    "OrderNotFoundError",
    "ReferenceNotFoundError",
]
