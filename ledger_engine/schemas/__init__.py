"""Pydantic schemas package."""

from .references import AccountReference, ExpenseReference, OrderReference, VirtualCardReference
from .transaction import (
    ChronologicalOrder,
    Facet,
    OrderDirection,
    QueryRequest,
    TransactionCollectionResponse,
    TransactionRead,
)

__all__ = [
    "AccountReference",
    "ChronologicalOrder",
    "ExpenseReference",
    "Facet",
    "OrderDirection",
    "OrderReference",
    "QueryRequest",
    "TransactionCollectionResponse",
    "TransactionRead",
    "VirtualCardReference",
]
