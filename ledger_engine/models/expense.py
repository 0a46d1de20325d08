"""Expense ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import BigInteger
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_engine.models.base import Base, TimestampMixin


class ExpenseType(str, enum.Enum):
    INVOICE = "INVOICE"
    RECEIPT = "RECEIPT"
    FUNDING_REQUEST = "FUNDING_REQUEST"
    GRANT = "GRANT"
    UNCLASSIFIED = "UNCLASSIFIED"
    CHARGE = "CHARGE"
    SETTLEMENT = "SETTLEMENT"


class Expense(TimestampMixin, Base):
    """Expense paid out of an account; linked to its ledger entries."""

    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_account_id", "account_id"),
        Index("ix_expenses_virtual_card_id", "virtual_card_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[ExpenseType] = mapped_column(
        SAEnum(ExpenseType, name="expense_type"), nullable=False, default=ExpenseType.UNCLASSIFIED
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    virtual_card_id: Mapped[str | None] = mapped_column(String(64))

    transactions = relationship("Transaction", back_populates="expense")


__all__ = ["Expense", "ExpenseType"]
