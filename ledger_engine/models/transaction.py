"""Ledger transaction ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import BigInteger, Boolean
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_engine.models.base import Base, TimestampMixin
from ledger_engine.models.payment_method import PaymentMethodType


class TransactionType(str, enum.Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class TransactionKind(str, enum.Enum):
    ADDED_FUNDS = "ADDED_FUNDS"
    BALANCE_TRANSFER = "BALANCE_TRANSFER"
    CONTRIBUTION = "CONTRIBUTION"
    EXPENSE = "EXPENSE"
    HOST_FEE = "HOST_FEE"
    HOST_FEE_SHARE = "HOST_FEE_SHARE"
    HOST_FEE_SHARE_DEBT = "HOST_FEE_SHARE_DEBT"
    PAYMENT_PROCESSOR_COVER = "PAYMENT_PROCESSOR_COVER"
    PAYMENT_PROCESSOR_DISPUTE_FEE = "PAYMENT_PROCESSOR_DISPUTE_FEE"
    PAYMENT_PROCESSOR_FEE = "PAYMENT_PROCESSOR_FEE"
    PLATFORM_FEE = "PLATFORM_FEE"
    PLATFORM_TIP = "PLATFORM_TIP"
    PLATFORM_TIP_DEBT = "PLATFORM_TIP_DEBT"
    PREPAID_PAYMENT_METHOD = "PREPAID_PAYMENT_METHOD"
    TAX = "TAX"


class Transaction(TimestampMixin, Base):
    """One accounting leg (debit or credit) of a ledger event."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_account_id", "account_id"),
        Index("ix_transactions_from_account_id", "from_account_id"),
        Index("ix_transactions_host_account_id", "host_account_id"),
        Index("ix_transactions_transaction_group", "transaction_group"),
        Index("ix_transactions_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[TransactionKind | None] = mapped_column(
        SAEnum(TransactionKind, name="transaction_kind"), nullable=True
    )
    type: Mapped[TransactionType] = mapped_column(SAEnum(TransactionType, name="transaction_type"), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    description: Mapped[str | None] = mapped_column(String(255))
    transaction_group: Mapped[str] = mapped_column(String(36), nullable=False)
    is_debt: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    from_account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    host_account_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    gift_card_issuer_account_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    expense_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("expenses.id", ondelete="SET NULL"), nullable=True
    )
    order_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("orders.id", ondelete="SET NULL"), nullable=True
    )
    payment_method_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("payment_methods.id", ondelete="SET NULL"), nullable=True
    )

    expense = relationship("Expense", back_populates="transactions")
    order = relationship("Order", back_populates="transactions")
    payment_method = relationship("PaymentMethod", back_populates="transactions")

    @property
    def payment_method_type(self) -> PaymentMethodType | None:
        if self.payment_method is None:
            return None
        return self.payment_method.type


__all__ = ["Transaction", "TransactionKind", "TransactionType"]
