"""Payment method ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_engine.models.base import Base, TimestampMixin


class PaymentMethodType(str, enum.Enum):
    ALIPAY = "ALIPAY"
    BACS_DEBIT = "BACS_DEBIT"
    BANCONTACT = "BANCONTACT"
    COLLECTIVE = "COLLECTIVE"
    CREDITCARD = "CREDITCARD"
    CRYPTO = "CRYPTO"
    GIFTCARD = "GIFTCARD"
    HOST = "HOST"
    MANUAL = "MANUAL"
    PAYMENT = "PAYMENT"
    PAYMENT_INTENT = "PAYMENT_INTENT"
    PREPAID = "PREPAID"
    SEPA_DEBIT = "SEPA_DEBIT"
    US_BANK_ACCOUNT = "US_BANK_ACCOUNT"


class PaymentMethod(TimestampMixin, Base):
    """Funding source used to pay for a ledger event."""

    __tablename__ = "payment_methods"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[PaymentMethodType] = mapped_column(
        SAEnum(PaymentMethodType, name="payment_method_type"), nullable=False
    )
    name: Mapped[str | None] = mapped_column(String(255))
    account_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True
    )

    transactions = relationship("Transaction", back_populates="payment_method")


__all__ = ["PaymentMethod", "PaymentMethodType"]
