"""Account ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_engine.models.base import Base, TimestampMixin


class AccountType(str, enum.Enum):
    USER = "USER"
    ORGANIZATION = "ORGANIZATION"
    COLLECTIVE = "COLLECTIVE"
    EVENT = "EVENT"
    PROJECT = "PROJECT"
    FUND = "FUND"
    VENDOR = "VENDOR"


class Account(TimestampMixin, Base):
    """Any profile that can own or receive ledger entries."""

    __tablename__ = "accounts"
    __table_args__ = (
        Index("ix_accounts_parent_id", "parent_id"),
        Index("ix_accounts_incognito_of_id", "incognito_of_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AccountType] = mapped_column(SAEnum(AccountType, name="account_type"), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True
    )
    # Set on incognito proxies only; points at the real account being shielded.
    incognito_of_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=True
    )


__all__ = ["Account", "AccountType"]
