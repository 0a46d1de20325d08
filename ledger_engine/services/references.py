"""Resolution of account, expense and order references."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_engine.models import Account, AccountType, Expense, Order
from ledger_engine.schemas.references import AccountReference, ExpenseReference, OrderReference
from ledger_engine.services.errors import AccountNotFoundError, ExpenseNotFoundError, OrderNotFoundError

logger = logging.getLogger(__name__)


class AccountResolver(Protocol):
    """Turns account references into account rows."""

    def fetch(self, reference: AccountReference) -> Account:
        """Return the referenced account or raise ``AccountNotFoundError``."""

    def fetch_many(self, references: Sequence[AccountReference]) -> list[Account]:
        """Return every referenced account, raising if any is missing."""


class AccountRelationships(Protocol):
    """Provides the accounts linked to a given account."""

    def children_ids(self, account: Account, *, exclude_types: Iterable[AccountType] = ()) -> list[int]:
        """Return ids of the account's children."""

    def incognito_profile(self, account: Account) -> Account | None:
        """Return the incognito proxy shielding ``account``, if any."""


class SQLAccountResolver:
    """Account resolver backed by the SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def fetch(self, reference: AccountReference) -> Account:
        account = self._lookup(reference)
        if account is None:
            logger.info("account reference %s did not resolve", reference.describe())
            raise AccountNotFoundError(f"Account {reference.describe()} was not found")
        return account

    def fetch_many(self, references: Sequence[AccountReference]) -> list[Account]:
        return [self.fetch(reference) for reference in references]

    def _lookup(self, reference: AccountReference) -> Account | None:
        if reference.legacy_id is not None:
            return self._session.get(Account, reference.legacy_id)
        statement = select(Account).where(Account.slug == reference.slug)
        return self._session.scalars(statement).one_or_none()


class SQLAccountRelationships:
    """Relationship provider backed by the SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def children_ids(self, account: Account, *, exclude_types: Iterable[AccountType] = ()) -> list[int]:
        statement = select(Account.id).where(Account.parent_id == account.id).order_by(Account.id)
        excluded = list(exclude_types)
        if excluded:
            statement = statement.where(Account.type.not_in(excluded))
        return list(self._session.scalars(statement))

    def incognito_profile(self, account: Account) -> Account | None:
        statement = select(Account).where(Account.incognito_of_id == account.id).order_by(Account.id).limit(1)
        return self._session.scalars(statement).first()


def resolve_expense_id(session: Session, reference: ExpenseReference) -> int:
    if session.get(Expense, reference.legacy_id) is None:
        raise ExpenseNotFoundError(f"Expense #{reference.legacy_id} was not found")
    return reference.legacy_id


def resolve_order_id(session: Session, reference: OrderReference) -> int:
    if session.get(Order, reference.legacy_id) is None:
        raise OrderNotFoundError(f"Order #{reference.legacy_id} was not found")
    return reference.legacy_id


__all__ = [
    "AccountRelationships",
    "AccountResolver",
    "SQLAccountRelationships",
    "SQLAccountResolver",
    "resolve_expense_id",
    "resolve_order_id",
]
