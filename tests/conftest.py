from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path
from uuid import uuid4

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENABLE_TRACING", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from ledger_engine.api.deps import get_db_session
from ledger_engine.api.routes.auth import issue_access_token
from ledger_engine.main import app
from ledger_engine.models import (
    Account,
    AccountType,
    Base,
    Expense,
    ExpenseType,
    Order,
    PaymentMethod,
    PaymentMethodType,
    Transaction,
    TransactionKind,
    TransactionType,
)
from ledger_engine.services.permissions import Requester

DATABASE_URL = "sqlite+pysqlite:///:memory:"


engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)


class LedgerFactory:
    """Creates accounts and ledger entries for a test session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def account(
        self,
        slug: str,
        *,
        type: AccountType = AccountType.COLLECTIVE,
        parent: Account | None = None,
        incognito_of: Account | None = None,
        name: str | None = None,
    ) -> Account:
        account = Account(
            slug=slug,
            name=name or slug.replace("-", " ").title(),
            type=type,
            parent_id=parent.id if parent else None,
            incognito_of_id=incognito_of.id if incognito_of else None,
        )
        self._session.add(account)
        self._session.flush()
        return account

    def payment_method(self, type: PaymentMethodType, account: Account | None = None) -> PaymentMethod:
        method = PaymentMethod(type=type, account_id=account.id if account else None)
        self._session.add(method)
        self._session.flush()
        return method

    def expense(
        self,
        account: Account,
        *,
        type: ExpenseType = ExpenseType.INVOICE,
        virtual_card_id: str | None = None,
    ) -> Expense:
        expense = Expense(
            account_id=account.id,
            type=type,
            description=f"{type.value.title()} for {account.slug}",
            amount=1_000,
            virtual_card_id=virtual_card_id,
        )
        self._session.add(expense)
        self._session.flush()
        return expense

    def order(self, from_account: Account, account: Account, *, total_amount: int = 1_000) -> Order:
        order = Order(from_account_id=from_account.id, account_id=account.id, total_amount=total_amount, currency="USD")
        self._session.add(order)
        self._session.flush()
        return order

    def entry(
        self,
        *,
        account: Account,
        from_account: Account,
        type: TransactionType = TransactionType.CREDIT,
        kind: TransactionKind | None = TransactionKind.CONTRIBUTION,
        amount: int = 1_000,
        group: str | None = None,
        created_at: datetime = BASE_TIME,
        **extra: object,
    ) -> Transaction:
        signed = -abs(amount) if type == TransactionType.DEBIT else abs(amount)
        transaction = Transaction(
            account_id=account.id,
            from_account_id=from_account.id,
            type=type,
            kind=kind,
            amount=signed,
            currency="USD",
            transaction_group=group or str(uuid4()),
            created_at=created_at,
            **extra,
        )
        self._session.add(transaction)
        self._session.flush()
        return transaction

    def movement(
        self,
        *,
        payer: Account,
        payee: Account,
        kind: TransactionKind | None = TransactionKind.CONTRIBUTION,
        amount: int = 1_000,
        group: str | None = None,
        created_at: datetime = BASE_TIME,
        **extra: object,
    ) -> tuple[Transaction, Transaction]:
        """Return the ``(debit, credit)`` legs of a payment from ``payer`` to ``payee``."""
        group = group or str(uuid4())
        debit = self.entry(
            account=payer,
            from_account=payee,
            type=TransactionType.DEBIT,
            kind=kind,
            amount=amount,
            group=group,
            created_at=created_at,
            **extra,
        )
        credit = self.entry(
            account=payee,
            from_account=payer,
            type=TransactionType.CREDIT,
            kind=kind,
            amount=amount,
            group=group,
            created_at=created_at,
            **extra,
        )
        return debit, credit


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session
    session.close()


@pytest.fixture()
def ledger(db_session: Session) -> LedgerFactory:
    return LedgerFactory(db_session)


@pytest.fixture()
def client(db_session: Session) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)


@pytest.fixture()
def auth_headers() -> Callable[[Requester], dict[str, str]]:
    def _headers(requester: Requester) -> dict[str, str]:
        token = issue_access_token(requester)
        return {"Authorization": f"Bearer {token}"}

    return _headers
