"""Seed script for a small demo ledger."""
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_engine.core.logging import configure_logging
from ledger_engine.db.session import engine, get_session
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

logger = logging.getLogger(__name__)

DEMO_ACCOUNTS = [
    ("demo-host", "Demo Fiscal Host", AccountType.ORGANIZATION),
    ("demo-collective", "Demo Collective", AccountType.COLLECTIVE),
    ("demo-backer", "Demo Backer", AccountType.USER),
    ("demo-supplier", "Demo Supplier", AccountType.VENDOR),
]


def _account(session: Session, slug: str, name: str, account_type: AccountType) -> Account:
    account = session.scalars(select(Account).where(Account.slug == slug)).one_or_none()
    if account is not None:
        logger.info("Account %s already exists", slug)
        return account
    account = Account(slug=slug, name=name, type=account_type)
    session.add(account)
    session.flush()
    logger.info("Created account %s", slug)
    return account


def _legs(
    *,
    kind: TransactionKind,
    amount: int,
    payer: Account,
    payee: Account,
    group: str,
    created_at: datetime,
    **extra: object,
) -> list[Transaction]:
    """Both sides of one movement: the payer's DEBIT and the payee's CREDIT."""
    common = {"kind": kind, "currency": "USD", "transaction_group": group, "created_at": created_at, **extra}
    return [
        Transaction(type=TransactionType.DEBIT, amount=-amount, account_id=payer.id, from_account_id=payee.id, **common),
        Transaction(type=TransactionType.CREDIT, amount=amount, account_id=payee.id, from_account_id=payer.id, **common),
    ]


def seed(session: Session) -> None:
    """Seed demo accounts, one contribution with its fees, and one paid expense."""

    accounts = {slug: _account(session, slug, name, kind) for slug, name, kind in DEMO_ACCOUNTS}
    host = accounts["demo-host"]
    collective = accounts["demo-collective"]
    backer = accounts["demo-backer"]
    supplier = accounts["demo-supplier"]
    supplier.parent_id = host.id

    if session.scalars(select(Transaction).limit(1)).first() is not None:
        logger.info("Ledger already has entries, skipping transactions")
        return

    card = PaymentMethod(type=PaymentMethodType.CREDITCARD, name="4242", account_id=backer.id)
    order = Order(
        from_account_id=backer.id,
        account_id=collective.id,
        total_amount=5_000,
        currency="USD",
        description="Monthly contribution",
    )
    session.add_all([card, order])
    session.flush()

    now = datetime.now(UTC)
    contribution_group = str(uuid4())
    session.add_all(
        [
            *_legs(
                kind=TransactionKind.CONTRIBUTION,
                amount=5_000,
                payer=backer,
                payee=collective,
                group=contribution_group,
                created_at=now,
                order_id=order.id,
                payment_method_id=card.id,
                host_account_id=host.id,
                description="Monthly contribution",
            ),
            *_legs(
                kind=TransactionKind.HOST_FEE,
                amount=500,
                payer=collective,
                payee=host,
                group=contribution_group,
                created_at=now,
                order_id=order.id,
                host_account_id=host.id,
                description="Host fee",
            ),
            *_legs(
                kind=TransactionKind.PAYMENT_PROCESSOR_FEE,
                amount=175,
                payer=collective,
                payee=host,
                group=contribution_group,
                created_at=now,
                order_id=order.id,
                payment_method_id=card.id,
                host_account_id=host.id,
                description="Card processing fee",
            ),
        ]
    )

    expense = Expense(
        account_id=collective.id,
        type=ExpenseType.INVOICE,
        description="Venue rental",
        amount=1_200,
    )
    session.add(expense)
    session.flush()
    session.add_all(
        _legs(
            kind=TransactionKind.EXPENSE,
            amount=1_200,
            payer=collective,
            payee=supplier,
            group=str(uuid4()),
            created_at=now + timedelta(minutes=5),
            expense_id=expense.id,
            host_account_id=host.id,
            description="Venue rental",
        )
    )
    logger.info("Seeded demo ledger entries")


def main() -> None:
    configure_logging()
    Base.metadata.create_all(bind=engine)
    with get_session() as session:
        seed(session)


if __name__ == "__main__":
    main()
