"""Initial schema for ledger entities."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op

revision = "20240718_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None

ACCOUNT_TYPES = ("USER", "ORGANIZATION", "COLLECTIVE", "EVENT", "PROJECT", "FUND", "VENDOR")
EXPENSE_TYPES = ("INVOICE", "RECEIPT", "FUNDING_REQUEST", "GRANT", "UNCLASSIFIED", "CHARGE", "SETTLEMENT")
PAYMENT_METHOD_TYPES = (
    "ALIPAY",
    "BACS_DEBIT",
    "BANCONTACT",
    "COLLECTIVE",
    "CREDITCARD",
    "CRYPTO",
    "GIFTCARD",
    "HOST",
    "MANUAL",
    "PAYMENT",
    "PAYMENT_INTENT",
    "PREPAID",
    "SEPA_DEBIT",
    "US_BANK_ACCOUNT",
)
TRANSACTION_KINDS = (
    "ADDED_FUNDS",
    "BALANCE_TRANSFER",
    "CONTRIBUTION",
    "EXPENSE",
    "HOST_FEE",
    "HOST_FEE_SHARE",
    "HOST_FEE_SHARE_DEBT",
    "PAYMENT_PROCESSOR_COVER",
    "PAYMENT_PROCESSOR_DISPUTE_FEE",
    "PAYMENT_PROCESSOR_FEE",
    "PLATFORM_FEE",
    "PLATFORM_TIP",
    "PLATFORM_TIP_DEBT",
    "PREPAID_PAYMENT_METHOD",
    "TAX",
)


def _drop_enum(name: str) -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:  # noqa: D401
    """Create ledger tables and their lookup indexes."""

    account_type = sa.Enum(*ACCOUNT_TYPES, name="account_type")
    expense_type = sa.Enum(*EXPENSE_TYPES, name="expense_type")
    payment_method_type = sa.Enum(*PAYMENT_METHOD_TYPES, name="payment_method_type")
    transaction_type = sa.Enum("DEBIT", "CREDIT", name="transaction_type")
    transaction_kind = sa.Enum(*TRANSACTION_KINDS, name="transaction_kind")

    for enum_type in (account_type, expense_type, payment_method_type, transaction_type, transaction_kind):
        enum_type.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(length=255), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", account_type, nullable=False),
        sa.Column("parent_id", sa.Integer()),
        sa.Column("incognito_of_id", sa.Integer()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["parent_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["incognito_of_id"], ["accounts.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_accounts_parent_id", "accounts", ["parent_id"])
    op.create_index("ix_accounts_incognito_of_id", "accounts", ["incognito_of_id"])

    op.create_table(
        "payment_methods",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("type", payment_method_type, nullable=False),
        sa.Column("name", sa.String(length=255)),
        sa.Column("account_id", sa.Integer()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("type", expense_type, nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("virtual_card_id", sa.String(length=64)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_expenses_account_id", "expenses", ["account_id"])
    op.create_index("ix_expenses_virtual_card_id", "expenses", ["virtual_card_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("from_account_id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("description", sa.String(length=255)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["from_account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("kind", transaction_kind),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("transaction_group", sa.String(length=36), nullable=False),
        sa.Column("is_debt", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("from_account_id", sa.Integer(), nullable=False),
        sa.Column("host_account_id", sa.Integer()),
        sa.Column("gift_card_issuer_account_id", sa.Integer()),
        sa.Column("expense_id", sa.Integer()),
        sa.Column("order_id", sa.Integer()),
        sa.Column("payment_method_id", sa.Integer()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["from_account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["host_account_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["gift_card_issuer_account_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["expense_id"], ["expenses.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["payment_method_id"], ["payment_methods.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_transactions_account_id", "transactions", ["account_id"])
    op.create_index("ix_transactions_from_account_id", "transactions", ["from_account_id"])
    op.create_index("ix_transactions_host_account_id", "transactions", ["host_account_id"])
    op.create_index("ix_transactions_transaction_group", "transactions", ["transaction_group"])
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"])


def downgrade() -> None:  # noqa: D401
    """Drop all ledger tables."""

    for index_name in (
        "ix_transactions_created_at",
        "ix_transactions_transaction_group",
        "ix_transactions_host_account_id",
        "ix_transactions_from_account_id",
        "ix_transactions_account_id",
    ):
        op.drop_index(index_name, table_name="transactions")
    op.drop_table("transactions")

    op.drop_table("orders")

    op.drop_index("ix_expenses_virtual_card_id", table_name="expenses")
    op.drop_index("ix_expenses_account_id", table_name="expenses")
    op.drop_table("expenses")

    op.drop_table("payment_methods")

    op.drop_index("ix_accounts_incognito_of_id", table_name="accounts")
    op.drop_index("ix_accounts_parent_id", table_name="accounts")
    op.drop_table("accounts")

    for enum_name in [
        "transaction_kind",
        "transaction_type",
        "payment_method_type",
        "expense_type",
        "account_type",
    ]:
        _drop_enum(enum_name)
