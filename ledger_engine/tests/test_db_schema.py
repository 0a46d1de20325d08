"""Schema integrity tests for the ledger models."""
from __future__ import annotations

from pathlib import Path

import pytest

sqlalchemy = pytest.importorskip("sqlalchemy")
alembic = pytest.importorskip("alembic")
alembic_command = pytest.importorskip("alembic.command")
alembic_config_module = pytest.importorskip("alembic.config")

sa = sqlalchemy
command = alembic_command
Config = alembic_config_module.Config


@pytest.fixture(scope="session")
def alembic_config(tmp_path_factory: pytest.TempPathFactory) -> Config:
    """Provide Alembic config bound to a temporary SQLite database."""

    project_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path_factory.mktemp("db") / "test.db"

    config = Config(str(project_root / "alembic.ini"))
    config.set_main_option("sqlalchemy.url", f"sqlite:///{db_path}")
    config.set_main_option("script_location", str(project_root / "migrations"))
    return config


@pytest.fixture(scope="session")
def migrated_engine(alembic_config: Config):
    """Run migrations against SQLite and yield an engine."""

    command.upgrade(alembic_config, "head")
    engine = sa.create_engine(alembic_config.get_main_option("sqlalchemy.url"))
    try:
        yield engine
    finally:
        engine.dispose()


def test_tables_exist(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    tables = set(inspector.get_table_names())
    expected = {"accounts", "payment_methods", "expenses", "orders", "transactions"}
    assert expected.issubset(tables)


def test_migration_matches_models(migrated_engine: sa.Engine) -> None:
    from ledger_engine.models import Base

    inspector = sa.inspect(migrated_engine)
    for table in Base.metadata.sorted_tables:
        migrated = {column["name"] for column in inspector.get_columns(table.name)}
        assert migrated == {column.name for column in table.columns}, table.name


def test_foreign_keys_enforced(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    fk_expectations = {
        "accounts": {"parent_id": "accounts", "incognito_of_id": "accounts"},
        "expenses": {"account_id": "accounts"},
        "orders": {"account_id": "accounts", "from_account_id": "accounts"},
        "transactions": {
            "account_id": "accounts",
            "from_account_id": "accounts",
            "host_account_id": "accounts",
            "gift_card_issuer_account_id": "accounts",
            "expense_id": "expenses",
            "order_id": "orders",
            "payment_method_id": "payment_methods",
        },
    }

    for table, expected in fk_expectations.items():
        foreign_keys = inspector.get_foreign_keys(table)
        fk_map = {tuple(fk["constrained_columns"]): fk["referred_table"] for fk in foreign_keys}
        for column, target in expected.items():
            assert (column,) in fk_map
            assert fk_map[(column,)] == target


def test_lookup_indexes(migrated_engine: sa.Engine) -> None:
    inspector = sa.inspect(migrated_engine)
    index_expectations = {
        "accounts": {"ix_accounts_parent_id", "ix_accounts_incognito_of_id"},
        "expenses": {"ix_expenses_account_id", "ix_expenses_virtual_card_id"},
        "transactions": {
            "ix_transactions_account_id",
            "ix_transactions_from_account_id",
            "ix_transactions_host_account_id",
            "ix_transactions_transaction_group",
            "ix_transactions_created_at",
        },
    }

    for table, index_names in index_expectations.items():
        indexes = {index["name"] for index in inspector.get_indexes(table)}
        assert index_names <= indexes
