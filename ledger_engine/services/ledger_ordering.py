"""Deterministic ordering that keeps the legs of one ledger event together.

Entries are ordered by four keys, all in the requested direction:

1. ``created_at`` rounded to a time window (10 seconds by default), so legs
   written a few microseconds apart share the same primary key. A group whose
   legs straddle a window boundary can still be split.
2. ``transaction_group``, keeping the legs of one event contiguous.
3. A rank over ``kind`` placing the main entry before its fees and tips.
4. A rank over ``type`` placing debits before credits.

There is no id tie-break.
"""
from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import ColumnElement, Float, UnaryExpression, case, func
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

from ledger_engine.models import Transaction, TransactionKind, TransactionType
from ledger_engine.schemas.transaction import OrderDirection

DEFAULT_GROUPING_WINDOW_SECONDS = 10

KIND_PRIORITY: dict[TransactionKind, int] = {
    TransactionKind.CONTRIBUTION: 1,
    TransactionKind.EXPENSE: 1,
    TransactionKind.ADDED_FUNDS: 1,
    TransactionKind.BALANCE_TRANSFER: 1,
    TransactionKind.PREPAID_PAYMENT_METHOD: 1,
    TransactionKind.PLATFORM_TIP: 2,
    TransactionKind.PLATFORM_TIP_DEBT: 3,
    TransactionKind.PAYMENT_PROCESSOR_FEE: 4,
    TransactionKind.PAYMENT_PROCESSOR_COVER: 5,
    TransactionKind.HOST_FEE: 6,
    TransactionKind.HOST_FEE_SHARE: 7,
    TransactionKind.HOST_FEE_SHARE_DEBT: 8,
}
DEFAULT_KIND_PRIORITY = 9

TYPE_PRIORITY: dict[TransactionType, int] = {
    TransactionType.DEBIT: 1,
    TransactionType.CREDIT: 2,
}


class epoch_seconds(FunctionElement):
    """Seconds since the Unix epoch for a timestamp column."""

    type = Float()
    name = "epoch_seconds"
    inherit_cache = True


@compiles(epoch_seconds)
def _epoch_seconds_default(element: epoch_seconds, compiler: Any, **kw: Any) -> str:
    return f"EXTRACT(EPOCH FROM {compiler.process(element.clauses, **kw)})"


@compiles(epoch_seconds, "sqlite")
def _epoch_seconds_sqlite(element: epoch_seconds, compiler: Any, **kw: Any) -> str:
    return f"((julianday({compiler.process(element.clauses, **kw)}) - 2440587.5) * 86400.0)"


def _check_window(window_seconds: int) -> None:
    if window_seconds <= 0:
        raise ValueError("grouping window must be a positive number of seconds")


def time_bucket(column: Any, window_seconds: int = DEFAULT_GROUPING_WINDOW_SECONDS) -> ColumnElement:
    _check_window(window_seconds)
    return func.round(epoch_seconds(column) / window_seconds)


def kind_rank(column: Any = Transaction.kind) -> ColumnElement[int]:
    ranks: dict[int, list[TransactionKind]] = defaultdict(list)
    for kind, rank in KIND_PRIORITY.items():
        ranks[rank].append(kind)
    whens = [(column.in_(kinds), rank) for rank, kinds in sorted(ranks.items())]
    return case(*whens, else_=DEFAULT_KIND_PRIORITY)


def type_rank(column: Any = Transaction.type) -> ColumnElement[int]:
    return case(
        (column == TransactionType.DEBIT, TYPE_PRIORITY[TransactionType.DEBIT]),
        else_=TYPE_PRIORITY[TransactionType.CREDIT],
    )


def grouping_order(
    direction: OrderDirection = OrderDirection.DESC,
    *,
    window_seconds: int = DEFAULT_GROUPING_WINDOW_SECONDS,
) -> list[UnaryExpression]:
    """Return the ORDER BY expressions for a ledger page."""
    keys = [
        time_bucket(Transaction.created_at, window_seconds),
        Transaction.transaction_group,
        kind_rank(Transaction.kind),
        type_rank(Transaction.type),
    ]
    if direction == OrderDirection.ASC:
        return [key.asc() for key in keys]
    return [key.desc() for key in keys]


def _epoch(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def grouping_sort_key(
    entry: Transaction,
    *,
    window_seconds: int = DEFAULT_GROUPING_WINDOW_SECONDS,
) -> tuple[int, str, int, int]:
    """Same composite key as :func:`grouping_order`, computed in Python.

    Naive timestamps are read as UTC. Sort with ``reverse=True`` for the
    descending order.
    """
    _check_window(window_seconds)
    bucket = math.floor(_epoch(entry.created_at) / window_seconds + 0.5)
    kind = KIND_PRIORITY.get(entry.kind, DEFAULT_KIND_PRIORITY) if entry.kind else DEFAULT_KIND_PRIORITY
    return (bucket, entry.transaction_group, kind, TYPE_PRIORITY[entry.type])


__all__ = [
    "DEFAULT_GROUPING_WINDOW_SECONDS",
    "DEFAULT_KIND_PRIORITY",
    "KIND_PRIORITY",
    "TYPE_PRIORITY",
    "epoch_seconds",
    "grouping_order",
    "grouping_sort_key",
    "kind_rank",
    "time_bucket",
    "type_rank",
]
