"""Pagination and execution of ledger page queries."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import UnaryExpression, func, select
from sqlalchemy.orm import Session, selectinload

from ledger_engine.models import Transaction
from ledger_engine.services.errors import LimitExceededError
from ledger_engine.services.ledger_filters import CompiledFilters
from ledger_engine.services.permissions import Requester

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 10_000


@dataclass(slots=True, frozen=True)
class Pagination:
    limit: int
    offset: int

    @property
    def count_only(self) -> bool:
        return self.limit == 0


def normalize_pagination(
    limit: int | None,
    offset: int | None,
    *,
    requester: Requester,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> Pagination:
    """Default missing or negative values and enforce the page size ceiling."""
    if limit is None or limit < 0:
        limit = default_limit
    if offset is None or offset < 0:
        offset = 0
    if limit > max_limit and not requester.is_root:
        logger.info("rejected ledger page of %s entries (ceiling %s)", limit, max_limit)
        raise LimitExceededError(
            f"Cannot fetch more than {max_limit:,} transactions at the same time, please adjust the limit"
        )
    return Pagination(limit=limit, offset=offset)


def count_entries(session: Session, filters: CompiledFilters) -> int:
    statement = filters.apply(select(func.count(Transaction.id)).select_from(Transaction))
    return int(session.scalar(statement) or 0)


def fetch_page(
    session: Session,
    filters: CompiledFilters,
    order: Sequence[UnaryExpression],
    pagination: Pagination,
) -> tuple[int, list[Transaction]]:
    """Return ``(total_count, nodes)``; a zero limit skips the row fetch."""
    total_count = count_entries(session, filters)
    if pagination.count_only:
        return total_count, []

    statement = (
        filters.apply(select(Transaction))
        .options(selectinload(Transaction.payment_method))
        .order_by(*order)
        .offset(pagination.offset)
        .limit(pagination.limit)
    )
    nodes = list(session.scalars(statement))
    return total_count, nodes


__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "Pagination",
    "count_entries",
    "fetch_page",
    "normalize_pagination",
]
