"""Distinct-value facets over a filtered ledger set."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_engine.models import PaymentMethod, PaymentMethodType, Transaction, TransactionKind
from ledger_engine.obs.metrics import LEDGER_FACET_COUNTER
from ledger_engine.services.ledger_filters import CompiledFilters, JoinSpec


def fetch_kinds(session: Session, filters: CompiledFilters) -> list[TransactionKind]:
    """Distinct kinds present under ``filters``."""
    LEDGER_FACET_COUNTER.labels(facet="kinds").inc()
    statement = filters.apply(select(Transaction.kind).select_from(Transaction))
    statement = statement.where(Transaction.kind.is_not(None)).group_by(Transaction.kind)
    return [kind for kind in session.scalars(statement) if kind is not None]


def fetch_payment_method_types(session: Session, filters: CompiledFilters) -> list[PaymentMethodType | None]:
    """Distinct payment method types present under ``filters``.

    ``None`` stands for entries without a payment method.
    """
    LEDGER_FACET_COUNTER.labels(facet="paymentMethodTypes").inc()
    joined = filters.with_join(JoinSpec("payment_method"))
    statement = joined.apply(select(PaymentMethod.type).select_from(Transaction))
    statement = statement.group_by(PaymentMethod.type)
    return list(session.scalars(statement))


__all__ = ["fetch_kinds", "fetch_payment_method_types"]
