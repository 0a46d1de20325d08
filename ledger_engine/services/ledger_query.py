"""Ledger transaction collection queries."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from functools import cached_property

from sqlalchemy.orm import Session

from ledger_engine.core.config import Settings, get_settings
from ledger_engine.models import PaymentMethodType, Transaction, TransactionKind
from ledger_engine.obs.metrics import record_ledger_query
from ledger_engine.obs.tracing import start_span
from ledger_engine.schemas.transaction import QueryRequest
from ledger_engine.services.errors import LimitExceededError, ReferenceNotFoundError
from ledger_engine.services.ledger_access import AccessScoper
from ledger_engine.services.ledger_facets import fetch_kinds, fetch_payment_method_types
from ledger_engine.services.ledger_filters import (
    CompiledFilters,
    LinkedReferences,
    compile_search_filters,
    compile_structural_filters,
)
from ledger_engine.services.ledger_ordering import grouping_order
from ledger_engine.services.ledger_pagination import fetch_page, normalize_pagination
from ledger_engine.services.permissions import ANONYMOUS, Requester
from ledger_engine.services.references import (
    AccountRelationships,
    AccountResolver,
    SQLAccountRelationships,
    SQLAccountResolver,
    resolve_expense_id,
    resolve_order_id,
)

logger = logging.getLogger(__name__)


class ResultPage:
    """One page of ledger entries.

    ``kinds`` and ``payment_method_types`` are only queried when first read,
    then kept for the lifetime of the page.
    """

    def __init__(
        self,
        *,
        nodes: list[Transaction],
        total_count: int,
        limit: int,
        offset: int,
        kinds_loader: Callable[[], list[TransactionKind]],
        payment_method_types_loader: Callable[[], list[PaymentMethodType | None]],
    ) -> None:
        self.nodes = nodes
        self.total_count = total_count
        self.limit = limit
        self.offset = offset
        self._kinds_loader = kinds_loader
        self._payment_method_types_loader = payment_method_types_loader

    @cached_property
    def kinds(self) -> list[TransactionKind]:
        return self._kinds_loader()

    @cached_property
    def payment_method_types(self) -> list[PaymentMethodType | None]:
        return self._payment_method_types_loader()


class LedgerQueryService:
    """Builds and runs filtered, grouped, paginated ledger queries."""

    def __init__(
        self,
        session: Session,
        *,
        requester: Requester = ANONYMOUS,
        settings: Settings | None = None,
        resolver: AccountResolver | None = None,
        relationships: AccountRelationships | None = None,
    ) -> None:
        self._session = session
        self._requester = requester
        self._settings = settings or get_settings()
        self._resolver = resolver or SQLAccountResolver(session)
        self._relationships = relationships or SQLAccountRelationships(session)

    def query(self, request: QueryRequest) -> ResultPage:
        start = time.perf_counter()
        try:
            page = self._query(request)
        except LimitExceededError:
            record_ledger_query("limit_exceeded")
            raise
        except ReferenceNotFoundError:
            record_ledger_query("not_found")
            raise
        except Exception:
            record_ledger_query("error")
            raise
        record_ledger_query("ok", time.perf_counter() - start)
        return page

    def _query(self, request: QueryRequest) -> ResultPage:
        pagination = normalize_pagination(
            request.limit,
            request.offset,
            requester=self._requester,
            default_limit=self._settings.ledger_default_limit,
            max_limit=self._settings.ledger_max_limit,
        )

        with start_span(
            "ledger.query",
            limit=pagination.limit,
            offset=pagination.offset,
            direction=request.order_by.direction.value,
        ) as span:
            scope = AccessScoper(
                resolver=self._resolver,
                relationships=self._relationships,
                requester=self._requester,
                incognito_scope=self._settings.ledger_incognito_scope,
            ).resolve(request)
            references = self._resolve_linked_references(request)

            scoped = CompiledFilters().extend(scope.clauses())
            structural = scoped.extend(compile_structural_filters(request, references))
            searched = structural.extend(compile_search_filters(request.search_term))

            order = grouping_order(
                request.order_by.direction,
                window_seconds=self._settings.ledger_grouping_window_seconds,
            )
            total_count, nodes = fetch_page(self._session, searched, order, pagination)
            span.set_attribute("ledger.total_count", total_count)

        logger.debug(
            "ledger query matched %s entries (%s clauses, %s joins)",
            total_count,
            len(searched.clauses),
            len(searched.joins),
        )

        session = self._session
        return ResultPage(
            nodes=nodes,
            total_count=total_count,
            limit=pagination.limit,
            offset=pagination.offset,
            kinds_loader=lambda: fetch_kinds(session, structural),
            payment_method_types_loader=lambda: fetch_payment_method_types(session, structural),
        )

    def _resolve_linked_references(self, request: QueryRequest) -> LinkedReferences:
        expense_id = resolve_expense_id(self._session, request.expense) if request.expense else None
        order_id = resolve_order_id(self._session, request.order) if request.order else None
        return LinkedReferences(expense_id=expense_id, order_id=order_id)


__all__ = ["LedgerQueryService", "ResultPage"]
