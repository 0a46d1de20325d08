"""Compilation of ledger query requests into composable SQL clauses.

A request is compiled in stages. The account scope comes first, the structural
filters are appended to it, and the free-text search extends that last. Each
stage yields an immutable :class:`CompiledFilters` snapshot, so the facet
queries can reuse the structural snapshot without the search narrowing.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import ColumnElement, Select, and_, func, or_
from sqlalchemy.orm import aliased

from ledger_engine.models import Account, Expense, PaymentMethod, Transaction
from ledger_engine.schemas.transaction import QueryRequest
from ledger_engine.services.search import build_search_conditions

FROM_ACCOUNT = aliased(Account, name="from_account")
OWNER_ACCOUNT = aliased(Account, name="owner_account")

RELATIONS: dict[str, tuple[Any, ColumnElement[bool]]] = {
    "expense": (Expense, Transaction.expense_id == Expense.id),
    "payment_method": (PaymentMethod, Transaction.payment_method_id == PaymentMethod.id),
    "from_account": (FROM_ACCOUNT, Transaction.from_account_id == FROM_ACCOUNT.id),
    "account": (OWNER_ACCOUNT, Transaction.account_id == OWNER_ACCOUNT.id),
}


@dataclass(slots=True, frozen=True)
class JoinSpec:
    """A relation that must be joined to evaluate some clause.

    Required joins are inner joins and double as existence filters.
    """

    relation: str
    required: bool = False

    def __post_init__(self) -> None:
        if self.relation not in RELATIONS:
            raise ValueError(f"Unknown relation '{self.relation}'")


@dataclass(slots=True, frozen=True)
class FilterClause:
    clause: ColumnElement[bool]
    joins: tuple[JoinSpec, ...] = ()


@dataclass(slots=True, frozen=True)
class LinkedReferences:
    """Database ids resolved from the expense and order references."""

    expense_id: int | None = None
    order_id: int | None = None


def _merge_joins(current: Iterable[JoinSpec], extra: Iterable[JoinSpec]) -> tuple[JoinSpec, ...]:
    merged: dict[str, JoinSpec] = {}
    for join in (*current, *extra):
        existing = merged.get(join.relation)
        if existing is None or (join.required and not existing.required):
            merged[join.relation] = join
    return tuple(merged.values())


@dataclass(slots=True, frozen=True)
class CompiledFilters:
    """Conjunctive clauses plus the joins they need."""

    clauses: tuple[ColumnElement[bool], ...] = ()
    joins: tuple[JoinSpec, ...] = field(default=())

    def extend(self, contributions: Iterable[FilterClause]) -> "CompiledFilters":
        clauses = list(self.clauses)
        joins = self.joins
        for contribution in contributions:
            clauses.append(contribution.clause)
            joins = _merge_joins(joins, contribution.joins)
        return CompiledFilters(clauses=tuple(clauses), joins=joins)

    def with_join(self, join: JoinSpec) -> "CompiledFilters":
        return CompiledFilters(clauses=self.clauses, joins=_merge_joins(self.joins, (join,)))

    def apply(self, statement: Select) -> Select:
        for join in self.joins:
            target, onclause = RELATIONS[join.relation]
            if join.required:
                statement = statement.join(target, onclause)
            else:
                statement = statement.outerjoin(target, onclause)
        if self.clauses:
            statement = statement.where(*self.clauses)
        return statement


ClauseBuilder = Callable[[QueryRequest, LinkedReferences], "FilterClause | None"]


def _type_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if request.type is None:
        return None
    return FilterClause(Transaction.type == request.type)


def _group_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if request.group is None:
        return None
    return FilterClause(Transaction.transaction_group == request.group)


def _amount_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    magnitude = func.abs(Transaction.amount)
    bounds = []
    if request.min_amount is not None:
        bounds.append(magnitude >= request.min_amount)
    if request.max_amount is not None:
        bounds.append(magnitude <= request.max_amount)
    if not bounds:
        return None
    return FilterClause(and_(*bounds))


def _date_from_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if request.date_from is None:
        return None
    return FilterClause(Transaction.created_at >= request.date_from)


def _date_to_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if request.date_to is None:
        return None
    return FilterClause(Transaction.created_at <= request.date_to)


def _expense_clause(_: QueryRequest, references: LinkedReferences) -> FilterClause | None:
    if references.expense_id is None:
        return None
    return FilterClause(Transaction.expense_id == references.expense_id)


def _has_expense_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if request.has_expense is None:
        return None
    if request.has_expense:
        return FilterClause(Transaction.expense_id.is_not(None))
    return FilterClause(Transaction.expense_id.is_(None))


def _expense_type_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if not request.expense_type:
        return None
    return FilterClause(
        Expense.type.in_(request.expense_type),
        joins=(JoinSpec("expense", required=True),),
    )


def _order_clause(_: QueryRequest, references: LinkedReferences) -> FilterClause | None:
    if references.order_id is None:
        return None
    return FilterClause(Transaction.order_id == references.order_id)


def _has_order_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if request.has_order is None:
        return None
    if request.has_order:
        return FilterClause(Transaction.order_id.is_not(None))
    return FilterClause(Transaction.order_id.is_(None))


def _debt_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if request.include_debts:
        return None
    return FilterClause(Transaction.is_debt.is_not(True))


def _kind_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if not request.kind:
        return None
    return FilterClause(Transaction.kind.in_(request.kind))


def _payment_method_type_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if not request.payment_method_type:
        return None
    conditions = []
    # dict.fromkeys keeps the first occurrence order while dropping duplicates
    for method_type in dict.fromkeys(request.payment_method_type):
        if method_type is None:
            conditions.append(Transaction.payment_method_id.is_(None))
        else:
            conditions.append(PaymentMethod.type == method_type)
    return FilterClause(or_(*conditions), joins=(JoinSpec("payment_method"),))


def _virtual_card_clause(request: QueryRequest, _: LinkedReferences) -> FilterClause | None:
    if not request.virtual_card:
        return None
    card_ids = [card.id for card in request.virtual_card]
    return FilterClause(
        Expense.virtual_card_id.in_(card_ids),
        joins=(JoinSpec("expense", required=True),),
    )


STRUCTURAL_CLAUSE_BUILDERS: tuple[ClauseBuilder, ...] = (
    _type_clause,
    _group_clause,
    _amount_clause,
    _date_from_clause,
    _date_to_clause,
    _expense_clause,
    _has_expense_clause,
    _expense_type_clause,
    _order_clause,
    _has_order_clause,
    _debt_clause,
    _kind_clause,
    _payment_method_type_clause,
    _virtual_card_clause,
)


def compile_structural_filters(request: QueryRequest, references: LinkedReferences) -> list[FilterClause]:
    """Run every structural builder; absent filters contribute nothing."""
    contributions = []
    for builder in STRUCTURAL_CLAUSE_BUILDERS:
        contribution = builder(request, references)
        if contribution is not None:
            contributions.append(contribution)
    return contributions


def compile_search_filters(search_term: str | None) -> list[FilterClause]:
    conditions = build_search_conditions(
        search_term,
        id_fields=(Transaction.id, Transaction.expense_id, Transaction.order_id),
        slug_fields=(FROM_ACCOUNT.slug, OWNER_ACCOUNT.slug),
        text_fields=(FROM_ACCOUNT.name, OWNER_ACCOUNT.name, Transaction.description),
        amount_fields=(Transaction.amount,),
    )
    if not conditions:
        return []
    joins = (JoinSpec("from_account"), JoinSpec("account"))
    return [FilterClause(or_(*conditions), joins=joins)]


__all__ = [
    "CompiledFilters",
    "FROM_ACCOUNT",
    "FilterClause",
    "JoinSpec",
    "LinkedReferences",
    "OWNER_ACCOUNT",
    "RELATIONS",
    "STRUCTURAL_CLAUSE_BUILDERS",
    "compile_search_filters",
    "compile_structural_filters",
]
