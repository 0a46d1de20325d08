"""Free-text search conditions shared by collection queries."""
from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation

from sqlalchemy import ColumnElement, false, func

_WHITESPACE = re.compile(r"\s+")
_INTEGER = re.compile(r"^\d+$")
_AMOUNT = re.compile(r"^-?\d+(\.\d{1,2})?$")

# Values outside a signed BIGINT cannot be bound, and match no row anyway.
MAX_BOUND_INTEGER = 2**63 - 1


def sanitize_search_term(term: str | None) -> str:
    if not term:
        return ""
    return _WHITESPACE.sub(" ", term).strip()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _amount_in_cents(term: str) -> int | None:
    if not _AMOUNT.match(term):
        return None
    try:
        cents = abs(int(Decimal(term) * 100))
    except InvalidOperation:
        return None
    return cents if cents <= MAX_BOUND_INTEGER else None


def build_search_conditions(
    term: str | None,
    *,
    id_fields: Sequence[ColumnElement] = (),
    slug_fields: Sequence[ColumnElement] = (),
    text_fields: Sequence[ColumnElement] = (),
    amount_fields: Sequence[ColumnElement] = (),
) -> list[ColumnElement[bool]]:
    """Return clauses to be OR-ed together, or an empty list for a blank term.

    ``#123`` only matches id fields and ``@slug`` only matches slug fields
    exactly. Any other term is matched as a substring on slugs and texts, and
    additionally as an exact id and an absolute amount (in major units) when it
    looks like a number.
    """
    sanitized = sanitize_search_term(term)
    if not sanitized:
        return []

    if sanitized.startswith("#") and _INTEGER.match(sanitized[1:]):
        value = int(sanitized[1:])
        if value > MAX_BOUND_INTEGER:
            return [false()]
        return [field == value for field in id_fields]

    if sanitized.startswith("@") and len(sanitized) > 1:
        slug = sanitized[1:].lower()
        return [func.lower(field) == slug for field in slug_fields]

    pattern = f"%{_escape_like(sanitized)}%"
    conditions: list[ColumnElement[bool]] = []
    conditions.extend(field.ilike(pattern, escape="\\") for field in slug_fields)
    conditions.extend(field.ilike(pattern, escape="\\") for field in text_fields)

    if _INTEGER.match(sanitized) and int(sanitized) <= MAX_BOUND_INTEGER:
        conditions.extend(field == int(sanitized) for field in id_fields)

    cents = _amount_in_cents(sanitized)
    if cents is not None:
        conditions.extend(func.abs(field) == cents for field in amount_fields)

    return conditions


__all__ = ["build_search_conditions", "sanitize_search_term"]
