"""Expansion of account references into ownership predicates."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import ColumnElement, and_, or_

from ledger_engine.models import Account, AccountType, Transaction, TransactionType
from ledger_engine.schemas.transaction import QueryRequest
from ledger_engine.services.ledger_filters import FilterClause
from ledger_engine.services.permissions import Requester
from ledger_engine.services.references import AccountRelationships, AccountResolver

logger = logging.getLogger(__name__)

# Vendors are bookkeeping children and never count as an account's own activity.
NON_GRANTABLE_CHILD_TYPES = (AccountType.VENDOR,)


def _unique(ids: list[int]) -> tuple[int, ...]:
    return tuple(dict.fromkeys(ids))


@dataclass(slots=True, frozen=True)
class AccountScope:
    """Flattened account identities a query is restricted to.

    ``None`` for a side means the side is not filtered at all, whereas an empty
    tuple matches nothing on that side (gift card issuances aside).
    """

    from_account_ids: tuple[int, ...] | None = None
    from_gift_card_issuer_id: int | None = None
    account_ids: tuple[int, ...] | None = None
    account_gift_card_issuer_ids: tuple[int, ...] = ()
    host_id: int | None = None
    excluded_host_account_ids: tuple[int, ...] = ()

    def clauses(self) -> list[FilterClause]:
        clauses: list[FilterClause] = []
        if self.from_account_ids is not None:
            clauses.append(FilterClause(self._from_side()))
        if self.account_ids is not None:
            clauses.append(FilterClause(self._account_side()))
        if self.host_id is not None:
            if self.excluded_host_account_ids:
                clauses.append(FilterClause(Transaction.account_id.not_in(self.excluded_host_account_ids)))
            clauses.append(FilterClause(Transaction.host_account_id == self.host_id))
        return clauses

    def _from_side(self) -> ColumnElement[bool]:
        identities = Transaction.from_account_id.in_(self.from_account_ids or ())
        if self.from_gift_card_issuer_id is None:
            return identities
        issued = and_(
            Transaction.gift_card_issuer_account_id == self.from_gift_card_issuer_id,
            Transaction.type == TransactionType.CREDIT,
        )
        return or_(issued, identities)

    def _account_side(self) -> ColumnElement[bool]:
        identities = Transaction.account_id.in_(self.account_ids or ())
        if not self.account_gift_card_issuer_ids:
            return identities
        issued = and_(
            Transaction.gift_card_issuer_account_id.in_(self.account_gift_card_issuer_ids),
            Transaction.type == TransactionType.DEBIT,
        )
        return or_(issued, identities)


class AccessScoper:
    """Resolves the account side of a query into an :class:`AccountScope`."""

    def __init__(
        self,
        *,
        resolver: AccountResolver,
        relationships: AccountRelationships,
        requester: Requester,
        incognito_scope: str = "incognito",
    ) -> None:
        self._resolver = resolver
        self._relationships = relationships
        self._requester = requester
        self._incognito_scope = incognito_scope

    def resolve(self, request: QueryRequest) -> AccountScope:
        # fromAccount and host do not depend on each other
        from_account = self._resolver.fetch(request.from_account) if request.from_account else None
        host = self._resolver.fetch(request.host) if request.host else None

        from_account_ids: tuple[int, ...] | None = None
        from_gift_card_issuer_id: int | None = None
        if from_account is not None:
            from_account_ids = _unique(self._identity_ids(from_account, request))
            if request.include_gift_card_transactions:
                from_gift_card_issuer_id = from_account.id

        account_ids: tuple[int, ...] | None = None
        account_gift_card_issuer_ids: tuple[int, ...] = ()
        if request.account:
            accounts = self._resolver.fetch_many(request.account)
            ids: list[int] = []
            for account in accounts:
                ids.extend(self._identity_ids(account, request))
            account_ids = _unique(ids)
            if request.include_gift_card_transactions:
                account_gift_card_issuer_ids = _unique([account.id for account in accounts])

        host_id: int | None = None
        excluded_host_account_ids: tuple[int, ...] = ()
        if host is not None:
            host_id = host.id
            if not request.include_host:
                excluded_host_account_ids = (host.id, *self._relationships.children_ids(host))

        return AccountScope(
            from_account_ids=from_account_ids,
            from_gift_card_issuer_id=from_gift_card_issuer_id,
            account_ids=account_ids,
            account_gift_card_issuer_ids=account_gift_card_issuer_ids,
            host_id=host_id,
            excluded_host_account_ids=excluded_host_account_ids,
        )

    def _identity_ids(self, account: Account, request: QueryRequest) -> list[int]:
        ids: list[int] = []
        if request.include_regular_transactions:
            ids.append(account.id)
        if request.include_children_transactions:
            ids.extend(
                self._relationships.children_ids(account, exclude_types=NON_GRANTABLE_CHILD_TYPES)
            )
        if request.include_incognito_transactions and self.may_see_incognito(account):
            incognito = self._relationships.incognito_profile(account)
            if incognito is not None:
                ids.append(incognito.id)
        return ids

    def may_see_incognito(self, account: Account) -> bool:
        """Incognito activity is only ever shown to the account's own session."""
        requester = self._requester
        allowed = (
            requester.is_authenticated
            and requester.is_admin_of(account.id)
            and requester.account_id == account.id
            and requester.has_scope(self._incognito_scope)
        )
        if not allowed:
            logger.debug("incognito entries of account %s withheld from requester", account.id)
        return allowed


__all__ = ["AccessScoper", "AccountScope", "NON_GRANTABLE_CHILD_TYPES"]
