from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from ledger_engine.core.config import Settings
from ledger_engine.models import AccountType, PaymentMethodType, TransactionKind, TransactionType
from ledger_engine.schemas.transaction import QueryRequest
from ledger_engine.services.errors import (
    AccountNotFoundError,
    ExpenseNotFoundError,
    LimitExceededError,
    OrderNotFoundError,
)
from ledger_engine.services.ledger_ordering import grouping_sort_key
from ledger_engine.services.ledger_query import LedgerQueryService
from ledger_engine.services.permissions import ANONYMOUS, Requester

BASE_TIME = datetime(2024, 3, 1, 12, 0, 0, tzinfo=UTC)
SETTINGS = Settings(database_url="sqlite+pysqlite:///:memory:", enable_tracing=False)


def _query(session: Session, requester: Requester = ANONYMOUS, **fields):
    service = LedgerQueryService(session, requester=requester, settings=SETTINGS)
    return service.query(QueryRequest.model_validate(fields))


@pytest.fixture()
def world(db_session: Session, ledger):
    """A host with a collective, its event and vendor, and two backers."""
    host = ledger.account("host", type=AccountType.ORGANIZATION)
    collective = ledger.account("collective", parent=host)
    event = ledger.account("summit", type=AccountType.EVENT, parent=collective)
    vendor = ledger.account("printer", type=AccountType.VENDOR, parent=collective)
    alice = ledger.account("alice", type=AccountType.USER, name="Alice Backer")
    bob = ledger.account("bob", type=AccountType.USER)
    card = ledger.payment_method(PaymentMethodType.CREDITCARD, alice)
    paypal = ledger.payment_method(PaymentMethodType.PAYMENT, bob)

    contribution = ledger.movement(
        payer=alice,
        payee=collective,
        amount=5_000,
        group="group-contribution",
        payment_method_id=card.id,
        host_account_id=host.id,
        description="Monthly support",
    )
    host_fee = ledger.movement(
        payer=collective,
        payee=host,
        kind=TransactionKind.HOST_FEE,
        amount=500,
        group="group-contribution",
        host_account_id=host.id,
    )
    event_ticket = ledger.movement(
        payer=bob,
        payee=event,
        amount=2_000,
        group="group-ticket",
        created_at=BASE_TIME + timedelta(minutes=1),
        payment_method_id=paypal.id,
        host_account_id=host.id,
    )
    vendor_payment = ledger.movement(
        payer=collective,
        payee=vendor,
        kind=TransactionKind.EXPENSE,
        amount=750,
        group="group-expense",
        created_at=BASE_TIME + timedelta(minutes=2),
        host_account_id=host.id,
    )
    db_session.commit()
    return {
        "host": host,
        "collective": collective,
        "event": event,
        "vendor": vendor,
        "alice": alice,
        "bob": bob,
        "contribution": contribution,
        "host_fee": host_fee,
        "event_ticket": event_ticket,
        "vendor_payment": vendor_payment,
    }


def test_account_scope_restricts_to_owned_entries(db_session: Session, world) -> None:
    page = _query(db_session, account=[{"slug": "collective"}])

    assert page.total_count == 3
    assert {node.account_id for node in page.nodes} == {world["collective"].id}


def test_children_are_included_on_request_without_vendors(db_session: Session, world) -> None:
    page = _query(db_session, account=[{"slug": "collective"}], includeChildrenTransactions=True)

    owners = {node.account_id for node in page.nodes}
    assert world["event"].id in owners
    assert world["vendor"].id not in owners
    assert page.total_count == 4


def test_from_account_scope(db_session: Session, world) -> None:
    page = _query(db_session, fromAccount={"slug": "alice"})

    assert page.total_count == 1
    assert page.nodes[0].type == TransactionType.CREDIT
    assert page.nodes[0].account_id == world["collective"].id


def test_nodes_follow_grouping_order(db_session: Session, world) -> None:
    page = _query(db_session)

    assert [node.id for node in page.nodes] == [
        node.id for node in sorted(page.nodes, key=grouping_sort_key, reverse=True)
    ]
    assert page.nodes[0].transaction_group == "group-expense"


def test_ascending_order(db_session: Session, world) -> None:
    page = _query(db_session, orderBy={"field": "createdAt", "direction": "ASC"})

    assert page.nodes[0].transaction_group == "group-contribution"
    assert page.nodes[0].kind == TransactionKind.CONTRIBUTION
    assert page.nodes[0].type == TransactionType.DEBIT


def test_kind_filter(db_session: Session, world) -> None:
    page = _query(db_session, kind=["HOST_FEE"])

    assert page.total_count == 2
    assert {node.kind for node in page.nodes} == {TransactionKind.HOST_FEE}


def test_debts_excluded_unless_requested(db_session: Session, world, ledger) -> None:
    ledger.movement(
        payer=world["host"],
        payee=world["collective"],
        kind=TransactionKind.HOST_FEE_SHARE_DEBT,
        group="group-debt",
        is_debt=True,
    )
    db_session.commit()

    assert _query(db_session).total_count == 8
    assert _query(db_session, includeDebts=True).total_count == 10


def test_zero_limit_counts_without_nodes(db_session: Session, world) -> None:
    full = _query(db_session, account=[{"slug": "collective"}])
    count_only = _query(db_session, account=[{"slug": "collective"}], limit=0)

    assert count_only.nodes == []
    assert count_only.total_count == full.total_count
    assert count_only.limit == 0


def test_offset_pages_through_results(db_session: Session, world) -> None:
    everything = _query(db_session)
    second_page = _query(db_session, limit=3, offset=3)

    assert second_page.total_count == everything.total_count
    assert [node.id for node in second_page.nodes] == [node.id for node in everything.nodes[3:6]]


def test_limit_ceiling_enforced_before_querying(db_session: Session) -> None:
    with pytest.raises(LimitExceededError):
        _query(db_session, limit=10_001, account=[{"slug": "does-not-exist"}])


def test_root_may_exceed_ceiling(db_session: Session, world) -> None:
    page = _query(db_session, Requester(account_id=world["host"].id, is_root=True), limit=20_000)

    assert page.limit == 20_000


def test_unknown_references_raise(db_session: Session, world) -> None:
    with pytest.raises(AccountNotFoundError):
        _query(db_session, host={"slug": "missing-host"})
    with pytest.raises(ExpenseNotFoundError):
        _query(db_session, expense={"legacyId": 404})
    with pytest.raises(OrderNotFoundError):
        _query(db_session, order={"legacyId": 404})


def test_facets_ignore_search_and_are_lazy(db_session: Session, world, monkeypatch) -> None:
    calls: list[str] = []
    from ledger_engine.services import ledger_query

    original = ledger_query.fetch_kinds

    def counting_fetch_kinds(session, filters):
        calls.append("kinds")
        return original(session, filters)

    monkeypatch.setattr(ledger_query, "fetch_kinds", counting_fetch_kinds)

    page = _query(db_session, account=[{"slug": "collective"}], searchTerm="Monthly support")

    assert page.total_count == 1
    assert calls == []
    kinds = page.kinds
    assert set(kinds) == {TransactionKind.CONTRIBUTION, TransactionKind.HOST_FEE, TransactionKind.EXPENSE}
    assert page.kinds is kinds
    assert calls == ["kinds"]


def test_payment_method_type_facet_includes_missing_methods(db_session: Session, world) -> None:
    page = _query(db_session, account=[{"slug": "collective"}])

    assert set(page.payment_method_types) == {PaymentMethodType.CREDITCARD, None}


def test_payment_method_type_filter_matches_null(db_session: Session, world) -> None:
    with_card = _query(db_session, paymentMethodType=["CREDITCARD"])
    without_method = _query(db_session, paymentMethodType=[None])

    assert with_card.total_count == 2
    assert all(node.payment_method_type == PaymentMethodType.CREDITCARD for node in with_card.nodes)
    assert without_method.total_count == 4


def test_search_by_slug_and_amount(db_session: Session, world) -> None:
    by_slug = _query(db_session, searchTerm="@alice")
    by_amount = _query(db_session, searchTerm="7.50")

    assert by_slug.total_count == 2
    assert {node.transaction_group for node in by_amount.nodes} == {"group-expense"}


def test_host_filter_with_and_without_host_accounts(db_session: Session, world) -> None:
    included = _query(db_session, host={"slug": "host"})
    excluded = _query(db_session, host={"slug": "host"}, includeHost=False)

    assert included.total_count == 8
    excluded_owners = {node.account_id for node in excluded.nodes}
    assert world["host"].id not in excluded_owners
    assert world["collective"].id not in excluded_owners
    assert excluded_owners == {world["alice"].id, world["bob"].id, world["event"].id, world["vendor"].id}


def test_gift_card_issuances(db_session: Session, world, ledger) -> None:
    issuer = world["collective"]
    recipient = ledger.account("gift-recipient", type=AccountType.USER)
    ledger.movement(
        payer=recipient,
        payee=world["event"],
        amount=1_000,
        group="group-gift",
        gift_card_issuer_account_id=issuer.id,
    )
    db_session.commit()

    without = _query(db_session, fromAccount={"slug": "collective"})
    with_gift_cards = _query(db_session, fromAccount={"slug": "collective"}, includeGiftCardTransactions=True)

    assert "group-gift" not in {node.transaction_group for node in without.nodes}
    gift_entries = [node for node in with_gift_cards.nodes if node.transaction_group == "group-gift"]
    assert [node.type for node in gift_entries] == [TransactionType.CREDIT]


def test_incognito_entries_only_for_the_owner(db_session: Session, world, ledger) -> None:
    alice = world["alice"]
    incognito = ledger.account("incognito-alice", type=AccountType.USER, incognito_of=alice)
    ledger.movement(payer=incognito, payee=world["collective"], group="group-secret")
    db_session.commit()

    request = {"account": [{"slug": "alice"}], "includeIncognitoTransactions": True}
    anonymous = _query(db_session, **request)
    admin = _query(db_session, Requester(account_id=99, administered_account_ids=frozenset({alice.id})), **request)
    owner = _query(db_session, Requester(account_id=alice.id), **request)

    assert anonymous.total_count == admin.total_count == 1
    assert owner.total_count == 2
    assert incognito.id in {node.account_id for node in owner.nodes}


def test_expense_filters(db_session: Session, world, ledger) -> None:
    expense = ledger.expense(world["collective"], virtual_card_id="vc_123")
    ledger.movement(
        payer=world["collective"],
        payee=world["bob"],
        kind=TransactionKind.EXPENSE,
        group="group-card",
        expense_id=expense.id,
    )
    db_session.commit()

    by_expense = _query(db_session, expense={"legacyId": expense.id})
    by_card = _query(db_session, virtualCard=[{"id": "vc_123"}])
    by_type = _query(db_session, expenseType=["INVOICE"])
    without_expense = _query(db_session, hasExpense=False)

    assert by_expense.total_count == by_card.total_count == by_type.total_count == 2
    assert without_expense.total_count == 8


@pytest.mark.parametrize("term", ["#99999999999999999999", "99999999999999999999"])
def test_oversized_numeric_search_matches_nothing(db_session: Session, world, term: str) -> None:
    page = _query(db_session, searchTerm=term)

    assert page.total_count == 0
    assert page.nodes == []


def test_omitted_limit_uses_configured_default(db_session: Session, world) -> None:
    settings = Settings(database_url="sqlite+pysqlite:///:memory:", enable_tracing=False, ledger_default_limit=3)
    service = LedgerQueryService(db_session, settings=settings)

    page = service.query(QueryRequest())

    assert page.limit == 3
    assert len(page.nodes) == 3
    assert page.total_count == 8
