"""Pydantic schemas for ledger transaction queries."""
from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ledger_engine.models import ExpenseType, PaymentMethodType, TransactionKind, TransactionType
from ledger_engine.schemas.references import (
    AccountReference,
    ExpenseReference,
    OrderReference,
    VirtualCardReference,
)


class OrderDirection(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


class ChronologicalOrder(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str = Field(default="createdAt", pattern="^createdAt$")
    direction: OrderDirection = Field(default=OrderDirection.DESC)


class QueryRequest(BaseModel):
    """Filters, ordering and pagination for one ledger query.

    ``limit`` and ``offset`` are not range-checked here; out-of-range values
    are normalised by the pagination step.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    limit: int | None = None
    offset: int | None = 0
    type: TransactionType | None = None
    payment_method_type: list[PaymentMethodType | None] | None = Field(
        default=None,
        description="Payment method types; null matches entries without a payment method",
    )
    from_account: AccountReference | None = Field(
        default=None, description="Account on the other side of the entry (CREDIT -> sender, DEBIT -> recipient)"
    )
    account: list[AccountReference] | None = Field(
        default=None, description="Account(s) on the main side of the entry (CREDIT -> recipient, DEBIT -> sender)"
    )
    host: AccountReference | None = None
    order_by: ChronologicalOrder = Field(default_factory=ChronologicalOrder)
    min_amount: int | None = Field(default=None, description="Lower bound on the absolute amount, in cents")
    max_amount: int | None = Field(default=None, description="Upper bound on the absolute amount, in cents")
    date_from: datetime | None = None
    date_to: datetime | None = None
    search_term: str | None = None
    has_expense: bool | None = None
    expense: ExpenseReference | None = None
    expense_type: list[ExpenseType] | None = None
    has_order: bool | None = None
    order: OrderReference | None = None
    include_host: bool = True
    include_regular_transactions: bool = True
    include_incognito_transactions: bool = False
    include_children_transactions: bool = False
    include_gift_card_transactions: bool = False
    include_debts: bool = False
    kind: list[TransactionKind] | None = None
    group: str | None = None
    virtual_card: list[VirtualCardReference] | None = None


class Facet(str, enum.Enum):
    KINDS = "kinds"
    PAYMENT_METHOD_TYPES = "paymentMethodTypes"


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    kind: TransactionKind | None
    type: TransactionType
    amount: int
    currency: str
    description: str | None
    transaction_group: str = Field(alias="group")
    is_debt: bool
    account_id: int
    from_account_id: int
    host_account_id: int | None
    gift_card_issuer_account_id: int | None
    expense_id: int | None
    order_id: int | None
    payment_method_type: PaymentMethodType | None
    created_at: datetime


class TransactionCollectionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    nodes: list[TransactionRead]
    total_count: int
    limit: int
    offset: int
    kinds: list[TransactionKind] | None = None
    payment_method_types: list[PaymentMethodType | None] | None = None


__all__ = [
    "ChronologicalOrder",
    "Facet",
    "OrderDirection",
    "QueryRequest",
    "TransactionCollectionResponse",
    "TransactionRead",
]
