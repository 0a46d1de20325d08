"""Ledger transaction query routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ledger_engine.api.deps import get_app_settings, get_db_session
from ledger_engine.api.routes.auth import get_current_requester
from ledger_engine.core.config import Settings
from ledger_engine.schemas.transaction import (
    Facet,
    QueryRequest,
    TransactionCollectionResponse,
    TransactionRead,
)
from ledger_engine.services.errors import LimitExceededError, ReferenceNotFoundError
from ledger_engine.services.ledger_query import LedgerQueryService
from ledger_engine.services.permissions import Requester

router = APIRouter(prefix="/transactions")


@router.post(
    "/query",
    response_model=TransactionCollectionResponse,
    summary="Query ledger transactions",
)
def query_transactions(
    payload: QueryRequest,
    facets: list[Facet] = Query(default=[]),
    session: Session = Depends(get_db_session),
    requester: Requester = Depends(get_current_requester),
    settings: Settings = Depends(get_app_settings),
) -> TransactionCollectionResponse:
    service = LedgerQueryService(session, requester=requester, settings=settings)
    try:
        page = service.query(payload)
        kinds = page.kinds if Facet.KINDS in facets else None
        payment_method_types = (
            page.payment_method_types if Facet.PAYMENT_METHOD_TYPES in facets else None
        )
    except ReferenceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except LimitExceededError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return TransactionCollectionResponse(
        nodes=[TransactionRead.model_validate(node) for node in page.nodes],
        total_count=page.total_count,
        limit=page.limit,
        offset=page.offset,
        kinds=kinds,
        payment_method_types=payment_method_types,
    )
