"""Bearer token handling for ledger requesters."""
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Literal
from uuid import uuid4

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from ledger_engine.core.config import Settings, get_settings
from ledger_engine.services.permissions import ANONYMOUS, Requester

security_scheme = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    sub: str
    root: bool = False
    adm: list[int] = []
    scope: list[str] | None = None
    type: Literal["access"]
    iat: datetime
    exp: datetime
    jti: str


def issue_access_token(
    requester: Requester,
    settings: Settings | None = None,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    if not requester.is_authenticated:
        raise ValueError("Cannot issue a token for an anonymous requester")
    settings = settings or get_settings()
    now = datetime.now(UTC)
    expires_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(requester.account_id),
        "root": requester.is_root,
        "adm": sorted(requester.administered_account_ids),
        "scope": sorted(requester.scopes) if requester.scopes is not None else None,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "jti": uuid4().hex,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _decode_token(*, token: str, settings: Settings) -> TokenPayload:
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc
    try:
        validated = TokenPayload(**payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc
    if not validated.sub.isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    return validated


def get_current_requester(
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> Requester:
    """Requester behind the request; anonymous when no bearer token is sent."""
    if credentials is None:
        return ANONYMOUS
    payload = _decode_token(token=credentials.credentials, settings=get_settings())
    return Requester(
        account_id=int(payload.sub),
        is_root=payload.root,
        administered_account_ids=frozenset(payload.adm),
        scopes=frozenset(payload.scope) if payload.scope is not None else None,
    )


__all__ = ["TokenPayload", "get_current_requester", "issue_access_token", "security_scheme"]
