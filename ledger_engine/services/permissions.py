"""Identity of the caller issuing a ledger query."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class Requester:
    """The authenticated (or anonymous) actor behind a request.

    ``scopes`` is ``None`` for sessions that are not restricted to delegated
    scopes; such sessions hold every scope.
    """

    account_id: int | None = None
    is_root: bool = False
    administered_account_ids: frozenset[int] = field(default_factory=frozenset)
    scopes: frozenset[str] | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.account_id is not None

    def is_admin_of(self, account_id: int) -> bool:
        if not self.is_authenticated:
            return False
        if self.is_root:
            return True
        return account_id == self.account_id or account_id in self.administered_account_ids

    def has_scope(self, scope: str) -> bool:
        if not self.is_authenticated:
            return False
        return self.scopes is None or scope in self.scopes


ANONYMOUS = Requester()


__all__ = ["ANONYMOUS", "Requester"]
