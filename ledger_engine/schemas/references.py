"""Reference inputs pointing at accounts, expenses, orders and virtual cards."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ReferenceInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AccountReference(ReferenceInput):
    """Identifies an account by its numeric id or its slug."""

    legacy_id: int | None = Field(default=None, ge=1)
    slug: str | None = Field(default=None, min_length=1, max_length=255)

    @model_validator(mode="after")
    def _require_identifier(self) -> "AccountReference":
        if self.legacy_id is None and self.slug is None:
            raise ValueError("an account reference needs either legacyId or slug")
        return self

    def describe(self) -> str:
        return f"#{self.legacy_id}" if self.legacy_id is not None else f"@{self.slug}"


class ExpenseReference(ReferenceInput):
    legacy_id: int = Field(..., ge=1)


class OrderReference(ReferenceInput):
    legacy_id: int = Field(..., ge=1)


class VirtualCardReference(ReferenceInput):
    id: str = Field(..., min_length=1, max_length=64)


__all__ = [
    "AccountReference",
    "ExpenseReference",
    "OrderReference",
    "ReferenceInput",
    "VirtualCardReference",
]
