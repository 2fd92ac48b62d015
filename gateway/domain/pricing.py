"""Immutable price list snapshots.

Prices are integer credits per one million tokens. A price change never edits a
snapshot in place: the store receives a new ``PriceList`` and marks it active.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gateway.utils.datetime import utc_now

TOKENS_PER_PRICE_UNIT = 1_000_000


class PriceEntry(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_name: str = Field(min_length=1)
    input_price_per_million: int = Field(ge=0)
    output_price_per_million: int = Field(ge=0)
    is_active: bool = True


class PriceList(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    entries: tuple[PriceEntry, ...] = ()
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("entries")
    @classmethod
    def _unique_model_names(cls, entries: tuple[PriceEntry, ...]) -> tuple[PriceEntry, ...]:
        seen: set[str] = set()
        for entry in entries:
            if entry.model_name in seen:
                raise ValueError(f"Duplicate price entry for model {entry.model_name!r}.")
            seen.add(entry.model_name)
        return entries

    def active_prices(self) -> tuple[PriceEntry, ...]:
        """Return active entries in their original order."""

        return tuple(entry for entry in self.entries if entry.is_active)

    def find_active(self, model_name: str) -> PriceEntry | None:
        for entry in self.entries:
            if entry.is_active and entry.model_name == model_name:
                return entry
        return None


__all__ = ["PriceEntry", "PriceList", "TOKENS_PER_PRICE_UNIT"]
