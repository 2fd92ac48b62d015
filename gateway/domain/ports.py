"""Storage and provider contracts consumed by the billing services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence
from uuid import UUID

from gateway.domain.accounts import UserAccount
from gateway.domain.pricing import PriceList
from gateway.domain.quota import QuotaState
from gateway.domain.transactions import Transaction
from gateway.domain.usage import Usage


class UserRepository(Protocol):
    async def find_by_api_key_hash(self, hashed_key: str) -> UserAccount | None: ...

    async def find_by_id(self, user_id: UUID) -> UserAccount | None: ...

    async def find_by_telegram_id(self, telegram_id: int) -> UserAccount | None: ...

    async def save(self, account: UserAccount) -> None:
        """Insert a new account or persist its keys; ``locked`` is written via ``set_locked``."""

    async def set_locked(self, user_id: UUID, locked: bool) -> None: ...


class PriceListRepository(Protocol):
    async def find_active(self) -> PriceList | None: ...

    async def add(self, price_list: PriceList, *, activate: bool = True) -> None: ...


class TransactionRepository(Protocol):
    async def append(self, transaction: Transaction) -> None: ...

    async def list_for_user(self, user_id: UUID) -> Sequence[Transaction]: ...

    async def get(self, transaction_id: UUID) -> Transaction | None: ...

    async def update_status(self, transaction: Transaction) -> None: ...


class QuotaStore(Protocol):
    async def load(self, user_id: UUID) -> QuotaState | None: ...

    async def save(self, state: QuotaState) -> None: ...


@dataclass(slots=True)
class ProviderResult:
    response: dict[str, Any]
    usage: Usage


class ChatProvider(Protocol):
    async def complete(self, payload: dict[str, Any]) -> ProviderResult: ...


__all__ = [
    "ChatProvider",
    "PriceListRepository",
    "ProviderResult",
    "QuotaStore",
    "TransactionRepository",
    "UserRepository",
]
