"""Process-local stores used by the default backend and by tests.

Objects are copied on the way in and out so callers never share mutable state
with the store, mirroring what a database round-trip would do.
"""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from gateway.domain.accounts import UserAccount
from gateway.domain.pricing import PriceList
from gateway.domain.quota import QuotaState
from gateway.domain.transactions import Transaction


class InMemoryUserRepository:
    def __init__(self) -> None:
        self._accounts: dict[UUID, UserAccount] = {}

    async def find_by_api_key_hash(self, hashed_key: str) -> UserAccount | None:
        for account in self._accounts.values():
            if any(key.is_active and key.hashed_key == hashed_key for key in account.api_keys):
                return account.model_copy(deep=True)
        return None

    async def find_by_id(self, user_id: UUID) -> UserAccount | None:
        account = self._accounts.get(user_id)
        return account.model_copy(deep=True) if account else None

    async def find_by_telegram_id(self, telegram_id: int) -> UserAccount | None:
        for account in self._accounts.values():
            if account.telegram_id == telegram_id:
                return account.model_copy(deep=True)
        return None

    async def save(self, account: UserAccount) -> None:
        stored = account.model_copy(deep=True)
        existing = self._accounts.get(account.id)
        if existing is not None:
            stored.locked = existing.locked
        self._accounts[account.id] = stored

    async def set_locked(self, user_id: UUID, locked: bool) -> None:
        account = self._accounts.get(user_id)
        if account is None:
            raise KeyError(user_id)
        account.locked = locked

    def clear(self) -> None:
        self._accounts.clear()


class InMemoryPriceListRepository:
    def __init__(self) -> None:
        self._snapshots: dict[UUID, PriceList] = {}
        self._active_id: UUID | None = None

    async def find_active(self) -> PriceList | None:
        if self._active_id is None:
            return None
        return self._snapshots.get(self._active_id)

    async def add(self, price_list: PriceList, *, activate: bool = True) -> None:
        if price_list.id in self._snapshots:
            raise ValueError(f"Price list {price_list.id} already stored; snapshots are immutable.")
        self._snapshots[price_list.id] = price_list
        if activate:
            self._active_id = price_list.id

    def clear(self) -> None:
        self._snapshots.clear()
        self._active_id = None


class InMemoryTransactionRepository:
    def __init__(self) -> None:
        self._transactions: dict[UUID, Transaction] = {}

    async def append(self, transaction: Transaction) -> None:
        if transaction.id in self._transactions:
            raise ValueError(f"Transaction {transaction.id} already recorded.")
        self._transactions[transaction.id] = transaction.model_copy(deep=True)

    async def list_for_user(self, user_id: UUID) -> Sequence[Transaction]:
        return [
            transaction.model_copy(deep=True)
            for transaction in self._transactions.values()
            if transaction.user_id == user_id
        ]

    async def get(self, transaction_id: UUID) -> Transaction | None:
        transaction = self._transactions.get(transaction_id)
        return transaction.model_copy(deep=True) if transaction else None

    async def update_status(self, transaction: Transaction) -> None:
        stored = self._transactions.get(transaction.id)
        if stored is None:
            raise KeyError(transaction.id)
        stored.status = transaction.status

    def clear(self) -> None:
        self._transactions.clear()


class InMemoryQuotaStore:
    def __init__(self) -> None:
        self._states: dict[UUID, QuotaState] = {}

    async def load(self, user_id: UUID) -> QuotaState | None:
        state = self._states.get(user_id)
        return state.model_copy() if state else None

    async def save(self, state: QuotaState) -> None:
        self._states[state.user_id] = state.model_copy()

    def clear(self) -> None:
        self._states.clear()


__all__ = [
    "InMemoryPriceListRepository",
    "InMemoryQuotaStore",
    "InMemoryTransactionRepository",
    "InMemoryUserRepository",
]
