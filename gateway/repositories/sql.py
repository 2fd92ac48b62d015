"""SQLAlchemy-backed repositories.

All four repositories share the caller's session. Each write commits on its
own so a ledger append is durable before the pipeline moves on.
"""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gateway.db.models.core import (
    Account,
    AccountApiKey,
    LedgerEntry,
    PriceListEntry,
    PriceListSnapshot,
    QuotaWindow,
)
from gateway.domain.accounts import ApiKeyRecord, ApiKeyStatus, UserAccount
from gateway.domain.pricing import PriceEntry, PriceList
from gateway.domain.quota import QuotaState
from gateway.domain.transactions import (
    TopUp,
    Transaction,
    TransactionStatus,
    UsageCharge,
)
from gateway.domain.usage import Usage
from gateway.utils.datetime import ensure_utc


def _account_to_domain(row: Account) -> UserAccount:
    return UserAccount(
        id=UUID(row.id),
        telegram_id=row.telegram_id,
        locked=row.locked,
        created_at=ensure_utc(row.created_at),
        api_keys=[
            ApiKeyRecord(
                id=UUID(key.id),
                hashed_key=key.hashed_key,
                status=ApiKeyStatus(key.status),
                created_at=ensure_utc(key.created_at),
            )
            for key in row.api_keys
        ],
    )


def _price_list_to_domain(row: PriceListSnapshot) -> PriceList:
    return PriceList(
        id=UUID(row.id),
        created_at=ensure_utc(row.created_at),
        entries=tuple(
            PriceEntry(
                model_name=entry.model_name,
                input_price_per_million=entry.input_price_per_million,
                output_price_per_million=entry.output_price_per_million,
                is_active=entry.is_active,
            )
            for entry in row.entries
        ),
    )


def _entry_to_domain(row: LedgerEntry) -> Transaction:
    if row.kind == "top_up":
        payload: TopUp | UsageCharge = TopUp(amount=row.amount)
    else:
        payload = UsageCharge(
            usage=Usage(
                prompt_tokens=row.prompt_tokens or 0,
                completion_tokens=row.completion_tokens or 0,
                model_name=row.model_name,
            ),
            cost=row.cost or 0,
        )
    return Transaction(
        id=UUID(row.id),
        user_id=UUID(row.account_id),
        timestamp=ensure_utc(row.created_at),
        status=TransactionStatus(row.status),
        payload=payload,
    )


def _entry_from_domain(transaction: Transaction) -> LedgerEntry:
    entry = LedgerEntry(
        id=str(transaction.id),
        account_id=str(transaction.user_id),
        kind=transaction.payload.kind,
        status=transaction.status.value,
        created_at=transaction.timestamp,
    )
    payload = transaction.payload
    if isinstance(payload, TopUp):
        entry.amount = payload.amount
    else:
        entry.model_name = payload.usage.model_name
        entry.prompt_tokens = payload.usage.prompt_tokens
        entry.completion_tokens = payload.usage.completion_tokens
        entry.cost = payload.cost
    return entry


class SqlUserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_api_key_hash(self, hashed_key: str) -> UserAccount | None:
        stmt = (
            select(Account)
            .join(AccountApiKey, AccountApiKey.account_id == Account.id)
            .where(AccountApiKey.hashed_key == hashed_key, AccountApiKey.status == "active")
            .options(selectinload(Account.api_keys))
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _account_to_domain(row) if row else None

    async def find_by_id(self, user_id: UUID) -> UserAccount | None:
        row = await self._load(str(user_id))
        return _account_to_domain(row) if row else None

    async def find_by_telegram_id(self, telegram_id: int) -> UserAccount | None:
        stmt = (
            select(Account)
            .where(Account.telegram_id == telegram_id)
            .options(selectinload(Account.api_keys))
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        return _account_to_domain(row) if row else None

    async def save(self, account: UserAccount) -> None:
        row = await self._load(str(account.id))
        if row is None:
            row = Account(
                id=str(account.id),
                telegram_id=account.telegram_id,
                locked=account.locked,
                created_at=account.created_at,
            )
            self.session.add(row)

        stored = {key.id: key for key in row.api_keys}
        for key in account.api_keys:
            existing = stored.get(str(key.id))
            if existing is None:
                row.api_keys.append(
                    AccountApiKey(
                        id=str(key.id),
                        hashed_key=key.hashed_key,
                        status=key.status.value,
                        created_at=key.created_at,
                    )
                )
            else:
                existing.status = key.status.value
        await self.session.commit()

    async def set_locked(self, user_id: UUID, locked: bool) -> None:
        row = await self.session.get(Account, str(user_id))
        if row is None:
            raise KeyError(user_id)
        row.locked = locked
        await self.session.commit()

    async def _load(self, account_id: str) -> Account | None:
        stmt = (
            select(Account)
            .where(Account.id == account_id)
            .options(selectinload(Account.api_keys))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class SqlPriceListRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_active(self) -> PriceList | None:
        stmt = (
            select(PriceListSnapshot)
            .where(PriceListSnapshot.is_current.is_(True))
            .options(selectinload(PriceListSnapshot.entries))
            .order_by(PriceListSnapshot.created_at.desc())
        )
        result = await self.session.execute(stmt)
        row = result.scalars().first()
        return _price_list_to_domain(row) if row else None

    async def add(self, price_list: PriceList, *, activate: bool = True) -> None:
        if await self.session.get(PriceListSnapshot, str(price_list.id)) is not None:
            raise ValueError(f"Price list {price_list.id} already stored; snapshots are immutable.")
        if activate:
            await self.session.execute(
                update(PriceListSnapshot)
                .where(PriceListSnapshot.is_current.is_(True))
                .values(is_current=False)
            )
        self.session.add(
            PriceListSnapshot(
                id=str(price_list.id),
                is_current=activate,
                created_at=price_list.created_at,
                entries=[
                    PriceListEntry(
                        position=position,
                        model_name=entry.model_name,
                        input_price_per_million=entry.input_price_per_million,
                        output_price_per_million=entry.output_price_per_million,
                        is_active=entry.is_active,
                    )
                    for position, entry in enumerate(price_list.entries)
                ],
            )
        )
        await self.session.commit()


class SqlTransactionRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(self, transaction: Transaction) -> None:
        self.session.add(_entry_from_domain(transaction))
        await self.session.commit()

    async def list_for_user(self, user_id: UUID) -> Sequence[Transaction]:
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == str(user_id))
            .order_by(LedgerEntry.created_at)
        )
        result = await self.session.execute(stmt)
        return [_entry_to_domain(row) for row in result.scalars().all()]

    async def get(self, transaction_id: UUID) -> Transaction | None:
        row = await self.session.get(LedgerEntry, str(transaction_id))
        return _entry_to_domain(row) if row else None

    async def update_status(self, transaction: Transaction) -> None:
        row = await self.session.get(LedgerEntry, str(transaction.id))
        if row is None:
            raise KeyError(transaction.id)
        row.status = transaction.status.value
        await self.session.commit()


class SqlQuotaStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def load(self, user_id: UUID) -> QuotaState | None:
        row = await self._load(str(user_id))
        if row is None:
            return None
        return QuotaState(
            user_id=user_id,
            window_start=ensure_utc(row.window_start),
            request_count=row.request_count,
        )

    async def save(self, state: QuotaState) -> None:
        row = await self._load(str(state.user_id))
        if row is None:
            self.session.add(
                QuotaWindow(
                    account_id=str(state.user_id),
                    window_start=state.window_start,
                    request_count=state.request_count,
                )
            )
        else:
            row.window_start = state.window_start
            row.request_count = state.request_count
        await self.session.commit()

    async def _load(self, account_id: str) -> QuotaWindow | None:
        stmt = select(QuotaWindow).where(QuotaWindow.account_id == account_id).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


__all__ = [
    "SqlPriceListRepository",
    "SqlQuotaStore",
    "SqlTransactionRepository",
    "SqlUserRepository",
]
