"""Storage backends selected by ``GatewaySettings.storage``."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from gateway.config import GatewaySettings
from gateway.db.session import Database
from gateway.domain.ports import (
    PriceListRepository,
    QuotaStore,
    TransactionRepository,
    UserRepository,
)
from gateway.repositories.memory import (
    InMemoryPriceListRepository,
    InMemoryQuotaStore,
    InMemoryTransactionRepository,
    InMemoryUserRepository,
)
from gateway.repositories.sql import (
    SqlPriceListRepository,
    SqlQuotaStore,
    SqlTransactionRepository,
    SqlUserRepository,
)


@dataclass(slots=True)
class Repositories:
    users: UserRepository
    price_lists: PriceListRepository
    transactions: TransactionRepository
    quota: QuotaStore


class Storage:
    """Hands out a repository bundle per unit of work."""

    def __init__(self, settings: GatewaySettings, database: Database | None = None) -> None:
        self.settings = settings
        self.backend = settings.storage
        self.database: Database | None = None
        self._memory: Repositories | None = None
        if self.backend == "database":
            self.database = database or Database(settings)
        else:
            self._memory = Repositories(
                users=InMemoryUserRepository(),
                price_lists=InMemoryPriceListRepository(),
                transactions=InMemoryTransactionRepository(),
                quota=InMemoryQuotaStore(),
            )

    async def prepare(self) -> None:
        if self.database is not None:
            await self.database.create_schema()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Repositories]:
        if self._memory is not None:
            yield self._memory
            return
        assert self.database is not None
        async with self.database.session() as session:
            yield Repositories(
                users=SqlUserRepository(session),
                price_lists=SqlPriceListRepository(session),
                transactions=SqlTransactionRepository(session),
                quota=SqlQuotaStore(session),
            )

    async def close(self) -> None:
        if self.database is not None:
            await self.database.dispose()


__all__ = ["Repositories", "Storage"]
