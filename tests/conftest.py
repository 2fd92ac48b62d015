"""Shared pytest fixtures for gateway tests."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gateway.bootstrap import Gateway
from gateway.config import GatewaySettings, PriceEntrySettings, PricingSettings, QuotaSettings
from gateway.db.base import Base
from gateway.domain.accounts import ApiKeyHasher
from gateway.domain.pricing import PriceEntry, PriceList
from gateway.repositories.memory import (
    InMemoryPriceListRepository,
    InMemoryQuotaStore,
    InMemoryTransactionRepository,
    InMemoryUserRepository,
)
from gateway.services.provider import EchoProvider

TEST_MODEL = "test/unit-model"


class _AsyncSessionWrapper:
    def __init__(self, sync_session) -> None:
        self._sync = sync_session

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._sync.get(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    def add_all(self, objs) -> None:
        self._sync.add_all(objs)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def close(self) -> None:
        self._sync.close()


@pytest_asyncio.fixture
async def session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sync_session = SessionLocal()
    try:
        yield _AsyncSessionWrapper(sync_session)
    finally:
        sync_session.close()
        engine.dispose()


@pytest.fixture
def hasher() -> ApiKeyHasher:
    return ApiKeyHasher("test-secret")


@pytest.fixture
def price_list() -> PriceList:
    """One credit per prompt token and two per completion token."""

    return PriceList(
        entries=(
            PriceEntry(
                model_name=TEST_MODEL,
                input_price_per_million=1_000_000,
                output_price_per_million=2_000_000,
            ),
        )
    )


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def transactions() -> InMemoryTransactionRepository:
    return InMemoryTransactionRepository()


@pytest.fixture
def quota_store() -> InMemoryQuotaStore:
    return InMemoryQuotaStore()


@pytest_asyncio.fixture
async def price_lists(price_list) -> InMemoryPriceListRepository:
    repo = InMemoryPriceListRepository()
    await repo.add(price_list)
    return repo


@pytest.fixture
def settings() -> GatewaySettings:
    return GatewaySettings(
        _env_file=None,
        storage="memory",
        api_key_secret="test-secret",
        admin_telegram_id=1000,
        quota=QuotaSettings(max_requests=5, window_seconds=60),
        pricing=PricingSettings(
            seed_prices=[
                PriceEntrySettings(
                    model_name=TEST_MODEL,
                    input_price_per_million=1_000_000,
                    output_price_per_million=2_000_000,
                ),
                PriceEntrySettings(
                    model_name="retired/model",
                    input_price_per_million=5,
                    output_price_per_million=5,
                    is_active=False,
                ),
            ]
        ),
    )


@pytest.fixture
def echo_provider() -> EchoProvider:
    return EchoProvider(prompt_tokens=10, completion_tokens=20)


@pytest_asyncio.fixture
async def gateway(settings, echo_provider):
    gw = Gateway(settings, provider=echo_provider)
    await gw.startup()
    try:
        yield gw
    finally:
        await gw.shutdown()
