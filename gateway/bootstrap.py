"""Object graph for one running gateway process."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from gateway.config import GatewaySettings, get_settings
from gateway.domain.accounts import ApiKeyHasher
from gateway.domain.ports import ChatProvider
from gateway.domain.pricing import PriceList
from gateway.logging import logger
from gateway.repositories import Repositories, Storage
from gateway.services.accounts import AccountService
from gateway.services.balance import BalanceCalculator
from gateway.services.billing import BillingPipeline
from gateway.services.cost import CostCalculator
from gateway.services.ledger import LedgerService
from gateway.services.locks import KeyedLock
from gateway.services.provider import EchoProvider, OpenAICompatibleProvider
from gateway.services.quota import QuotaTracker
from gateway.services.seeds import ensure_price_list


@dataclass(slots=True)
class GatewayServices:
    repositories: Repositories
    balances: BalanceCalculator
    ledger: LedgerService
    accounts: AccountService
    billing: BillingPipeline


class Gateway:
    """Long-lived collaborators plus a factory for per-request services.

    Locks and the provider live here so they are shared by every request;
    repositories come from ``Storage.session()`` and are scoped to one request.
    """

    def __init__(
        self,
        settings: GatewaySettings | None = None,
        *,
        storage: Storage | None = None,
        provider: ChatProvider | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.storage = storage or Storage(self.settings)
        self.hasher = ApiKeyHasher(self.settings.api_key_secret.get_secret_value())
        self.cost_calculator = CostCalculator()
        self.ledger_locks = KeyedLock()
        self.quota_locks = KeyedLock()
        self._http_client: httpx.AsyncClient | None = None
        self.provider = provider or self._build_provider()

    def _build_provider(self) -> ChatProvider:
        provider_cfg = self.settings.provider
        if provider_cfg.kind == "openai":
            self._http_client = httpx.AsyncClient()
            return OpenAICompatibleProvider(self._http_client, provider_cfg)
        return EchoProvider()

    async def startup(self) -> PriceList:
        await self.storage.prepare()
        async with self.storage.session() as repos:
            price_list = await ensure_price_list(repos.price_lists, self.settings)
        logger.info(
            "gateway_started",
            storage=self.settings.storage,
            provider=self.settings.provider.kind,
            price_list_id=str(price_list.id),
        )
        return price_list

    async def shutdown(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
        await self.storage.close()

    def build_services(self, repos: Repositories) -> GatewayServices:
        balances = BalanceCalculator(repos.transactions, repos.price_lists, self.cost_calculator)
        ledger = LedgerService(repos.users, repos.transactions, balances, self.ledger_locks)
        accounts = AccountService(
            repos.users, ledger, balances, self.hasher, self.settings.billing
        )
        billing = BillingPipeline(
            users=repos.users,
            price_lists=repos.price_lists,
            quota=QuotaTracker(repos.quota, self.settings.quota, locks=self.quota_locks),
            balances=balances,
            ledger=ledger,
            provider=self.provider,
            hasher=self.hasher,
            billing_settings=self.settings.billing,
            provider_settings=self.settings.provider,
        )
        return GatewayServices(
            repositories=repos,
            balances=balances,
            ledger=ledger,
            accounts=accounts,
            billing=billing,
        )

    @asynccontextmanager
    async def services(self) -> AsyncIterator[GatewayServices]:
        async with self.storage.session() as repos:
            yield self.build_services(repos)


__all__ = ["Gateway", "GatewayServices"]
