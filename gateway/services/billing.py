"""Metered chat-completion proxying.

One request walks a fixed sequence and never steps back:

1. authorize: resolve the raw key to an account via its digest
2. rate limit: fixed-window quota keyed by the account id
3. balance check: derived balance must be positive
4. provider call: bounded by a timeout; failures write nothing
5. cost and ledger: price the reported usage and append a settled debit
6. balance apply: re-sync the cached lock flag (balance itself stays derived)
7. respond with the provider body

Steps 3 to 6 run under the user's ledger lock. The append in step 5 is the only
durable commitment; if it fails the caller gets ``InternalServerError`` and
never sees the provider answer.
"""

from __future__ import annotations

import asyncio
from time import perf_counter
from typing import Any
from uuid import UUID

from gateway.config import BillingSettings, ProviderSettings
from gateway.domain.accounts import ApiKeyHasher, UserAccount
from gateway.domain.ports import ChatProvider, PriceListRepository, ProviderResult, UserRepository
from gateway.domain.pricing import PriceList
from gateway.logging import logger
from gateway.services.balance import BalanceCalculator
from gateway.services.exceptions import (
    ConfigurationError,
    InsufficientFunds,
    InvalidApiKey,
    InvalidRequest,
    ProviderError,
    RateLimitExceeded,
)
from gateway.services.ledger import LedgerService
from gateway.services.quota import QuotaTracker


class BillingPipeline:
    def __init__(
        self,
        *,
        users: UserRepository,
        price_lists: PriceListRepository,
        quota: QuotaTracker,
        balances: BalanceCalculator,
        ledger: LedgerService,
        provider: ChatProvider,
        hasher: ApiKeyHasher,
        billing_settings: BillingSettings | None = None,
        provider_settings: ProviderSettings | None = None,
    ) -> None:
        self.users = users
        self.price_lists = price_lists
        self.quota = quota
        self.balances = balances
        self.ledger = ledger
        self.provider = provider
        self.hasher = hasher
        self.billing_settings = billing_settings or BillingSettings()
        self.default_timeout = float(
            (provider_settings or ProviderSettings()).request_timeout_seconds
        )

    async def execute(
        self,
        api_key: str,
        payload: dict[str, Any],
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        account = await self.authorize(api_key)

        if not await self.quota.check_and_increment(account.id):
            raise RateLimitExceeded()

        async with self.ledger.serialized(account.id):
            balance = await self.balances.calculate_for(account.id)
            if balance <= 0:
                logger.info("billing_insufficient_funds", user_id=str(account.id), balance=balance)
                raise InsufficientFunds()

            if self.billing_settings.reject_unpriced_models:
                await self._ensure_priced(payload)

            result = await self._call_provider(account, payload, timeout)

            price_list = await self._active_price_list()
            transaction = await self.ledger.record_usage(account.id, result.usage, price_list)
            balance_after = await self._apply_balance(account.id)

        logger.info(
            "billing_settled",
            user_id=str(account.id),
            transaction_id=str(transaction.id),
            model=result.usage.model_name,
            prompt_tokens=result.usage.prompt_tokens,
            completion_tokens=result.usage.completion_tokens,
            cost=transaction.payload.cost,
            balance_after=balance_after,
        )
        return result.response

    async def authorize(self, api_key: str) -> UserAccount:
        """Resolve a raw key to its account; any mismatch is the same error."""

        if not api_key:
            raise InvalidApiKey()
        account = await self.users.find_by_api_key_hash(self.hasher.hash(api_key))
        if account is None or not account.is_api_key_valid(api_key, self.hasher):
            raise InvalidApiKey()
        return account

    async def _call_provider(
        self,
        account: UserAccount,
        payload: dict[str, Any],
        timeout: float | None,
    ) -> ProviderResult:
        limit = timeout if timeout is not None else self.default_timeout
        started = perf_counter()
        try:
            result = await asyncio.wait_for(self.provider.complete(payload), timeout=limit)
        except asyncio.TimeoutError as exc:
            logger.warning(
                "provider_call_timeout",
                user_id=str(account.id),
                timeout_seconds=limit,
            )
            raise ProviderError(exc, f"Provider did not answer within {limit:g} seconds.") from exc
        except Exception as exc:
            logger.warning(
                "provider_call_failed",
                user_id=str(account.id),
                error_type=exc.__class__.__name__,
                error=str(exc),
            )
            raise ProviderError(exc) from exc
        logger.info(
            "provider_call_completed",
            user_id=str(account.id),
            latency_ms=int((perf_counter() - started) * 1000),
        )
        return result

    async def _apply_balance(self, user_id: UUID) -> int | None:
        # The debit is durable at this point; only the cached flag may lag.
        try:
            return await self.ledger.sync_lock_flag(user_id)
        except Exception:
            logger.exception("account_lock_refresh_failed", user_id=str(user_id))
            return None

    async def _ensure_priced(self, payload: dict[str, Any]) -> None:
        model = payload.get("model")
        price_list = await self._active_price_list()
        if not isinstance(model, str) or price_list.find_active(model) is None:
            raise InvalidRequest(f"Model {model!r} is not available.", param="model")

    async def _active_price_list(self) -> PriceList:
        price_list = await self.price_lists.find_active()
        if price_list is None:
            raise ConfigurationError("Active price list not found.")
        return price_list


__all__ = ["BillingPipeline"]
