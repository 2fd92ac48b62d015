"""Ledger writes: top-ups, usage debits and status settlement.

Every mutation for a user runs inside ``serialized(user_id)`` so there is at
most one in-flight ledger write per user. Balance stays derived; after a write
the account's cached ``locked`` flag is re-synced from the ledger.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from uuid import UUID

from gateway.domain.accounts import UserAccount
from gateway.domain.ports import TransactionRepository, UserRepository
from gateway.domain.pricing import PriceList
from gateway.domain.transactions import Transaction, TransactionStatus
from gateway.domain.usage import Usage
from gateway.logging import logger
from gateway.services.balance import BalanceCalculator
from gateway.services.cost import CostCalculator
from gateway.services.exceptions import (
    InternalServerError,
    InvalidRequest,
    TransactionStateError,
    UserNotFound,
)
from gateway.services.locks import KeyedLock


class LedgerService:
    def __init__(
        self,
        users: UserRepository,
        transactions: TransactionRepository,
        balances: BalanceCalculator,
        locks: KeyedLock,
        cost_calculator: CostCalculator | None = None,
    ) -> None:
        self.users = users
        self.transactions = transactions
        self.balances = balances
        self.locks = locks
        self.cost_calculator = cost_calculator or balances.cost_calculator

    def serialized(self, user_id: UUID) -> AbstractAsyncContextManager[None]:
        return self.locks.hold(user_id)

    async def credit(
        self,
        user_id: UUID,
        amount: int,
        *,
        status: TransactionStatus = TransactionStatus.COMPLETED,
    ) -> Transaction:
        if amount <= 0:
            raise InvalidRequest("Top-up amount must be positive.", param="amount")
        await self._require_account(user_id)
        async with self.serialized(user_id):
            transaction = Transaction.top_up(user_id, amount, status=status)
            await self._append(transaction)
            await self.sync_lock_flag(user_id)
        logger.info(
            "ledger_credit_recorded",
            user_id=str(user_id),
            transaction_id=str(transaction.id),
            amount=amount,
            status=transaction.status.value,
        )
        return transaction

    async def debit(self, user_id: UUID, usage: Usage, price_list: PriceList) -> Transaction:
        """Record usage outside the billing pipeline (imports, manual corrections)."""

        if usage.total_tokens <= 0:
            raise InvalidRequest("Usage must consume at least one token.", param="usage")
        await self._require_account(user_id)
        async with self.serialized(user_id):
            transaction = await self.record_usage(user_id, usage, price_list)
            await self.sync_lock_flag(user_id)
        return transaction

    async def record_usage(self, user_id: UUID, usage: Usage, price_list: PriceList) -> Transaction:
        """Append a settled usage entry. Caller must hold ``serialized(user_id)``."""

        cost = self.cost_calculator.calculate(usage, price_list)
        if cost == 0 and usage.total_tokens and price_list.find_active(usage.model_name) is None:
            logger.warning(
                "usage_unpriced",
                user_id=str(user_id),
                model=usage.model_name,
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
                price_list_id=str(price_list.id),
            )
        transaction = Transaction.usage(user_id, usage, cost, status=TransactionStatus.COMPLETED)
        await self._append(transaction)
        return transaction

    async def complete(self, transaction_id: UUID) -> Transaction:
        return await self._settle(transaction_id, TransactionStatus.COMPLETED)

    async def fail(self, transaction_id: UUID) -> Transaction:
        return await self._settle(transaction_id, TransactionStatus.FAILED)

    async def sync_lock_flag(self, user_id: UUID) -> int:
        """Re-derive the balance and persist the lock flag if it flips.

        Caller must hold ``serialized(user_id)``. The account is re-read here and
        only its flag is written, so concurrent key changes are left intact.
        """

        balance = await self.balances.calculate_for(user_id)
        account = await self._require_account(user_id)
        if account.refresh_lock(balance):
            await self.users.set_locked(user_id, account.locked)
            logger.info(
                "account_lock_changed",
                user_id=str(account.id),
                locked=account.locked,
                balance=balance,
            )
        return balance

    async def _settle(self, transaction_id: UUID, target: TransactionStatus) -> Transaction:
        transaction = await self.transactions.get(transaction_id)
        if transaction is None:
            raise InvalidRequest(f"Transaction {transaction_id} not found.", param="transaction_id")
        await self._require_account(transaction.user_id)
        async with self.serialized(transaction.user_id):
            try:
                if target is TransactionStatus.COMPLETED:
                    transaction.complete()
                else:
                    transaction.fail()
            except TransactionStateError as exc:
                raise InvalidRequest(str(exc), param="transaction_id") from exc
            await self.transactions.update_status(transaction)
            await self.sync_lock_flag(transaction.user_id)
        logger.info(
            "ledger_transaction_settled",
            transaction_id=str(transaction.id),
            user_id=str(transaction.user_id),
            status=transaction.status.value,
        )
        return transaction

    async def _append(self, transaction: Transaction) -> None:
        try:
            await self.transactions.append(transaction)
        except Exception as exc:
            logger.exception(
                "ledger_append_failed",
                user_id=str(transaction.user_id),
                transaction_id=str(transaction.id),
            )
            raise InternalServerError() from exc

    async def _require_account(self, user_id: UUID) -> UserAccount:
        account = await self.users.find_by_id(user_id)
        if account is None:
            raise UserNotFound(user_id)
        return account


__all__ = ["LedgerService"]
