"""Derived balance: a fold over the user's completed ledger entries."""

from __future__ import annotations

from typing import Iterable
from uuid import UUID

from gateway.domain.ports import PriceListRepository, TransactionRepository
from gateway.domain.pricing import PriceList
from gateway.domain.transactions import TopUp, Transaction
from gateway.services.cost import CostCalculator
from gateway.services.exceptions import ConfigurationError


class BalanceCalculator:
    def __init__(
        self,
        transactions: TransactionRepository,
        price_lists: PriceListRepository,
        cost_calculator: CostCalculator | None = None,
    ) -> None:
        self.transactions = transactions
        self.price_lists = price_lists
        self.cost_calculator = cost_calculator or CostCalculator()

    async def calculate_for(self, user_id: UUID) -> int:
        """Replay completed transactions, re-pricing usage with the active price list."""

        transactions = await self.transactions.list_for_user(user_id)
        price_list = await self.price_lists.find_active()
        if price_list is None:
            raise ConfigurationError("Active price list not found.")
        return self.fold(transactions, price_list)

    def fold(self, transactions: Iterable[Transaction], price_list: PriceList) -> int:
        balance = 0
        for transaction in transactions:
            if not transaction.is_completed:
                continue
            payload = transaction.payload
            if isinstance(payload, TopUp):
                balance += payload.amount
            else:
                balance += self.cost_calculator.calculate(payload.usage, price_list)
        return balance


__all__ = ["BalanceCalculator"]
