"""Account registration and API key lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from gateway.config import BillingSettings
from gateway.domain.accounts import ApiKeyHasher, UserAccount
from gateway.domain.ports import UserRepository
from gateway.logging import logger
from gateway.services.balance import BalanceCalculator
from gateway.services.exceptions import UserAlreadyExists, UserNotFound
from gateway.services.ledger import LedgerService


@dataclass(slots=True)
class Registration:
    account: UserAccount
    api_key: str


@dataclass(slots=True)
class BalanceView:
    user_id: UUID
    balance: int
    locked: bool


class AccountService:
    def __init__(
        self,
        users: UserRepository,
        ledger: LedgerService,
        balances: BalanceCalculator,
        hasher: ApiKeyHasher,
        settings: BillingSettings | None = None,
    ) -> None:
        self.users = users
        self.ledger = ledger
        self.balances = balances
        self.hasher = hasher
        self.settings = settings or BillingSettings()

    async def register(self, telegram_id: int) -> Registration:
        existing = await self.users.find_by_telegram_id(telegram_id)
        if existing is not None:
            raise UserAlreadyExists(telegram_id)

        account, api_key = UserAccount.create(telegram_id, self.hasher)
        await self.users.save(account)

        bonus = self.settings.signup_bonus_credits
        if bonus > 0:
            await self.ledger.credit(account.id, bonus)

        logger.info(
            "account_registered",
            user_id=str(account.id),
            telegram_id=telegram_id,
            signup_bonus=bonus,
        )
        return Registration(account=account, api_key=api_key)

    async def rotate_api_key(self, user_id: UUID) -> str:
        """Revoke every active key and issue a fresh one."""

        account = await self.users.find_by_id(user_id)
        if account is None:
            raise UserNotFound(user_id)
        revoked = account.revoke_all_active()
        api_key = account.generate_api_key(self.hasher)
        await self.users.save(account)
        logger.info("api_key_rotated", user_id=str(user_id), revoked=revoked)
        return api_key

    async def get_account_by_telegram_id(self, telegram_id: int) -> UserAccount:
        account = await self.users.find_by_telegram_id(telegram_id)
        if account is None:
            raise UserNotFound(telegram_id)
        return account

    async def balance_for(self, account: UserAccount) -> BalanceView:
        balance = await self.balances.calculate_for(account.id)
        return BalanceView(user_id=account.id, balance=balance, locked=account.locked)


__all__ = ["AccountService", "BalanceView", "Registration"]
