"""Telegram handlers for account self-service and admin top-ups."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import Message

from gateway.bootstrap import GatewayServices
from gateway.bot.utils.telegram import answer_with_retry
from gateway.config import GatewaySettings
from gateway.i18n import I18nService
from gateway.logging import logger
from gateway.services.exceptions import InvalidRequest, UserAlreadyExists, UserNotFound

router = Router()


@router.message(CommandStart())
async def handle_start(
    message: Message,
    services: GatewayServices,
    settings: GatewaySettings,
    i18n: I18nService,
    locale: str,
) -> None:
    if message.from_user is None:
        return
    telegram_id = message.from_user.id
    try:
        registration = await services.accounts.register(telegram_id)
    except UserAlreadyExists:
        text = i18n.gettext("start.existing", locale=locale, name=message.from_user.full_name)
        await answer_with_retry(message, text, parse_mode=None)
        return

    text = i18n.gettext(
        "start.registered",
        locale=locale,
        name=message.from_user.full_name,
        bonus=settings.billing.signup_bonus_credits,
        api_key=registration.api_key,
    )
    await answer_with_retry(message, text, parse_mode=None)


@router.message(Command("newkey"))
async def handle_new_key(
    message: Message,
    services: GatewayServices,
    i18n: I18nService,
    locale: str,
) -> None:
    if message.from_user is None:
        return
    try:
        account = await services.accounts.get_account_by_telegram_id(message.from_user.id)
    except UserNotFound:
        await answer_with_retry(message, i18n.gettext("account.missing", locale=locale), parse_mode=None)
        return

    api_key = await services.accounts.rotate_api_key(account.id)
    await answer_with_retry(
        message,
        i18n.gettext("newkey.issued", locale=locale, api_key=api_key),
        parse_mode=None,
    )


@router.message(Command("balance"))
async def handle_balance(
    message: Message,
    services: GatewayServices,
    i18n: I18nService,
    locale: str,
) -> None:
    if message.from_user is None:
        return
    try:
        account = await services.accounts.get_account_by_telegram_id(message.from_user.id)
    except UserNotFound:
        await answer_with_retry(message, i18n.gettext("account.missing", locale=locale), parse_mode=None)
        return

    view = await services.accounts.balance_for(account)
    lines = [i18n.gettext("balance.summary", locale=locale, balance=view.balance)]
    if view.locked:
        lines.append(i18n.gettext("balance.locked", locale=locale))
    await answer_with_retry(message, "\n".join(lines), parse_mode=None)


def _parse_topup_args(args: str | None) -> tuple[int, int] | None:
    parts = (args or "").split()
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


@router.message(Command("topup"))
async def handle_topup(
    message: Message,
    command: CommandObject,
    services: GatewayServices,
    settings: GatewaySettings,
    i18n: I18nService,
    locale: str,
) -> None:
    if message.from_user is None:
        return
    if settings.admin_telegram_id is None or message.from_user.id != settings.admin_telegram_id:
        logger.info("topup_forbidden", telegram_id=message.from_user.id)
        await answer_with_retry(message, i18n.gettext("topup.forbidden", locale=locale), parse_mode=None)
        return

    parsed = _parse_topup_args(command.args)
    if parsed is None:
        await answer_with_retry(message, i18n.gettext("topup.usage", locale=locale), parse_mode=None)
        return
    telegram_id, amount = parsed

    try:
        account = await services.accounts.get_account_by_telegram_id(telegram_id)
        await services.ledger.credit(account.id, amount)
    except UserNotFound:
        await answer_with_retry(
            message,
            i18n.gettext("topup.unknown_user", locale=locale, telegram_id=telegram_id),
            parse_mode=None,
        )
        return
    except InvalidRequest:
        await answer_with_retry(message, i18n.gettext("topup.usage", locale=locale), parse_mode=None)
        return

    balance = await services.balances.calculate_for(account.id)
    logger.info(
        "topup_completed",
        admin_telegram_id=message.from_user.id,
        user_id=str(account.id),
        amount=amount,
    )
    await answer_with_retry(
        message,
        i18n.gettext(
            "topup.done",
            locale=locale,
            amount=amount,
            telegram_id=telegram_id,
            balance=balance,
        ),
        parse_mode=None,
    )
