"""Tests for Telegram account handlers with in-memory services."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from gateway.bot.middlewares.services import ServicesMiddleware
from gateway.bot.routers.account import (
    _parse_topup_args,
    handle_balance,
    handle_new_key,
    handle_start,
    handle_topup,
)
from gateway.i18n import I18nService

ADMIN_ID = 1000


class DummyFromUser:
    def __init__(self, user_id: int = 1, full_name: str = "Test User", language_code: str = "en"):
        self.id = user_id
        self.full_name = full_name
        self.language_code = language_code


class DummyMessage:
    def __init__(self, text: str = "", from_user: DummyFromUser | None = None):
        self.text = text
        self.from_user = from_user or DummyFromUser()
        self.answers: list[tuple[str, str | None]] = []

    async def answer(self, text: str, parse_mode: str | None = None):
        self.answers.append((text, parse_mode))
        return text


@pytest.fixture
def i18n() -> I18nService:
    return I18nService(default_locale="en")


@pytest.mark.asyncio
async def test_start_registers_and_returns_key(gateway, i18n):
    message = DummyMessage("/start", DummyFromUser(user_id=5))
    async with gateway.services() as services:
        await handle_start(message, services, gateway.settings, i18n, "en")
        account = await services.accounts.get_account_by_telegram_id(5)

    text = message.answers[0][0]
    assert "sk-" in text
    assert "10000" in text
    assert len(account.active_keys()) == 1


@pytest.mark.asyncio
async def test_start_twice_does_not_issue_second_key(gateway, i18n):
    async with gateway.services() as services:
        await handle_start(DummyMessage("/start", DummyFromUser(user_id=5)), services, gateway.settings, i18n, "en")
        repeat = DummyMessage("/start", DummyFromUser(user_id=5))
        await handle_start(repeat, services, gateway.settings, i18n, "en")

    assert "sk-" not in repeat.answers[0][0]
    assert "/newkey" in repeat.answers[0][0]


@pytest.mark.asyncio
async def test_newkey_rotates(gateway, i18n):
    async with gateway.services() as services:
        await handle_start(DummyMessage("/start", DummyFromUser(user_id=5)), services, gateway.settings, i18n, "en")
        message = DummyMessage("/newkey", DummyFromUser(user_id=5))
        await handle_new_key(message, services, i18n, "en")
        account = await services.accounts.get_account_by_telegram_id(5)

    new_key = message.answers[0][0].rsplit("\n", 1)[-1]
    assert account.is_api_key_valid(new_key, gateway.hasher)
    assert len(account.active_keys()) == 1


@pytest.mark.asyncio
async def test_commands_without_account(gateway, i18n):
    async with gateway.services() as services:
        balance_message = DummyMessage("/balance", DummyFromUser(user_id=6))
        key_message = DummyMessage("/newkey", DummyFromUser(user_id=6))
        await handle_balance(balance_message, services, i18n, "en")
        await handle_new_key(key_message, services, i18n, "en")

    expected = i18n.gettext("account.missing", locale="en")
    assert balance_message.answers[0][0] == expected
    assert key_message.answers[0][0] == expected


@pytest.mark.asyncio
async def test_balance_in_russian(gateway, i18n):
    async with gateway.services() as services:
        await handle_start(DummyMessage("/start", DummyFromUser(user_id=5)), services, gateway.settings, i18n, "ru")
        message = DummyMessage("/balance", DummyFromUser(user_id=5, language_code="ru"))
        await handle_balance(message, services, i18n, "ru")

    assert message.answers[0][0] == "Баланс: 10000 кредитов"


@pytest.mark.asyncio
async def test_topup_by_admin(gateway, i18n):
    async with gateway.services() as services:
        await handle_start(DummyMessage("/start", DummyFromUser(user_id=5)), services, gateway.settings, i18n, "en")
        message = DummyMessage("/topup 5 250", DummyFromUser(user_id=ADMIN_ID))
        await handle_topup(message, SimpleNamespace(args="5 250"), services, gateway.settings, i18n, "en")
        account = await services.accounts.get_account_by_telegram_id(5)
        balance = await services.balances.calculate_for(account.id)

    assert balance == 10_250
    assert "10250" in message.answers[0][0]


@pytest.mark.asyncio
async def test_topup_rejected_for_non_admin(gateway, i18n):
    async with gateway.services() as services:
        await handle_start(DummyMessage("/start", DummyFromUser(user_id=5)), services, gateway.settings, i18n, "en")
        message = DummyMessage("/topup 5 250", DummyFromUser(user_id=5))
        await handle_topup(message, SimpleNamespace(args="5 250"), services, gateway.settings, i18n, "en")
        account = await services.accounts.get_account_by_telegram_id(5)
        balance = await services.balances.calculate_for(account.id)

    assert message.answers[0][0] == i18n.gettext("topup.forbidden", locale="en")
    assert balance == 10_000


@pytest.mark.asyncio
@pytest.mark.parametrize("args", [None, "5", "5 abc", "5 -10", "5 0"])
async def test_topup_bad_arguments(gateway, i18n, args):
    async with gateway.services() as services:
        await handle_start(DummyMessage("/start", DummyFromUser(user_id=5)), services, gateway.settings, i18n, "en")
        message = DummyMessage("/topup", DummyFromUser(user_id=ADMIN_ID))
        await handle_topup(message, SimpleNamespace(args=args), services, gateway.settings, i18n, "en")

    assert message.answers[0][0] == i18n.gettext("topup.usage", locale="en")


@pytest.mark.asyncio
async def test_topup_unknown_user(gateway, i18n):
    async with gateway.services() as services:
        message = DummyMessage("/topup 99 10", DummyFromUser(user_id=ADMIN_ID))
        await handle_topup(message, SimpleNamespace(args="99 10"), services, gateway.settings, i18n, "en")

    assert "99" in message.answers[0][0]


def test_parse_topup_args():
    assert _parse_topup_args("12 30") == (12, 30)
    assert _parse_topup_args(" 12   30 ") == (12, 30)
    assert _parse_topup_args("12") is None
    assert _parse_topup_args("a b") is None


@pytest.mark.asyncio
async def test_services_middleware_injects_context(gateway):
    middleware = ServicesMiddleware(gateway)
    event = SimpleNamespace(from_user=DummyFromUser(language_code="ru-RU"))
    seen = {}

    async def handler(evt, data):
        seen.update(data)
        return "ok"

    result = await middleware(handler, event, {})

    assert result == "ok"
    assert seen["locale"] == "ru"
    assert seen["settings"] is gateway.settings
    assert seen["services"].accounts is not None
    assert isinstance(seen["i18n"], I18nService)


@pytest.mark.asyncio
async def test_services_middleware_propagates_errors(gateway):
    middleware = ServicesMiddleware(gateway)

    async def handler(evt, data):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await middleware(handler, SimpleNamespace(from_user=None), {})
