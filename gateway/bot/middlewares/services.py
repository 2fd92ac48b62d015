"""Middleware that injects per-update gateway services."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from gateway.bootstrap import Gateway
from gateway.i18n import I18nService


class ServicesMiddleware(BaseMiddleware):
    def __init__(self, gateway: Gateway, i18n: I18nService | None = None) -> None:
        super().__init__()
        self.gateway = gateway
        self.i18n = i18n or I18nService(default_locale=gateway.settings.default_language)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        from_user = getattr(event, "from_user", None)
        language_code = getattr(from_user, "language_code", None)
        async with self.gateway.services() as services:
            data["services"] = services
            data["settings"] = self.gateway.settings
            data["i18n"] = self.i18n
            data["locale"] = self.i18n.resolve_locale(language_code)
            return await handler(event, data)
