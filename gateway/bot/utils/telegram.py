"""Reply helper for bot handlers."""

from __future__ import annotations

import asyncio
from typing import Any

from aiogram.exceptions import TelegramNetworkError, TelegramRetryAfter
from aiogram.types import Message

from gateway.logging import logger
from gateway.utils.retry import retry_async

TELEGRAM_SEND_MAX_ATTEMPTS = 3
TELEGRAM_SEND_BASE_DELAY = 0.3
# Longest flood-control wait a handler will sit through.
TELEGRAM_MAX_FLOOD_WAIT = 5


async def answer_with_retry(message: Message, text: str, **kwargs: Any) -> Any:
    """Reply to ``message``; network blips are retried, flood control is waited out once."""

    async def _send() -> Any:
        return await retry_async(
            lambda: message.answer(text, **kwargs),
            max_attempts=TELEGRAM_SEND_MAX_ATTEMPTS,
            base_delay=TELEGRAM_SEND_BASE_DELAY,
            retry_on=(TelegramNetworkError,),
            logger=logger,
            operation_name="telegram_answer",
        )

    try:
        return await _send()
    except TelegramRetryAfter as exc:
        if exc.retry_after > TELEGRAM_MAX_FLOOD_WAIT:
            raise
        logger.warning("telegram_flood_wait", retry_after=exc.retry_after)
        await asyncio.sleep(exc.retry_after)
        return await _send()


__all__ = ["answer_with_retry"]
