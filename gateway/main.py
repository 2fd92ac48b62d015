"""Application entrypoint."""

from __future__ import annotations

import asyncio

import uvicorn
from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession

from gateway.api import create_app
from gateway.bootstrap import Gateway
from gateway.bot.middlewares import ServicesMiddleware
from gateway.bot.routers import setup_routers
from gateway.config import GatewaySettings, get_settings
from gateway.logging import configure_logging, logger


def build_dispatcher(gateway: Gateway) -> Dispatcher:
    dp = Dispatcher()
    dp.include_router(setup_routers())
    dp.message.middleware(ServicesMiddleware(gateway))
    return dp


def build_bot(settings: GatewaySettings) -> Bot:
    session = (
        AiohttpSession(proxy=settings.telegram_proxy) if settings.telegram_proxy else None
    )
    return Bot(token=settings.telegram_token.get_secret_value(), session=session)


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    gateway = Gateway(settings)
    await gateway.startup()

    app = create_app(gateway, manage_lifecycle=False)
    server = uvicorn.Server(
        uvicorn.Config(app, host=settings.api.host, port=settings.api.port, log_config=None)
    )

    tasks = [asyncio.create_task(server.serve(), name="http")]
    if settings.telegram_token is not None:
        bot = build_bot(settings)
        dp = build_dispatcher(gateway)
        tasks.append(asyncio.create_task(dp.start_polling(bot), name="telegram"))
    else:
        logger.info("telegram_disabled", reason="no token configured")

    logger.info(
        "gateway_serving",
        environment=settings.environment,
        host=settings.api.host,
        port=settings.api.port,
    )
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            task.result()
    finally:
        await gateway.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
