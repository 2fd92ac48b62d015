from aiogram import Router

from gateway.bot.routers import account


def setup_routers() -> Router:
    router = Router()
    router.include_router(account.router)
    return router


__all__ = ["setup_routers"]
