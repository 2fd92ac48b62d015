from gateway.bot.middlewares.services import ServicesMiddleware

__all__ = ["ServicesMiddleware"]
