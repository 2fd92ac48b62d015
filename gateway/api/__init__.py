"""HTTP surface of the gateway."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request

from gateway.api.errors import register_error_handlers
from gateway.api.routes import accounts, completions, health, models
from gateway.bootstrap import Gateway
from gateway.logging import bind_request_context, logger


def create_app(gateway: Gateway, *, manage_lifecycle: bool = True) -> FastAPI:
    """Build the FastAPI app around ``gateway``.

    With ``manage_lifecycle`` the app seeds storage on startup and releases it on
    shutdown; the process entrypoint turns it off because it owns the gateway.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if manage_lifecycle:
            await gateway.startup()
        try:
            yield
        finally:
            if manage_lifecycle:
                await gateway.shutdown()

    app = FastAPI(title="LLM Gateway", lifespan=lifespan)
    app.state.gateway = gateway

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid4().hex
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)
        started = perf_counter()
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        logger.info(
            "http_request",
            status=response.status_code,
            latency_ms=int((perf_counter() - started) * 1000),
        )
        return response

    register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(models.router)
    app.include_router(accounts.router)
    app.include_router(completions.router)
    return app


__all__ = ["create_app"]
