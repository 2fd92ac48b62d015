"""FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Header, Request

from gateway.bootstrap import Gateway, GatewayServices


def get_gateway(request: Request) -> Gateway:
    return request.app.state.gateway


async def get_services(gateway: Gateway = Depends(get_gateway)) -> AsyncIterator[GatewayServices]:
    async with gateway.services() as services:
        yield services


def bearer_api_key(authorization: str | None = Header(default=None)) -> str:
    """Extract the raw key from ``Authorization: Bearer <key>``; empty when absent."""

    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


__all__ = ["bearer_api_key", "get_gateway", "get_services"]
