"""Metered chat-completion endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from gateway.api.deps import bearer_api_key, get_services
from gateway.api.schemas import ChatCompletionRequest, ProxyRequest
from gateway.bootstrap import GatewayServices

router = APIRouter(tags=["completions"])


@router.post("/v1/chat/completions")
async def chat_completions(
    body: ChatCompletionRequest,
    api_key: str = Depends(bearer_api_key),
    services: GatewayServices = Depends(get_services),
) -> dict[str, Any]:
    return await services.billing.execute(api_key, body.to_payload())


@router.post("/proxy")
async def proxy(
    body: ProxyRequest,
    services: GatewayServices = Depends(get_services),
) -> dict[str, Any]:
    """Same pipeline with the key carried in the body instead of a header."""

    return await services.billing.execute(body.api_key, body.payload.to_payload())
