from typing import Any

from fastapi import APIRouter, Depends

from gateway.api.deps import get_services
from gateway.bootstrap import GatewayServices
from gateway.services.catalog import list_models

router = APIRouter(prefix="/v1", tags=["models"])


@router.get("/models")
async def get_models(services: GatewayServices = Depends(get_services)) -> dict[str, Any]:
    price_list = await services.repositories.price_lists.find_active()
    return list_models(price_list)
