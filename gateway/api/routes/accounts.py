from fastapi import APIRouter, Depends

from gateway.api.deps import bearer_api_key, get_services
from gateway.api.schemas import (
    ApiKeyResponse,
    BalanceResponse,
    RegisterRequest,
    RegisterResponse,
    RotateApiKeyRequest,
)
from gateway.bootstrap import GatewayServices

router = APIRouter(prefix="/v1", tags=["accounts"])


@router.post("/register", response_model=RegisterResponse)
async def register(
    body: RegisterRequest,
    services: GatewayServices = Depends(get_services),
) -> RegisterResponse:
    registration = await services.accounts.register(body.telegram_id)
    return RegisterResponse(user_id=registration.account.id, api_key=registration.api_key)


@router.post("/api-keys/rotate", response_model=ApiKeyResponse)
async def rotate_api_key(
    body: RotateApiKeyRequest,
    services: GatewayServices = Depends(get_services),
) -> ApiKeyResponse:
    api_key = await services.accounts.rotate_api_key(body.user_id)
    return ApiKeyResponse(api_key=api_key)


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    api_key: str = Depends(bearer_api_key),
    services: GatewayServices = Depends(get_services),
) -> BalanceResponse:
    account = await services.billing.authorize(api_key)
    view = await services.accounts.balance_for(account)
    return BalanceResponse(user_id=view.user_id, balance=view.balance, locked=view.locked)
