"""Error envelopes and exception handlers for the HTTP API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gateway.logging import logger
from gateway.services.exceptions import (
    GatewayError,
    InsufficientFunds,
    InternalServerError,
    InvalidApiKey,
    InvalidRequest,
    ProviderError,
    RateLimitExceeded,
    UserAlreadyExists,
    UserLocked,
    UserNotFound,
)

STATUS_CODES: dict[type[GatewayError], int] = {
    RateLimitExceeded: status.HTTP_429_TOO_MANY_REQUESTS,
    InvalidApiKey: status.HTTP_401_UNAUTHORIZED,
    InsufficientFunds: status.HTTP_402_PAYMENT_REQUIRED,
    UserLocked: status.HTTP_403_FORBIDDEN,
    ProviderError: status.HTTP_502_BAD_GATEWAY,
    UserAlreadyExists: status.HTTP_409_CONFLICT,
    UserNotFound: status.HTTP_404_NOT_FOUND,
    InvalidRequest: status.HTTP_400_BAD_REQUEST,
    InternalServerError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: GatewayError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, body: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": body})


async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.warning if status_code >= 500 else logger.info
    log("request_rejected", path=request.url.path, code=exc.code, status=status_code)
    return error_response(status_code, exc.to_dict())


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    failure = InvalidRequest(details=jsonable_encoder(exc.errors()))
    return error_response(status.HTTP_400_BAD_REQUEST, failure.to_dict())


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        code, message = "not_found", "The requested resource was not found."
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        code, message = "method_not_allowed", "The request method is not allowed for this resource."
    else:
        code, message = "invalid_request", str(exc.detail)
    return error_response(
        exc.status_code,
        {"code": code, "message": message, "type": "request_error", "param": None},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_request_error", path=request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, InternalServerError().to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GatewayError, handle_gateway_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


__all__ = ["STATUS_CODES", "register_error_handlers", "status_for"]
