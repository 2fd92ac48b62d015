"""Domain-specific exceptions."""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    pass


class ConfigurationError(ServiceError):
    """Deployment precondition is missing (e.g. no active price list)."""


class TransactionStateError(ServiceError):
    pass


class GatewayError(ServiceError):
    """Expected, caller-facing failure with a stable machine-readable code."""

    code = "gateway_error"
    type = "api_error"
    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None, *, param: str | None = None) -> None:
        self.message = message or self.default_message
        self.param = param
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "type": self.type,
            "param": self.param,
        }


class RateLimitExceeded(GatewayError):
    code = "rate_limit_exceeded"
    type = "rate_limit_error"
    default_message = "Too many requests, please slow down."


class InvalidApiKey(GatewayError):
    code = "invalid_api_key"
    type = "auth_error"
    default_message = "Invalid API key provided."


class InsufficientFunds(GatewayError):
    code = "insufficient_funds"
    type = "billing_error"
    default_message = "Insufficient balance to perform this request."


class UserLocked(GatewayError):
    code = "user_locked"
    type = "auth_error"
    default_message = "Account is locked until the balance is restored."


class ProviderError(GatewayError):
    code = "provider_error"
    type = "upstream_error"
    default_message = "The upstream provider failed to complete the request."

    def __init__(self, cause: BaseException | None = None, message: str | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class UserAlreadyExists(GatewayError):
    code = "user_already_exists"
    type = "auth_error"

    def __init__(self, telegram_id: int) -> None:
        self.telegram_id = telegram_id
        super().__init__(f"User with telegramId {telegram_id} already exists.")


class UserNotFound(GatewayError):
    code = "user_not_found"
    type = "request_error"

    def __init__(self, user_id: object) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} not found.")


class InvalidRequest(GatewayError):
    code = "invalid_request"
    type = "request_error"
    default_message = "Validation failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: Any = None,
        param: str | None = None,
    ) -> None:
        self.details = details
        super().__init__(message, param=param)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.details is not None:
            payload["errors"] = self.details
        return payload


class ApiKeyLimitReached(InvalidRequest):
    code = "api_key_limit_reached"
    default_message = "User cannot have more than 5 active API keys."


class InternalServerError(GatewayError):
    code = "internal_server_error"
    default_message = "An unexpected error occurred."


__all__ = [
    "ApiKeyLimitReached",
    "ConfigurationError",
    "GatewayError",
    "InsufficientFunds",
    "InternalServerError",
    "InvalidApiKey",
    "InvalidRequest",
    "ProviderError",
    "RateLimitExceeded",
    "ServiceError",
    "TransactionStateError",
    "UserAlreadyExists",
    "UserLocked",
    "UserNotFound",
]
