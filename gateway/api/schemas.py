"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = Field(min_length=1)
    content: Any = None


class ChatCompletionRequest(BaseModel):
    """OpenAI-shaped chat completion body; unknown fields pass through untouched."""

    model_config = ConfigDict(extra="allow", protected_namespaces=())

    model: str = Field(min_length=1)
    messages: list[ChatMessage] = Field(min_length=1)
    stream: bool = False

    @field_validator("stream")
    @classmethod
    def _reject_streaming(cls, value: bool) -> bool:
        if value:
            raise ValueError("Streaming responses are not supported.")
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ProxyRequest(BaseModel):
    api_key: str = Field(min_length=1)
    payload: ChatCompletionRequest


class RegisterRequest(BaseModel):
    telegram_id: int = Field(gt=0)


class RegisterResponse(BaseModel):
    user_id: UUID
    api_key: str


class RotateApiKeyRequest(BaseModel):
    user_id: UUID


class ApiKeyResponse(BaseModel):
    api_key: str


class BalanceResponse(BaseModel):
    user_id: UUID
    balance: int
    locked: bool


__all__ = [
    "ApiKeyResponse",
    "BalanceResponse",
    "ChatCompletionRequest",
    "ChatMessage",
    "ProxyRequest",
    "RegisterRequest",
    "RegisterResponse",
    "RotateApiKeyRequest",
]
