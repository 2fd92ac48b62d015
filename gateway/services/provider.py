"""Upstream chat-completion providers."""

from __future__ import annotations

import time
from typing import Any

import httpx
from pydantic import ValidationError

from gateway.config import ProviderSettings
from gateway.domain.ports import ProviderResult
from gateway.domain.usage import Usage
from gateway.logging import logger
from gateway.utils.retry import retry_async

PROVIDER_RETRY_BASE_DELAY = 0.5
# Connection-level failures only: the upstream never saw these requests.
_RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (httpx.ConnectError, httpx.ConnectTimeout)


class ProviderUnavailable(RuntimeError):
    """Raised when the upstream call fails or returns an unusable body."""


def extract_usage(response: dict[str, Any], requested_model: str | None) -> Usage:
    """Read token usage, billed against the model the caller asked for."""

    usage = response.get("usage")
    if not isinstance(usage, dict):
        raise ProviderUnavailable("Provider response carried no usage block.")
    try:
        return Usage(
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            model_name=requested_model or response.get("model") or "",
        )
    except ValidationError as exc:
        raise ProviderUnavailable(f"Provider usage block is malformed: {exc}") from exc


class OpenAICompatibleProvider:
    """Forward OpenAI-shaped chat completions to an OpenAI-compatible router."""

    def __init__(self, http_client: httpx.AsyncClient, settings: ProviderSettings | None = None) -> None:
        self._client = http_client
        self._settings = settings or ProviderSettings()

    @property
    def endpoint(self) -> str:
        return f"{str(self._settings.base_url).rstrip('/')}/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key.get_secret_value()}"
        return headers

    async def complete(self, payload: dict[str, Any]) -> ProviderResult:
        async def _request() -> httpx.Response:
            response = await self._client.post(
                self.endpoint,
                json=payload,
                headers=self._headers(),
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
            return response

        try:
            response = await retry_async(
                _request,
                max_attempts=self._settings.max_attempts,
                base_delay=PROVIDER_RETRY_BASE_DELAY,
                retry_on=_RETRYABLE_ERRORS,
                logger=logger,
                operation_name="provider_chat_completion",
            )
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:500] if exc.response is not None else str(exc)
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            raise ProviderUnavailable(f"Provider request failed ({status_code}): {detail}") from exc
        except httpx.RequestError as exc:
            raise ProviderUnavailable(f"Provider request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderUnavailable("Provider returned a non-JSON body.") from exc
        if not isinstance(body, dict):
            raise ProviderUnavailable("Provider returned an unexpected body.")
        return ProviderResult(response=body, usage=extract_usage(body, payload.get("model")))


class EchoProvider:
    """Deterministic stand-in used in development and tests."""

    def __init__(self, prompt_tokens: int = 10, completion_tokens: int = 20) -> None:
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.calls: list[dict[str, Any]] = []

    async def complete(self, payload: dict[str, Any]) -> ProviderResult:
        self.calls.append(payload)
        model = payload.get("model", "echo")
        response = {
            "id": "chatcmpl-mock",
            "object": "chat.completion",
            "created": int(time.time()),
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "message": {
                        "role": "assistant",
                        "content": f"This is a mock response from {model}",
                    },
                    "logprobs": None,
                    "finish_reason": "stop",
                }
            ],
            "usage": {
                "prompt_tokens": self.prompt_tokens,
                "completion_tokens": self.completion_tokens,
                "total_tokens": self.prompt_tokens + self.completion_tokens,
            },
        }
        return ProviderResult(response=response, usage=extract_usage(response, model))


__all__ = [
    "EchoProvider",
    "OpenAICompatibleProvider",
    "ProviderUnavailable",
    "extract_usage",
]
