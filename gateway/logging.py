"""Structured JSON logging.

Every line is a JSON object with an ``event`` key plus keyword context. Values
under credential-like keys are masked before rendering so raw API keys and
upstream tokens never reach the log sink.
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping

import structlog

REDACTED = "***"
SENSITIVE_KEYS = frozenset({"api_key", "authorization", "password", "secret", "token"})


def redact_secrets(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: int | str = logging.INFO) -> None:
    numeric_level = _coerce_level(level)
    logging.basicConfig(level=numeric_level, format="%(message)s", handlers=[logging.StreamHandler()])
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request_context(**values: object) -> None:
    """Replace the per-request context merged into every log line."""

    structlog.contextvars.clear_contextvars()
    if values:
        structlog.contextvars.bind_contextvars(**values)


logger = structlog.get_logger()

__all__ = ["bind_request_context", "configure_logging", "logger", "redact_secrets"]
