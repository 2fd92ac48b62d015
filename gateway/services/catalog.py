"""OpenAI-style model listing built from the active price list."""

from __future__ import annotations

from typing import Any

from gateway.domain.pricing import PriceEntry, PriceList
from gateway.utils.datetime import unix_seconds

CREDITS_UNIT_LABEL = "Credits/1M tokens"


def _format_price(value: int) -> str:
    return f"{value:.2f} {CREDITS_UNIT_LABEL}"


def _model_card(entry: PriceEntry, created: int) -> dict[str, Any]:
    return {
        "id": entry.model_name,
        "object": "model",
        "created": created,
        "owned_by": entry.model_name.split("/")[0] or "unknown",
        "pricing": {
            "prompt": _format_price(entry.input_price_per_million),
            "completion": _format_price(entry.output_price_per_million),
        },
    }


def list_models(price_list: PriceList | None) -> dict[str, Any]:
    if price_list is None:
        return {"object": "list", "data": []}
    created = unix_seconds(price_list.created_at)
    return {
        "object": "list",
        "data": [_model_card(entry, created) for entry in price_list.active_prices()],
    }


__all__ = ["list_models"]
