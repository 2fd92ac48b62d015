"""Tests for model listing and price list seeding."""

from __future__ import annotations

import pytest

from gateway.domain.pricing import PriceEntry, PriceList
from gateway.repositories.memory import InMemoryPriceListRepository
from gateway.services.catalog import list_models
from gateway.services.seeds import ensure_price_list


def test_list_models_without_price_list():
    assert list_models(None) == {"object": "list", "data": []}


def test_list_models_formats_active_entries():
    price_list = PriceList(
        entries=(
            PriceEntry(model_name="openai/gpt-4o", input_price_per_million=350, output_price_per_million=1050),
            PriceEntry(model_name="old/model", input_price_per_million=1, output_price_per_million=1, is_active=False),
            PriceEntry(model_name="local", input_price_per_million=0, output_price_per_million=0),
        )
    )

    listing = list_models(price_list)

    assert listing["object"] == "list"
    assert [card["id"] for card in listing["data"]] == ["openai/gpt-4o", "local"]
    card = listing["data"][0]
    assert card["object"] == "model"
    assert card["owned_by"] == "openai"
    assert card["created"] == int(price_list.created_at.timestamp())
    assert card["pricing"] == {
        "prompt": "350.00 Credits/1M tokens",
        "completion": "1050.00 Credits/1M tokens",
    }
    assert listing["data"][1]["owned_by"] == "local"


@pytest.mark.asyncio
async def test_ensure_price_list_seeds_once(settings):
    repo = InMemoryPriceListRepository()

    seeded = await ensure_price_list(repo, settings)
    again = await ensure_price_list(repo, settings)

    assert seeded.id == again.id
    assert [entry.model_name for entry in seeded.entries] == ["test/unit-model", "retired/model"]
    assert [entry.model_name for entry in seeded.active_prices()] == ["test/unit-model"]


@pytest.mark.asyncio
async def test_ensure_price_list_keeps_existing(settings, price_list):
    repo = InMemoryPriceListRepository()
    await repo.add(price_list)

    assert (await ensure_price_list(repo, settings)).id == price_list.id
