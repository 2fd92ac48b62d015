"""Tests for price list snapshots and the cost calculator."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gateway.domain.pricing import PriceEntry, PriceList
from gateway.domain.usage import Usage
from gateway.services.cost import CostCalculator


def _entry(name: str, *, active: bool = True, prompt: int = 100, completion: int = 200) -> PriceEntry:
    return PriceEntry(
        model_name=name,
        input_price_per_million=prompt,
        output_price_per_million=completion,
        is_active=active,
    )


def test_active_prices_keeps_order_and_skips_inactive():
    price_list = PriceList(
        entries=(
            _entry("a"),
            _entry("b", active=False),
            _entry("c"),
            _entry("d", active=False),
            _entry("e"),
        )
    )

    assert [entry.model_name for entry in price_list.active_prices()] == ["a", "c", "e"]


def test_active_prices_empty_list():
    assert PriceList().active_prices() == ()


def test_duplicate_model_names_rejected():
    with pytest.raises(ValidationError):
        PriceList(entries=(_entry("a"), _entry("a", prompt=1)))


def test_price_list_is_immutable():
    price_list = PriceList(entries=(_entry("a"),))
    with pytest.raises(ValidationError):
        price_list.entries = ()


def test_negative_prices_rejected():
    with pytest.raises(ValidationError):
        _entry("a", prompt=-1)


def test_find_active_ignores_inactive_entries():
    price_list = PriceList(entries=(_entry("a", active=False),))
    assert price_list.find_active("a") is None


def test_cost_for_priced_model(price_list):
    usage = Usage(prompt_tokens=10, completion_tokens=20, model_name="test/unit-model")
    assert CostCalculator().calculate(usage, price_list) == -50


def test_cost_for_unknown_model_is_zero(price_list):
    usage = Usage(prompt_tokens=10_000, completion_tokens=10_000, model_name="unknown/model")
    assert CostCalculator().calculate(usage, price_list) == 0


def test_cost_for_inactive_model_is_zero():
    price_list = PriceList(entries=(_entry("a", active=False, prompt=1_000_000),))
    usage = Usage(prompt_tokens=5, completion_tokens=5, model_name="a")
    assert CostCalculator().calculate(usage, price_list) == 0


def test_cost_is_scaled_per_million_tokens():
    price_list = PriceList(entries=(_entry("gpt", prompt=350, completion=1050),))
    usage = Usage(prompt_tokens=2_000_000, completion_tokens=1_000_000, model_name="gpt")
    assert CostCalculator().calculate(usage, price_list) == -(700 + 1050)


def test_fractional_cost_rounds_away_from_zero():
    price_list = PriceList(entries=(_entry("gpt", prompt=350, completion=1050),))
    usage = Usage(prompt_tokens=1, completion_tokens=0, model_name="gpt")
    assert CostCalculator().calculate(usage, price_list) == -1


@pytest.mark.parametrize(
    ("prompt", "completion"),
    [(0, 0), (1, 0), (0, 1), (999_999, 1), (123_456, 654_321)],
)
def test_cost_is_never_positive(prompt, completion):
    price_list = PriceList(entries=(_entry("gpt", prompt=7, completion=13),))
    usage = Usage(prompt_tokens=prompt, completion_tokens=completion, model_name="gpt")
    assert CostCalculator().calculate(usage, price_list) <= 0


def test_zero_usage_costs_nothing(price_list):
    usage = Usage(prompt_tokens=0, completion_tokens=0, model_name="test/unit-model")
    assert CostCalculator().calculate(usage, price_list) == 0
