"""Usage pricing."""

from __future__ import annotations

from gateway.domain.pricing import TOKENS_PER_PRICE_UNIT, PriceList
from gateway.domain.usage import Usage


class CostCalculator:
    """Turn a usage record into a non-positive ledger amount.

    Unknown or inactive models cost nothing; callers that care about unpriced
    traffic check ``PriceList.find_active`` themselves.
    """

    def calculate(self, usage: Usage, price_list: PriceList) -> int:
        price = price_list.find_active(usage.model_name)
        if price is None:
            return 0

        scaled = (
            usage.prompt_tokens * price.input_price_per_million
            + usage.completion_tokens * price.output_price_per_million
        )
        # Ceiling division keeps fractional credits on the house side.
        return -_ceil_div(scaled, TOKENS_PER_PRICE_UNIT)


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


__all__ = ["CostCalculator"]
