"""Startup seed helpers."""

from __future__ import annotations

from gateway.config import GatewaySettings
from gateway.domain.ports import PriceListRepository
from gateway.domain.pricing import PriceEntry, PriceList
from gateway.logging import logger


async def ensure_price_list(price_lists: PriceListRepository, settings: GatewaySettings) -> PriceList:
    """Make sure an active price list exists, seeding one from settings if needed."""

    active = await price_lists.find_active()
    if active is not None:
        return active

    price_list = PriceList(
        entries=tuple(
            PriceEntry(
                model_name=item.model_name,
                input_price_per_million=item.input_price_per_million,
                output_price_per_million=item.output_price_per_million,
                is_active=item.is_active,
            )
            for item in settings.pricing.seed_prices
        )
    )
    await price_lists.add(price_list, activate=True)
    logger.info(
        "price_list_seeded",
        price_list_id=str(price_list.id),
        models=len(price_list.entries),
    )
    return price_list


__all__ = ["ensure_price_list"]
