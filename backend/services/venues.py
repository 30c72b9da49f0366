"""Apres-ski venues per resort: cache slot in front of the Overpass client."""

import logging

from models import QueryResult
from services.cache import SlotCache
from services.locations import LOCATIONS, get_location
from services.overpass import overpass_client

logger = logging.getLogger(__name__)

slot_cache = SlotCache(LOCATIONS)


async def get_venues(slug: str) -> QueryResult:
    """Venues near the resort ``slug``, served from cache while fresh."""
    location = get_location(slug)

    result = await slot_cache.get_or_fetch(
        location.slug, lambda: overpass_client.fetch(location.descriptor)
    )
    logger.info("Serving %d venues for %s", result.count, location.slug)
    return result


def cache_status() -> dict:
    """State and last fetch time (ms since epoch) of every resort's slot."""
    return {
        key: {
            "state": slot_cache.state(key),
            "last_fetched_at": slot_cache.slot(key).last_fetched_at,
        }
        for key in slot_cache.keys()
    }
