"""Apres-ski venue routes — one parameterized handler for every resort."""

from fastapi import APIRouter

from errors import UnknownCategoryError
from models import QueryResult
from services.locations import LOCATIONS
from services.venues import get_venues

router = APIRouter(prefix="/api")

CATEGORIES = {"apres-ski"}


def _validate_category(category: str) -> str:
    category = category.lower()
    if category not in CATEGORIES:
        raise UnknownCategoryError(category, CATEGORIES)
    return category


@router.get("/{category}")
async def list_locations(category: str) -> dict:
    """Resorts that have a venue endpoint under ``category``."""
    category = _validate_category(category)
    locations = [
        {
            "slug": loc.slug,
            "title": loc.title,
            "country": loc.country,
            "path": f"/api/{category}/{loc.slug}",
        }
        for loc in LOCATIONS.values()
    ]
    return {"count": len(locations), "locations": locations}


@router.get("/{category}/{location_slug}", response_model=QueryResult)
async def location_venues(category: str, location_slug: str) -> QueryResult:
    """Bars, pubs and nightclubs near a resort. Cached for five minutes."""
    _validate_category(category)
    return await get_venues(location_slug)
