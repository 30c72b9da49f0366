"""Overpass (OpenStreetMap) client for apres-ski venues.

Free API, no key required. One POST per location query, retried once after a
short pause if the upstream is unreachable or answers with an error.
"""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from config import settings
from errors import UpstreamFailure
from models import NO_NAME, UNKNOWN_CATEGORY, AreaLocation, Place, PointLocation, QueryResult

logger = logging.getLogger(__name__)

VENUE_CATEGORIES = ("bar", "pub", "nightclub")
ELEMENT_TYPES = ("node", "way", "relation")

MAX_ATTEMPTS = 2
RETRY_DELAY_SECONDS = 0.8
QUERY_TIMEOUT_SECONDS = 25

# Tags checked in order for a venue's website
WEBSITE_TAGS = ("website", "contact:website", "contact_website")


def build_query(
    location: AreaLocation | PointLocation,
    categories: tuple[str, ...] = VENUE_CATEGORIES,
    timeout: int = QUERY_TIMEOUT_SECONDS,
) -> str:
    """Build the Overpass QL query for venues of ``categories`` at ``location``."""
    lines = [f"[out:json][timeout:{timeout}];"]

    if isinstance(location, AreaLocation):
        lines.append(f'area["name"="{_escape(location.name)}"]["boundary"="administrative"]->.a;')
        scope = "(area.a)"
    else:
        scope = f"(around:{location.radius_m},{location.latitude},{location.longitude})"

    lines.append("(")
    for element_type in ELEMENT_TYPES:
        for category in categories:
            lines.append(f'  {element_type}["amenity"="{_escape(category)}"]{scope};')
    lines.append(");")
    lines.append("out center tags;")
    return "\n".join(lines) + "\n"


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def normalize(data: dict) -> QueryResult:
    """Turn an Overpass JSON response into a QueryResult."""
    elements = data.get("elements") or []
    return QueryResult.from_places(_to_place(element) for element in elements)


def _to_place(element: dict) -> Place:
    tags = element.get("tags") or {}
    center = element.get("center") or {}

    website = None
    for tag in WEBSITE_TAGS:
        if tags.get(tag):
            website = tags[tag]
            break

    return Place(
        id=element.get("id"),
        category=tags.get("amenity") or UNKNOWN_CATEGORY,
        name=tags.get("name") or NO_NAME,
        latitude=_first_present(element.get("lat"), center.get("lat")),
        longitude=_first_present(element.get("lon"), center.get("lon")),
        website=website,
    )


def _first_present(*values):
    # 0.0 is a valid coordinate, so only None counts as missing
    for value in values:
        if value is not None:
            return value
    return None


class OverpassClient:
    """Async Overpass client with a single retry.

    Args:
        url: Overpass interpreter endpoint.
        user_agent: Sent with every request (Overpass asks clients to identify).
        timeout: HTTP timeout in seconds for each attempt.
        retry_delay: Pause before the second attempt, in seconds.
        transport: Optional httpx transport (tests plug in ``httpx.MockTransport``).
    """

    def __init__(
        self,
        url: str,
        user_agent: str,
        timeout: float = 30,
        retry_delay: float = RETRY_DELAY_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout
        self.retry_delay = retry_delay
        self.transport = transport

    async def fetch(self, location: AreaLocation | PointLocation) -> QueryResult:
        """Query venues at ``location``. Raises UpstreamFailure after the retry fails."""
        data = await self._request(build_query(location))
        try:
            return normalize(data)
        except (AttributeError, TypeError, ValidationError) as e:
            logger.error("Unexpected Overpass response shape: %s", e)
            raise UpstreamFailure(f"Malformed Overpass response: {e}") from e

    async def _request(self, query: str) -> dict:
        headers = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
        details = ""

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, MAX_ATTEMPTS + 1):
                try:
                    resp = await client.post(self.url, data={"data": query}, headers=headers)
                    if resp.is_success:
                        return resp.json()
                    details = resp.text
                    logger.warning(
                        "Overpass attempt %d/%d returned HTTP %d", attempt, MAX_ATTEMPTS, resp.status_code
                    )
                except httpx.HTTPError as e:
                    details = str(e) or type(e).__name__
                    logger.warning("Overpass attempt %d/%d failed: %s", attempt, MAX_ATTEMPTS, details)
                except ValueError as e:
                    details = f"Invalid JSON from Overpass: {e}"
                    logger.warning("Overpass attempt %d/%d failed: %s", attempt, MAX_ATTEMPTS, details)

                if attempt < MAX_ATTEMPTS:
                    await asyncio.sleep(self.retry_delay)

        logger.error("Overpass request failed after %d attempts: %s", MAX_ATTEMPTS, details)
        raise UpstreamFailure(details)


overpass_client = OverpassClient(
    url=settings.overpass_url,
    user_agent=settings.overpass_user_agent,
    timeout=settings.overpass_timeout_sec,
)
