"""Per-location in-memory TTL cache slots. No Redis needed.

Each location key owns exactly one slot, created empty at process start.
A slot is only replaced by a successful fetch; a failed fetch leaves it as it
was and the caller sees the error, never the stale payload.

Note: there is no single-flight deduplication. Two requests hitting the same
stale slot at once both fetch from upstream and the later write wins. Each
uvicorn worker also holds its own slots.
"""

import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable

from models import QueryResult

logger = logging.getLogger(__name__)

CACHE_TTL_MS = 5 * 60 * 1000

EMPTY = "empty"
FRESH = "fresh"
STALE = "stale"


@dataclass(frozen=True)
class CacheSlot:
    last_fetched_at: int = 0  # ms since epoch, 0 = never
    payload: QueryResult | None = None


class SlotCache:
    def __init__(
        self,
        keys: Iterable[str],
        ttl_ms: int = CACHE_TTL_MS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._slots: dict[str, CacheSlot] = {key: CacheSlot() for key in keys}

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def slot(self, key: str) -> CacheSlot:
        return self._slots[key]

    def state(self, key: str) -> str:
        slot = self._slots[key]
        if slot.payload is None:
            return EMPTY
        if self._now_ms() - slot.last_fetched_at < self.ttl_ms:
            return FRESH
        return STALE

    async def get_or_fetch(
        self, key: str, fetch: Callable[[], Awaitable[QueryResult]]
    ) -> QueryResult:
        """Return the fresh payload for ``key`` or fetch, store and return a new one.

        Exceptions from ``fetch`` propagate and the slot is left untouched.
        """
        state = self.state(key)
        if state == FRESH:
            logger.info("Cache HIT for %s", key)
            return self._slots[key].payload

        logger.info("Cache MISS for %s (%s), fetching", key, state)
        result = await fetch()
        self._slots[key] = CacheSlot(last_fetched_at=self._now_ms(), payload=result)
        return result

    def keys(self) -> list[str]:
        return list(self._slots)

    def reset(self) -> None:
        self._slots = {key: CacheSlot() for key in self._slots}
