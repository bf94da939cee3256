"""
Refreshable restaurant cache: (places lookup -> batched upsert) behind a TTL cache keyed by (lat, lng, radius).

- Fresh hit: returned without touching the places API or the database.
- Miss or expired: one caller (the leader) fetches and upserts; concurrent callers for the same
  key share the leader's Future. If an expired entry exists, followers get the stale list
  instead of waiting. Different keys never wait on each other.
- Failed refresh: nothing is cached, every waiter gets the same exception, next call retries.

Owned explicitly (app.state.restaurant_cache); tests build their own instance with a fake clock.
"""
import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable

from sqlalchemy.orm import Session

from dinner_groups.core.constants import RESTAURANTS_CACHE_KEY_PREFIX
from dinner_groups.services.places.types import PlaceResult
from dinner_groups.services.restaurants.store import upsert_restaurants

logger = logging.getLogger(__name__)

FetchFn = Callable[[float, float, float], list[PlaceResult]]


def cache_key(lat: float, lng: float, radius: float) -> str:
    return f"{RESTAURANTS_CACHE_KEY_PREFIX}:{lat}:{lng}:{radius}"


class _Entry:
    __slots__ = ("value", "fetched_at")

    def __init__(self, value: list[PlaceResult], fetched_at: float):
        self.value = value
        self.fetched_at = fetched_at


class RestaurantCache:
    """TTL + LRU cache of nearby-restaurant lists with single-flight refresh."""

    def __init__(
        self,
        fetch: FetchFn,
        session_factory: Callable[[], Session],
        *,
        ttl_seconds: float = 60 * 60 * 4,
        batch_size: int = 20,
        max_entries: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._session_factory = session_factory
        self._ttl = ttl_seconds
        self._batch_size = batch_size
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._in_flight: dict[str, Future] = {}

    def _is_fresh(self, entry: _Entry) -> bool:
        return self._clock() - entry.fetched_at < self._ttl

    def get_restaurants(self, lat: float, lng: float, radius: float) -> list[PlaceResult]:
        key = cache_key(lat, lng, radius)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_fresh(entry):
                self._entries.move_to_end(key)
                logger.debug("Restaurant cache hit: %s", key)
                return list(entry.value)
            future = self._in_flight.get(key)
            if future is None:
                future = Future()
                self._in_flight[key] = future
                leader = True
            else:
                leader = False
                if entry is not None:
                    # Refresh already running; serve the expired list rather than block
                    return list(entry.value)

        if not leader:
            return list(future.result())

        try:
            value = self._refresh(lat, lng, radius)
        except BaseException as e:  # includes KeyboardInterrupt: waiters must not block forever
            with self._lock:
                self._in_flight.pop(key, None)
            future.set_exception(e)
            logger.warning("Restaurant cache refresh failed for %s: %s", key, e)
            raise
        with self._lock:
            self._entries[key] = _Entry(value, self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
            self._in_flight.pop(key, None)
        future.set_result(value)
        return list(value)

    def _refresh(self, lat: float, lng: float, radius: float) -> list[PlaceResult]:
        places = self._fetch(lat, lng, radius)
        if places:
            upsert_restaurants(self._session_factory, places, batch_size=self._batch_size)
        logger.info("Restaurant cache refreshed: %s restaurants for %s,%s radius=%s", len(places), lat, lng, radius)
        return list(places)

    def invalidate(self, lat: float, lng: float, radius: float) -> bool:
        """Drop one entry. Returns True if it existed."""
        with self._lock:
            return self._entries.pop(cache_key(lat, lng, radius), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
