"""Google Places client: nearby restaurant search plus per-place details. No caching, no filtering."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import httpx

from dinner_groups.config import settings
from dinner_groups.core.errors import UpstreamFailure
from dinner_groups.services.places.config import (
    DETAILS_FIELDS,
    NEARBY_PLACE_TYPE,
    STATUS_OK,
    STATUS_ZERO_RESULTS,
    PlacesConfig,
)
from dinner_groups.services.places.types import PlaceResult

logger = logging.getLogger(__name__)


class GooglePlacesClient:
    """Nearby Search + Place Details. Raises UpstreamFailure on any failure except ZERO_RESULTS."""

    def __init__(
        self,
        config: PlacesConfig | None = None,
        *,
        max_workers: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config or PlacesConfig()
        self._max_workers = max_workers or settings.places_details_workers
        self._transport = transport

    @property
    def config(self) -> PlacesConfig:
        return self._config

    def _get_json(self, client: httpx.Client, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._config.base_url}{path}"
        try:
            r = client.get(url, params={**params, "key": self._config.api_key})
        except httpx.HTTPError as e:
            # Timeouts land here too (httpx.TimeoutException is an HTTPError)
            raise UpstreamFailure(f"Google Places request failed: {type(e).__name__}: {e}") from e
        if not r.is_success:
            raise UpstreamFailure(f"Google Places HTTP error: {r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamFailure("Google Places returned malformed JSON") from e
        if not isinstance(data, dict):
            raise UpstreamFailure("Google Places returned an unexpected body")
        return data

    def _fetch_details(self, client: httpx.Client, place_id: str) -> tuple[str | None, str | None]:
        """Return (first photo reference, maps url) for one place."""
        data = self._get_json(client, "/details/json", {"place_id": place_id, "fields": DETAILS_FIELDS})
        status = data.get("status")
        if status != STATUS_OK:
            raise UpstreamFailure(f"Google Places details error for {place_id}: {status}")
        result = data.get("result") or {}
        photos = result.get("photos") or []
        photo_ref = None
        if photos and isinstance(photos[0], dict):
            photo_ref = photos[0].get("photo_reference")
        return photo_ref, result.get("url")

    def get_nearby_restaurants(self, lat: float, lng: float, radius: int | float) -> list[PlaceResult]:
        """
        All restaurants within radius meters of (lat, lng), each enriched with photo handle and maps url.
        ZERO_RESULTS yields []. Details are fetched in parallel on a bounded pool.
        """
        if not self._config.is_configured():
            raise UpstreamFailure("GOOGLE_PLACES_API_KEY is required")
        with httpx.Client(timeout=self._config.timeout, transport=self._transport) as client:
            data = self._get_json(
                client,
                "/nearbysearch/json",
                {"location": f"{lat},{lng}", "radius": str(radius), "type": NEARBY_PLACE_TYPE},
            )
            status = data.get("status")
            if status not in (STATUS_OK, STATUS_ZERO_RESULTS):
                raise UpstreamFailure(f"Google Places API error: {status}")
            results = data.get("results") or []
            if status == STATUS_ZERO_RESULTS or not results:
                return []
            try:
                places = [_parse_nearby_result(r) for r in results]
            except (KeyError, TypeError, ValueError) as e:
                raise UpstreamFailure(f"Google Places returned a malformed result: {e}") from e
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                details = list(pool.map(lambda p: self._fetch_details(client, p.id), places))
        for place, (photo_ref, maps_url) in zip(places, details):
            place.photo_ref = photo_ref
            place.maps_url = maps_url
        logger.info("Google Places: %s restaurants near %s,%s (radius=%s)", len(places), lat, lng, radius)
        return places


def _parse_nearby_result(r: dict[str, Any]) -> PlaceResult:
    location = r["geometry"]["location"]
    return PlaceResult(
        id=r["place_id"],
        name=r["name"],
        price_level=r.get("price_level"),
        rating=r.get("rating"),
        lat=float(location["lat"]),
        lng=float(location["lng"]),
    )
