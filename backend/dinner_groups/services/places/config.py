"""Google Places config. API key from settings (GOOGLE_PLACES_API_KEY) or PlacesConfig args."""
from dinner_groups.config import settings

DEFAULT_BASE_URL = "https://maps.googleapis.com/maps/api/place"

# Only restaurants, no other filters: rating/price/distance filtering happens downstream
# so one cached search serves every filter combination.
NEARBY_PLACE_TYPE = "restaurant"
DETAILS_FIELDS = "photos,url"

# Nearby Search statuses that are not errors
STATUS_OK = "OK"
STATUS_ZERO_RESULTS = "ZERO_RESULTS"


class PlacesConfig:
    """API key, base URL and timeout for Google Places."""

    __slots__ = ("api_key", "base_url", "timeout")

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float | None = None,
    ) -> None:
        self.api_key = (api_key if api_key is not None else settings.google_places_api_key).strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.places_timeout_seconds

    def is_configured(self) -> bool:
        return bool(self.api_key)
