"""Google Places adapter: nearby restaurant search and photo proxy."""
from dinner_groups.services.places.client import GooglePlacesClient
from dinner_groups.services.places.config import PlacesConfig
from dinner_groups.services.places.types import PlaceResult

__all__ = [
    "GooglePlacesClient",
    "PlaceResult",
    "PlacesConfig",
]
