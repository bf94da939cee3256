"""Request-scoped dependencies shared by routes."""
from fastapi import Header, Request

from dinner_groups.core.constants import USER_ID_HEADER
from dinner_groups.services.places.config import PlacesConfig
from dinner_groups.services.restaurants.cache import RestaurantCache


def get_user_id(x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER)) -> str | None:
    """Caller's person id, set by the auth proxy. None when absent; services reject empty ids."""
    return (x_user_id or "").strip() or None


def get_restaurant_cache(request: Request) -> RestaurantCache:
    return request.app.state.restaurant_cache


def get_places_config(request: Request) -> PlacesConfig:
    return request.app.state.places_client.config
