"""
Restaurant details: cached restaurant facts merged with live attendance.

Restaurant lists come from the RestaurantCache; attendance counts and the caller's own
membership are read from the database on every call. No filtering, sorting or paging here.
"""
from typing import Any

from sqlalchemy.orm import Session

from dinner_groups.config import settings
from dinner_groups.services.dinner_group_service import get_active_restaurant_id, get_attendance_counts
from dinner_groups.services.restaurants.cache import RestaurantCache
from dinner_groups.services.restaurants.geo import haversine_miles


def get_all_restaurant_details(
    db: Session,
    cache: RestaurantCache,
    lat: float,
    lng: float,
    radius: float | None = None,
    user_id: str | None = None,
) -> list[dict[str, Any]]:
    """
    One record per nearby restaurant: provider facts plus distance (miles, 1 dp) from (lat, lng),
    attendee_count (0 when there is no group) and is_user_attending for user_id.
    radius defaults to settings.default_radius_meters.
    """
    if radius is None:
        radius = settings.default_radius_meters
    restaurants = cache.get_restaurants(lat, lng, radius)
    counts = get_attendance_counts(db)
    attending_id = get_active_restaurant_id(db, user_id) if user_id else None
    return [
        {
            **r.to_row(),
            "distance": haversine_miles(lat, lng, r.lat, r.lng),
            "attendee_count": counts.get(r.id, 0),
            "is_user_attending": attending_id is not None and attending_id == r.id,
        }
        for r in restaurants
    ]
