"""
Restaurants API: nearby listing with live attendance, join/leave a dinner group, group notes.

Callers identify themselves with the X-User-Id header. Domain errors are mapped to HTTP
statuses by the app-level handler (core.errors.domain_error_to_http).
"""
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from dinner_groups.api.deps import get_restaurant_cache, get_user_id
from dinner_groups.config import settings
from dinner_groups.core.constants import NOTES_MAX_LENGTH
from dinner_groups.db.session import get_db
from dinner_groups.services.dinner_group_service import (
    get_group_members,
    join_dinner_group,
    leave_dinner_group,
    set_group_notes,
)
from dinner_groups.services.restaurants.cache import RestaurantCache
from dinner_groups.services.restaurants.details import get_all_restaurant_details
from dinner_groups.services.restaurants.geo import meters_to_miles, miles_to_meters
from dinner_groups.services.restaurants.listing import build_listing

router = APIRouter()
logger = logging.getLogger(__name__)


class JoinBody(BaseModel):
    restaurant_id: str | None = Field(default=None, max_length=256)


class NotesBody(BaseModel):
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)


@router.get("")
def list_restaurants(
    distance: float | None = Query(default=None, gt=0, le=50, description="Max distance in miles (default 5)"),
    rating: float | None = Query(default=None, ge=0, le=5),
    price: int | None = Query(default=None, ge=0, le=4),
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    user_id: str | None = Depends(get_user_id),
    db: Session = Depends(get_db),
    cache: RestaurantCache = Depends(get_restaurant_cache),
):
    """
    Restaurants near the origin (default: configured home coordinate). Returns
    with_attendance (joined groups, most attendees first) and nearby (top 50 after filters).
    """
    radius = round(miles_to_meters(distance)) if distance else settings.default_radius_meters
    origin_lat = settings.home_lat if lat is None else lat
    origin_lng = settings.home_lng if lng is None else lng
    details = get_all_restaurant_details(db, cache, origin_lat, origin_lng, radius=radius, user_id=user_id)
    distance_miles = meters_to_miles(radius)
    listing = build_listing(details, distance_miles=distance_miles, rating=rating, price=price)
    return {
        **listing,
        "filters": {"distance": round(distance_miles, 1), "rating": rating, "price": price},
    }


@router.post("/join")
def join(body: JoinBody, user_id: str | None = Depends(get_user_id), db: Session = Depends(get_db)):
    """Join the restaurant's dinner group, leaving any current group. Idempotent for the same restaurant."""
    group = join_dinner_group(db, user_id, body.restaurant_id)
    return {"status": "success", "dinner_group_id": group["id"], "restaurant_id": group["restaurant_id"]}


@router.post("/leave")
def leave(user_id: str | None = Depends(get_user_id), db: Session = Depends(get_db)):
    """Leave the current dinner group. Not attending anything is not an error."""
    left = leave_dinner_group(db, user_id)
    return {"status": "success", "left": left["restaurant_id"] if left else None}


@router.get("/{restaurant_id}/attendees")
def attendees(restaurant_id: str, db: Session = Depends(get_db)):
    members = get_group_members(db, restaurant_id)
    return {"restaurant_id": restaurant_id, "attendees": members, "count": len(members)}


@router.put("/{restaurant_id}/notes")
def update_notes(restaurant_id: str, body: NotesBody, db: Session = Depends(get_db)):
    group = set_group_notes(db, restaurant_id, body.notes)
    return {"status": "success", "dinner_group": group}
