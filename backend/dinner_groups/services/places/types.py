"""Normalized restaurant shape returned by the places adapter and held in the restaurant cache."""
from typing import Any


class PlaceResult:
    """One restaurant from a nearby search, enriched with details (photo handle, maps link)."""

    __slots__ = ("id", "name", "price_level", "rating", "lat", "lng", "photo_ref", "maps_url")

    def __init__(
        self,
        *,
        id: str,
        name: str,
        lat: float,
        lng: float,
        price_level: int | None = None,
        rating: float | None = None,
        photo_ref: str | None = None,
        maps_url: str | None = None,
    ):
        self.id = id
        self.name = name
        self.price_level = price_level
        self.rating = rating
        self.lat = lat
        self.lng = lng
        self.photo_ref = photo_ref
        self.maps_url = maps_url

    def to_row(self) -> dict[str, Any]:
        """Column values for the restaurants table (and the base of the details record)."""
        return {
            "id": self.id,
            "name": self.name,
            "price_level": self.price_level,
            "rating": self.rating,
            "lat": self.lat,
            "lng": self.lng,
            "photo_ref": self.photo_ref,
            "maps_url": self.maps_url,
        }

    def __repr__(self) -> str:
        return f"PlaceResult(id={self.id!r}, name={self.name!r})"
