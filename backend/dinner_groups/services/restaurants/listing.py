"""
Restaurant listing for the restaurants page: groups people have joined, then filtered nearby picks.
"""
from typing import Any

from dinner_groups.core.constants import NEARBY_LIMIT


def build_listing(
    details: list[dict[str, Any]],
    *,
    distance_miles: float | None = None,
    rating: float | None = None,
    price: int | None = None,
    limit: int = NEARBY_LIMIT,
) -> dict[str, list[dict[str, Any]]]:
    """
    with_attendance: restaurants with attendees, most attendees first (filters do not apply).
    nearby: restaurants nobody has joined, filtered by max distance, min rating and exact price
    level, best rated first (unrated counts as 0), nearer first on ties, capped at limit.
    """
    with_attendance = sorted(
        (d for d in details if d["attendee_count"] > 0),
        key=lambda d: -d["attendee_count"],
    )

    def keep(d: dict[str, Any]) -> bool:
        if distance_miles and d["distance"] > distance_miles:
            return False
        if rating and (not d.get("rating") or d["rating"] < rating):
            return False
        if price is not None and d.get("price_level") != price:
            return False
        return True

    nearby = sorted(
        (d for d in details if d["attendee_count"] == 0 and keep(d)),
        key=lambda d: (-(d.get("rating") or 0), d["distance"]),
    )
    return {"with_attendance": with_attendance, "nearby": nearby[:limit]}
