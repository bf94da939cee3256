"""
Dinner groups: one group per restaurant, one group per person.

States per person: unattached <-> attending(restaurant_id).
- join: leave-then-join in ONE transaction (no observable unattached gap), find-or-create the
  restaurant's group via INSERT .. ON CONFLICT DO NOTHING on restaurant_id, then add the attendee.
- leave: delete the attendee; delete the group in the same commit if it is now empty.
Uniqueness constraints (attendees.user_id, dinner_groups.restaurant_id) resolve racing creates;
a lost race (IntegrityError) is rolled back and retried once. Membership changes on one group
serialize on its row lock: leave takes FOR UPDATE before counting the remaining attendees,
join holds FOR SHARE on the group it joins until commit.
Attendance is always read live; nothing here is cached.
"""
import logging
import uuid
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from dinner_groups.core.constants import NOTES_MAX_LENGTH
from dinner_groups.core.errors import ConstraintViolation, InvalidArgument, StorageFailure
from dinner_groups.models.attendee import Attendee
from dinner_groups.models.dinner_group import DinnerGroup
from dinner_groups.services.restaurants.store import dialect_insert, get_restaurant

logger = logging.getLogger(__name__)

# One retry after a lost uniqueness race
JOIN_ATTEMPTS = 2


class _GroupVanished(Exception):
    """The group row was deleted between find-or-create and the follow-up select."""


def _require(value: Any, name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgument(f"{name} is required")
    return str(value).strip()


def group_to_dict(group: DinnerGroup) -> dict[str, Any]:
    return {
        "id": group.id,
        "restaurant_id": group.restaurant_id,
        "notes": group.notes,
        "created_at": group.created_at.isoformat() if group.created_at else None,
    }


def _find_attendee(db: Session, user_id: str) -> Attendee | None:
    return db.query(Attendee).filter(Attendee.user_id == user_id).first()


def _lock_group(db: Session, group_id: str) -> DinnerGroup:
    """Row-lock the group so membership changes on it serialize until commit."""
    group = (
        db.query(DinnerGroup)
        .filter(DinnerGroup.id == group_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if group is None:
        raise _GroupVanished(group_id)
    return group


def _remove_attendee(db: Session, attendee: Attendee) -> dict[str, Any]:
    """Delete one attendee and, if that emptied the group, the group. Flushes; caller commits."""
    group = _lock_group(db, attendee.dinner_group_id)
    left = group_to_dict(group)
    db.delete(attendee)
    db.flush()
    remaining = (
        db.query(func.count(Attendee.id))
        .filter(Attendee.dinner_group_id == group.id)
        .scalar()
    )
    if remaining == 0:
        db.delete(group)
        db.flush()
        logger.info("Dinner group %s deleted (last attendee left restaurant %s)", group.id, group.restaurant_id)
    return left


def _find_or_create_group(db: Session, restaurant_id: str) -> DinnerGroup:
    insert = dialect_insert(db)
    result = db.execute(
        insert(DinnerGroup.__table__)
        .values(id=str(uuid.uuid4()), restaurant_id=restaurant_id)
        .on_conflict_do_nothing(index_elements=["restaurant_id"])
    )
    if result.rowcount:
        logger.info("Dinner group created for restaurant %s", restaurant_id)
    # Shared lock: a concurrent last leave waits for this join to commit before counting
    group = (
        db.query(DinnerGroup)
        .filter(DinnerGroup.restaurant_id == restaurant_id)
        .with_for_update(read=True)
        .populate_existing()
        .one_or_none()
    )
    if group is None:
        raise _GroupVanished(restaurant_id)
    return group


def _join_once(db: Session, user_id: str, restaurant_id: str) -> tuple[DinnerGroup, bool]:
    """Returns (group, changed). changed is False when already attending this restaurant."""
    if get_restaurant(db, restaurant_id) is None:
        raise InvalidArgument(f"Unknown restaurant: {restaurant_id}", not_found=True)
    current = _find_attendee(db, user_id)
    if current is not None:
        if current.dinner_group.restaurant_id == restaurant_id:
            return current.dinner_group, False
        _remove_attendee(db, current)
    group = _find_or_create_group(db, restaurant_id)
    db.add(Attendee(user_id=user_id, dinner_group_id=group.id))
    db.flush()
    return group, True


def join_dinner_group(db: Session, user_id: str, restaurant_id: str) -> dict[str, Any]:
    """
    Put user_id in the dinner group for restaurant_id, leaving any other group first (atomically).
    Joining the restaurant already attended is a no-op. Returns the resolved group.
    """
    user_id = _require(user_id, "user_id")
    restaurant_id = _require(restaurant_id, "restaurant_id")
    for attempt in range(1, JOIN_ATTEMPTS + 1):
        try:
            group, changed = _join_once(db, user_id, restaurant_id)
            db.commit()
            db.refresh(group)
            if changed:
                logger.info("User %s joined dinner group %s (restaurant %s)", user_id, group.id, restaurant_id)
            return group_to_dict(group)
        except (IntegrityError, _GroupVanished) as e:
            db.rollback()
            if attempt < JOIN_ATTEMPTS:
                logger.info("Join race for user %s at %s; retrying: %s", user_id, restaurant_id, e)
                continue
            raise ConstraintViolation(
                f"Could not join restaurant {restaurant_id}: concurrent membership change"
            ) from e
        except InvalidArgument:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageFailure(f"Join failed: {e}") from e


def leave_dinner_group(db: Session, user_id: str) -> dict[str, Any] | None:
    """Remove user_id from their group (deleting it if empty). Returns the group left, or None."""
    user_id = _require(user_id, "user_id")
    try:
        attendee = _find_attendee(db, user_id)
        if attendee is None:
            return None
        left = _remove_attendee(db, attendee)
        db.commit()
    except _GroupVanished:
        # Group deleted under us; its attendees cascaded with it
        db.rollback()
        return None
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(f"Leave failed: {e}") from e
    logger.info("User %s left dinner group %s (restaurant %s)", user_id, left["id"], left["restaurant_id"])
    return left


def get_attendance_counts(db: Session) -> dict[str, int]:
    """restaurant_id -> attendee count, one grouped query. Live read."""
    rows = (
        db.query(DinnerGroup.restaurant_id, func.count(Attendee.id))
        .outerjoin(Attendee, Attendee.dinner_group_id == DinnerGroup.id)
        .group_by(DinnerGroup.restaurant_id)
        .all()
    )
    return {restaurant_id: count for restaurant_id, count in rows}


def get_active_restaurant_id(db: Session, user_id: str) -> str | None:
    row = (
        db.query(DinnerGroup.restaurant_id)
        .join(Attendee, Attendee.dinner_group_id == DinnerGroup.id)
        .filter(Attendee.user_id == user_id)
        .first()
    )
    return row[0] if row else None


def get_group_members(db: Session, restaurant_id: str) -> list[str]:
    """User ids in the restaurant's group, earliest joiner first. [] if there is no group."""
    rows = (
        db.query(Attendee.user_id)
        .join(DinnerGroup, Attendee.dinner_group_id == DinnerGroup.id)
        .filter(DinnerGroup.restaurant_id == restaurant_id)
        .order_by(Attendee.created_at, Attendee.id)
        .all()
    )
    return [r[0] for r in rows]


def set_group_notes(db: Session, restaurant_id: str, notes: str | None) -> dict[str, Any]:
    """Set the free-text note on the restaurant's existing group. Empty string clears it."""
    restaurant_id = _require(restaurant_id, "restaurant_id")
    notes = (notes or "").strip() or None
    if notes and len(notes) > NOTES_MAX_LENGTH:
        raise InvalidArgument(f"notes must be at most {NOTES_MAX_LENGTH} characters")
    try:
        group = db.query(DinnerGroup).filter(DinnerGroup.restaurant_id == restaurant_id).one_or_none()
        if group is None:
            raise InvalidArgument(f"No dinner group for restaurant {restaurant_id}", not_found=True)
        group.notes = notes
        db.commit()
        db.refresh(group)
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageFailure(f"Saving notes failed: {e}") from e
    return group_to_dict(group)
