"""
Restaurant store: upsert-by-id of provider facts. Last writer wins; rows are never deleted here.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Iterable

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dinner_groups.core.errors import StorageFailure
from dinner_groups.models.restaurant import Restaurant
from dinner_groups.services.places.types import PlaceResult

logger = logging.getLogger(__name__)

# Columns overwritten on conflict (everything except the key and created_at)
_UPSERT_COLUMNS = ("name", "price_level", "rating", "lat", "lng", "photo_ref", "maps_url", "updated_at")


def dialect_insert(db: Session):
    """INSERT construct with ON CONFLICT support for the session's dialect (PostgreSQL, or SQLite locally)."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


def upsert_restaurant(db: Session, place: PlaceResult) -> None:
    """Insert or overwrite every field of one restaurant and refresh updated_at. Caller commits."""
    now = datetime.now(timezone.utc)
    insert = dialect_insert(db)
    stmt = insert(Restaurant).values(**place.to_row(), updated_at=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=["id"],
        set_={col: stmt.excluded[col] for col in _UPSERT_COLUMNS},
    )
    db.execute(stmt)


def upsert_restaurants(
    session_factory: Callable[[], Session],
    places: Iterable[PlaceResult],
    batch_size: int = 20,
) -> int:
    """
    Upsert places in fixed-size batches, one session and commit per batch, so at most
    batch_size writes are outstanding. Returns rows written. Raises StorageFailure.
    """
    places = list(places)
    written = 0
    for start in range(0, len(places), batch_size):
        batch = places[start:start + batch_size]
        db = session_factory()
        try:
            for place in batch:
                upsert_restaurant(db, place)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageFailure(f"Restaurant upsert failed: {e}") from e
        finally:
            db.close()
        written += len(batch)
    if written:
        logger.debug("Upserted %s restaurants in batches of %s", written, batch_size)
    return written


def list_restaurants(db: Session) -> list[Restaurant]:
    return db.query(Restaurant).order_by(Restaurant.name).all()


def get_restaurant(db: Session, restaurant_id: str) -> Restaurant | None:
    return db.get(Restaurant, restaurant_id)
