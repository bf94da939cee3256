"""One dinner group per restaurant. Exists only while it has attendees."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from dinner_groups.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class DinnerGroup(Base):
    __tablename__ = "dinner_groups"

    id = Column(String(36), primary_key=True, default=_uuid)
    restaurant_id = Column(
        String(256),
        ForeignKey("restaurants.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    attendees = relationship("Attendee", back_populates="dinner_group", passive_deletes=True)

    __table_args__ = (UniqueConstraint("restaurant_id", name="uq_dinner_groups_restaurant_id"),)
