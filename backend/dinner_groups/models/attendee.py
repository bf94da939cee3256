"""A person's membership in exactly one dinner group (user_id is unique)."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from dinner_groups.db.base import Base


class Attendee(Base):
    __tablename__ = "attendees"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(256), nullable=False)
    dinner_group_id = Column(
        String(36),
        ForeignKey("dinner_groups.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    dinner_group = relationship("DinnerGroup", back_populates="attendees")

    __table_args__ = (UniqueConstraint("user_id", name="uq_attendees_user_id"),)
