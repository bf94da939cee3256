"""Canonical restaurant record from the places provider; overwritten wholesale on each refresh."""
from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from dinner_groups.db.base import Base


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(String(256), primary_key=True)  # provider place_id
    name = Column(String(256), nullable=False)
    price_level = Column(Integer, nullable=True)  # 1-4
    rating = Column(Float, nullable=True)
    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    photo_ref = Column(String(1024), nullable=True)
    maps_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
