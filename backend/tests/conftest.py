"""Shared fixtures: SQLite schema per test, stored restaurants, a fake places lookup."""
import os

# Settings are read at import time; point them at SQLite before any dinner_groups import.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GOOGLE_PLACES_API_KEY"] = "test-places-key"

import pytest
from sqlalchemy.orm import sessionmaker

import dinner_groups.models  # noqa: F401  (registers tables on Base.metadata)
from dinner_groups.db.base import Base
from dinner_groups.db.session import build_engine
from dinner_groups.services.restaurants.cache import RestaurantCache
from dinner_groups.services.restaurants.store import upsert_restaurants
from tests.factories import HOME, FakePlaces, make_place


@pytest.fixture
def engine(tmp_path):
    # File database so sessions in other threads see each other's commits
    eng = build_engine(f"sqlite:///{tmp_path / 'dinner_groups.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def restaurants(session_factory):
    """Three stored restaurants: r1 at home, r2 ~1 mile north, r3 ~3 miles north."""
    places = [
        make_place("r1"),
        make_place("r2", lat=HOME[0] + 0.0145, rating=4.5, price_level=3),
        make_place("r3", lat=HOME[0] + 0.0435, rating=None, price_level=1),
    ]
    upsert_restaurants(session_factory, places)
    return places


@pytest.fixture
def fake_places(restaurants):
    return FakePlaces(restaurants)


@pytest.fixture
def restaurant_cache(fake_places, session_factory):
    return RestaurantCache(fake_places, session_factory, ttl_seconds=60)
