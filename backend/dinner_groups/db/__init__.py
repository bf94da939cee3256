from dinner_groups.db.base import Base
from dinner_groups.db.session import get_db, engine, SessionLocal
from dinner_groups.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
