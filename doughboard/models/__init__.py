"""
Database models
"""
from doughboard.models.base import Base, SessionLocal, engine, get_db, init_db
from doughboard.models.store import ShopSession, StoreSettings, AdAccount

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "init_db",
    "ShopSession",
    "StoreSettings",
    "AdAccount",
]
