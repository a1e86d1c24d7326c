"""
Database engine, sessions and table bootstrap
"""
import os
from typing import Any, Dict

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from doughboard.config import get_settings
from doughboard.utils.logger import log

settings = get_settings()


def _resolve_database_url(url: str) -> str:
    """Make relative SQLite paths absolute so a cwd change can't open a second database"""
    if url.startswith("sqlite:///") and not url.startswith("sqlite:////"):
        return "sqlite:///" + os.path.abspath(url[len("sqlite:///"):])
    return url


def _engine_options(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        # Each request opens its own short-lived connection
        return {
            "connect_args": {"check_same_thread": False, "timeout": 60},
            "poolclass": NullPool,
        }
    return {
        "pool_size": 3,
        "max_overflow": 5,
        "pool_recycle": 300,
    }


database_url = _resolve_database_url(settings.database_url)
engine = create_engine(database_url, pool_pre_ping=True, **_engine_options(database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for store models
Base = declarative_base()


def get_db():
    """FastAPI dependency yielding a session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _add_missing_columns():
    """
    ALTER existing tables to add columns declared on the models

    create_all() creates missing tables only, so a column added to
    StoreSettings or AdAccount would otherwise never reach an existing
    database without a migration.
    """
    inspector = inspect(engine)
    with engine.begin() as conn:
        for table_name, table in Base.metadata.tables.items():
            if not inspector.has_table(table_name):
                continue
            existing = {column["name"] for column in inspector.get_columns(table_name)}
            for column in table.columns:
                if column.name in existing:
                    continue
                column_type = column.type.compile(dialect=engine.dialect)
                statement = f"ALTER TABLE {table_name} ADD COLUMN {column.name} {column_type}"
                log.info(f"Adding missing column: {statement}")
                conn.execute(text(statement))


def init_db():
    """Create the store tables and add any newly declared columns"""
    from doughboard import models  # noqa: F401  (registers tables on Base)

    Base.metadata.create_all(bind=engine)
    _add_missing_columns()
    log.info(f"Database ready ({engine.url.get_backend_name()})")
