"""
Shared fixtures

Settings are cached and the engine is created at import time, so the test
database and log directory are configured before anything from doughboard
is imported.
"""
import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="doughboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["GOOGLE_ADS_DEVELOPER_TOKEN"] = "test-developer-token"
os.environ["DASH_USER"] = ""
os.environ["DASH_PASS"] = ""

import pytest

from doughboard.models.base import Base, SessionLocal, engine, init_db
from doughboard.models.store import ShopSession

SHOP = "dough-test.myshopify.com"


@pytest.fixture
def db():
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        with engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture
def shop_session(db):
    session = ShopSession(shop=SHOP, access_token="shpat_test", scope="read_orders")
    db.add(session)
    db.commit()
    db.refresh(session)
    return session
