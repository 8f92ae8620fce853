"""
Pytest fixtures for testing
"""
import json

import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.pool import StaticPool

from babybudget.infrastructure.db.session import Base
from babybudget.infrastructure.db import models  # noqa: F401
from babybudget.infrastructure.cache.ceiling import UserCeilingLookup


class FakeCache:
    """Dict-backed stand-in for the cache client (only get() is used)"""

    def __init__(self, data: dict | None = None):
        self.data = dict(data or {})

    def get(self, name: str):
        return self.data.get(name)

    def set_user(self, user_id: str, **record):
        self.data[f"user:{user_id}"] = json.dumps(record)


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests, with JSONB→JSON mapping."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # SQLite has no JSONB, use JSON
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory) -> Session:
    """Create database session for tests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_user_id():
    """Sample external user id for tests"""
    return "u1"


@pytest.fixture
def fake_cache(sample_user_id):
    """Cache with a 500 monthly ceiling for the sample user"""
    cache = FakeCache()
    cache.set_user(sample_user_id, monthlyBudget=500)
    return cache


@pytest.fixture
def ceilings(fake_cache):
    return UserCeilingLookup(fake_cache)


@pytest.fixture
def cache_factory():
    """Build empty or pre-filled fake caches"""
    return FakeCache
