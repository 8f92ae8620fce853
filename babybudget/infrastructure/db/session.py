"""
Database session management (SQLAlchemy)

Engine and session factory are built by the application factory and kept
on ``app.state``; request handlers receive sessions through ``get_db``.
"""
import psycopg
from fastapi import Request
from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from babybudget.config import Settings


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for all ORM models
    """
    pass


def build_engine(settings: Settings) -> Engine:
    """Create SQLAlchemy engine from settings"""
    return create_engine(settings.get_sqlalchemy_url(), pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker:
    """Create session factory bound to the engine"""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db(request: Request) -> Session:
    """
    Dependency for FastAPI - opens a session and always closes it

    Usage:
        @router.get("/budget")
        def list_budgets(db: Session = Depends(get_db)):
            ...
    """
    SessionLocal = request.app.state.session_factory
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connection(settings: Settings) -> None:
    """
    Health check - verify PostgreSQL is reachable (raw psycopg)

    Raises:
        psycopg.OperationalError: if the database is unavailable
    """
    with psycopg.connect(settings.DATABASE_URL, connect_timeout=3) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1;")
            cur.fetchone()
