"""
SQLAlchemy ORM models
"""
from datetime import datetime
from sqlalchemy import String, Integer, TIMESTAMP, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from babybudget.infrastructure.db.session import Base


class BudgetDocument(Base):
    """
    One budget document per user

    The whole aggregate (period budgets, categorized spending, totalSpent)
    lives in ``document`` so that every mutation is a single row UPDATE.
    ``version`` is bumped on each write; a write against a stale version
    is rejected instead of silently overwriting.
    """
    __tablename__ = "budget_documents"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    document: Mapped[dict] = mapped_column(JSONB, nullable=False)  # PostgreSQL JSONB
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __mapper_args__ = {"version_id_col": version}
