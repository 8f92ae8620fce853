"""
Budget document repository - find-one / save / delete-one by user id
"""
from typing import Dict, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from babybudget.domain.budget import BudgetAggregate
from babybudget.domain.errors import ConcurrentUpdateError
from babybudget.infrastructure.db.models import BudgetDocument


class BudgetDocumentRepository:
    """
    Repository for per-user budget documents

    save() writes the whole aggregate as one document, so item lists and
    totalSpent are always persisted together. It writes over the row that
    find_one() read (or inserts if none was found), so a document created or
    changed by another request in between is reported as a conflict.
    Nothing is committed here; use cases own the transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self._rows: Dict[str, BudgetDocument] = {}

    def _get_row(self, user_id: str) -> Optional[BudgetDocument]:
        return self.db.scalars(
            select(BudgetDocument).where(BudgetDocument.user_id == user_id)
        ).first()

    def _flush(self, user_id: str) -> None:
        try:
            self.db.flush()
        except (IntegrityError, StaleDataError) as exc:
            # IntegrityError: another request inserted the same user_id first
            # StaleDataError: version changed since the row was read
            raise ConcurrentUpdateError(user_id) from exc

    def find_one(self, user_id: str) -> Optional[BudgetAggregate]:
        """
        Load the aggregate for a user

        Returns:
            BudgetAggregate or None if the user has no budget document
        """
        row = self._get_row(user_id)
        if row is None:
            return None
        self._rows[user_id] = row
        return BudgetAggregate.from_document(row.document)

    def save(self, aggregate: BudgetAggregate) -> None:
        """
        Insert or replace the user's document

        Raises:
            ConcurrentUpdateError: the document was created or changed since it was read
        """
        row = self._rows.get(aggregate.user_id)
        if row is None:
            row = BudgetDocument(user_id=aggregate.user_id, document=aggregate.to_document())
            self.db.add(row)
            self._rows[aggregate.user_id] = row
        else:
            # New dict object so the JSON column is marked dirty
            row.document = aggregate.to_document()
        self._flush(aggregate.user_id)

    def delete_one(self, user_id: str) -> bool:
        """Delete the user's document. Returns False if there was none."""
        row = self._get_row(user_id)
        if row is None:
            return False
        self.db.delete(row)
        self._rows.pop(user_id, None)
        self._flush(user_id)
        return True
