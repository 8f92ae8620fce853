"""
Budget use cases and query helpers.

Each mutation is one read-modify-write of the user's budget document:
load aggregate -> apply change -> save -> commit. The aggregate keeps
item lists and totalSpent consistent, the repository writes them as a
single document.
"""
import logging
from typing import Dict, Any, List

from sqlalchemy.orm import Session

from babybudget.domain.budget import (
    BudgetAggregate, PeriodBudget, SpendingItem,
    validate_category, to_amount,
)
from babybudget.domain.errors import AggregateNotFoundError, LimitExceededError
from babybudget.infrastructure.cache.ceiling import UserCeilingLookup
from babybudget.infrastructure.db.repository import BudgetDocumentRepository


logger = logging.getLogger(__name__)


def _load(repo: BudgetDocumentRepository, user_id: str) -> BudgetAggregate:
    aggregate = repo.find_one(user_id)
    if aggregate is None:
        raise AggregateNotFoundError(user_id)
    return aggregate


class SetPeriodBudgetUseCase:
    """
    Use case: set the category budgets for one (year, month)

    Process:
    1. Sum the proposed category amounts
    2. Read the user's monthly ceiling from the cache
    3. Reject if the sum is above the ceiling (nothing is written)
    4. Create the aggregate if missing, upsert the period, save
    """

    def __init__(self, db: Session, ceilings: UserCeilingLookup):
        self.db = db
        self.repo = BudgetDocumentRepository(db)
        self.ceilings = ceilings

    def execute(self, user_id: str, year: int, month: int, categories: Dict[str, Any]) -> PeriodBudget:
        """
        Upsert the period budget

        Args:
            user_id: external user identifier
            year, month: budget period
            categories: category name -> amount (partial sets allowed)

        Returns:
            The stored PeriodBudget

        Raises:
            CeilingNotFoundError: user has no ceiling in the cache
            LimitExceededError: total of categories is above the ceiling
        """
        amounts = {name: to_amount(value) for name, value in categories.items()}
        total = sum(amounts.values(), to_amount(0))

        ceiling = self.ceilings.get_ceiling(user_id)
        if total > ceiling:
            logger.warning(
                "Budget for %s-%02d rejected for user_id=%s: total %s > ceiling %s",
                year, month, user_id, total, ceiling,
            )
            raise LimitExceededError(total, ceiling)

        aggregate = self.repo.find_one(user_id)
        if aggregate is None:
            logger.info("Creating budget document for user_id=%s", user_id)
            aggregate = BudgetAggregate(user_id)

        period = aggregate.set_period_budget(year, month, amounts)
        self.repo.save(aggregate)
        self.db.commit()

        logger.info("Budget for %s-%02d set for user_id=%s (total %s)", year, month, user_id, total)
        return period


class AddSpendingUseCase:
    """Use case: record one spending item"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BudgetDocumentRepository(db)

    def execute(
        self,
        user_id: str,
        category: str,
        date: str,
        item_name: str,
        amount: Any,
    ) -> BudgetAggregate:
        """
        Returns:
            The saved aggregate

        Raises:
            BudgetValidationError: unknown category or bad amount
            AggregateNotFoundError: user has no budget yet
        """
        validate_category(category)
        aggregate = _load(self.repo, user_id)

        item = SpendingItem.new(date, item_name, amount)
        aggregate.add_items([(category, item)])
        self.repo.save(aggregate)
        self.db.commit()

        logger.info("Spending %s added to %s for user_id=%s", item.uid, category, user_id)
        return aggregate


class AddSpendingBatchUseCase:
    """
    Use case: record several spending items at once

    Every category is validated before anything changes, so one bad entry
    rejects the whole batch.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = BudgetDocumentRepository(db)

    def execute(self, user_id: str, spendings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Args:
            spendings: dicts with category, date, itemName, amount

        Returns:
            Created items, each as {"category": ..., "spending": SpendingItem}
        """
        for entry in spendings:
            validate_category(entry["category"])

        entries = [
            (entry["category"], SpendingItem.new(entry["date"], entry["itemName"], entry["amount"]))
            for entry in spendings
        ]

        aggregate = _load(self.repo, user_id)
        aggregate.add_items(entries)
        self.repo.save(aggregate)
        self.db.commit()

        logger.info("Added %d spending item(s) for user_id=%s", len(entries), user_id)
        return [{"category": category, "spending": item} for category, item in entries]


class UpdateSpendingUseCase:
    """Use case: replace a spending item (may move it to another category)"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BudgetDocumentRepository(db)

    def execute(
        self,
        user_id: str,
        uid: str,
        date: str,
        category: str,
        item_name: str,
        amount: Any,
    ) -> Dict[str, Any]:
        """
        Returns:
            {"category": new category, "spending": updated SpendingItem}

        Raises:
            BudgetValidationError: unknown category
            AggregateNotFoundError: user has no budget
            SpendingNotFoundError: no item with this uid
        """
        validate_category(category)
        aggregate = _load(self.repo, user_id)

        item = aggregate.replace_item(uid, category, date, item_name, amount)
        self.repo.save(aggregate)
        self.db.commit()

        logger.info("Spending %s updated (now in %s) for user_id=%s", uid, category, user_id)
        return {"category": category, "spending": item}


class DeleteSpendingUseCase:
    """Use case: remove a spending item"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BudgetDocumentRepository(db)

    def execute(self, user_id: str, uid: str) -> Dict[str, str]:
        aggregate = _load(self.repo, user_id)

        aggregate.remove_item(uid)
        self.repo.save(aggregate)
        self.db.commit()

        logger.info("Spending %s deleted for user_id=%s", uid, user_id)
        return {"message": "Spending record successfully deleted"}


class DeleteBudgetUseCase:
    """Use case: remove the user's whole budget document"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BudgetDocumentRepository(db)

    def execute(self, user_id: str) -> Dict[str, str]:
        if not self.repo.delete_one(user_id):
            raise AggregateNotFoundError(user_id)
        self.db.commit()

        logger.info("Budget document deleted for user_id=%s", user_id)
        return {"message": "Budget successfully deleted"}


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def list_period_budgets(db: Session, user_id: str) -> List[PeriodBudget]:
    """All period budgets of the user, in insertion order."""
    return _load(BudgetDocumentRepository(db), user_id).period_budgets


def list_spending(db: Session, user_id: str) -> Dict[str, Any]:
    """Items of every category (declaration order) plus totalSpent."""
    aggregate = _load(BudgetDocumentRepository(db), user_id)
    return {
        "userId": aggregate.user_id,
        "spending": [
            {"category": category, "details": items}
            for category, items in aggregate.spending_by_category()
        ],
        "totalSpent": aggregate.total_spent,
    }


def list_spending_by_category(db: Session, user_id: str, category: str) -> Dict[str, Any]:
    """Items of one category; empty list if it has none."""
    validate_category(category)
    aggregate = _load(BudgetDocumentRepository(db), user_id)
    return {
        "userId": aggregate.user_id,
        "category": category,
        "details": aggregate.spending_for(category),
    }
