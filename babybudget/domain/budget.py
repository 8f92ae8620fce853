"""
Budget aggregate - one per user

Holds the user's period budgets (year/month -> category ceilings) and the
spending items recorded against a closed set of categories.

totalSpent is derived state: it changes only together with the item lists,
inside add_items / replace_item / remove_item.
"""
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, List, Tuple

from babybudget.domain.errors import BudgetValidationError, SpendingNotFoundError


# Spending categories, in declaration order (used for listing and uid search)
SPENDING_CATEGORIES = (
    "diaper",
    "sanitary",
    "feeding",
    "skincare",
    "food",
    "toys",
    "bedding",
    "fashion",
    "other",
)


def validate_category(category: str) -> str:
    """Raise BudgetValidationError unless category is one of SPENDING_CATEGORIES."""
    if category not in SPENDING_CATEGORIES:
        raise BudgetValidationError("Invalid category provided.")
    return category


def to_amount(value: Any) -> Decimal:
    """
    Convert an incoming amount to a non-negative Decimal

    Raises:
        BudgetValidationError: if the value is not a number or is negative
    """
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise BudgetValidationError(f"Invalid amount: {value}")

    if not amount.is_finite() or amount < 0:
        raise BudgetValidationError(f"Amount must be a non-negative number: {value}")
    return amount


@dataclass(frozen=True)
class SpendingItem:
    uid: str
    date: str  # YYYY-MM-DD
    item_name: str
    amount: Decimal

    @staticmethod
    def new(date: str, item_name: str, amount: Any) -> "SpendingItem":
        """Create an item with a fresh random uid"""
        return SpendingItem(
            uid=str(uuid.uuid4()),
            date=date,
            item_name=item_name,
            amount=to_amount(amount),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uid": self.uid,
            "date": self.date,
            "itemName": self.item_name,
            "amount": str(self.amount),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "SpendingItem":
        return SpendingItem(
            uid=data["uid"],
            date=data["date"],
            item_name=data["itemName"],
            amount=Decimal(data["amount"]),
        )


@dataclass
class PeriodBudget:
    year: int
    month: int
    categories: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        return sum(self.categories.values(), Decimal("0"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "categories": {name: str(amount) for name, amount in self.categories.items()},
            "totalBudget": str(self.total),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PeriodBudget":
        return PeriodBudget(
            year=data["year"],
            month=data["month"],
            categories={name: Decimal(amount) for name, amount in data["categories"].items()},
        )


class BudgetAggregate:
    """
    Per-user budget aggregate

    Invariants:
    - at most one PeriodBudget per (year, month)
    - every spending category in SPENDING_CATEGORIES has a list (maybe empty)
    - total_spent == sum of amounts over all items
    """

    def __init__(
        self,
        user_id: str,
        period_budgets: List[PeriodBudget] | None = None,
        spending: Dict[str, List[SpendingItem]] | None = None,
    ):
        self.user_id = user_id
        self._period_budgets: List[PeriodBudget] = list(period_budgets or [])
        self._spending: Dict[str, List[SpendingItem]] = {
            category: list((spending or {}).get(category, []))
            for category in SPENDING_CATEGORIES
        }
        self._total_spent = sum(
            (item.amount for items in self._spending.values() for item in items),
            Decimal("0"),
        )

    # --- period budgets ---

    @property
    def period_budgets(self) -> List[PeriodBudget]:
        return list(self._period_budgets)

    def set_period_budget(self, year: int, month: int, categories: Dict[str, Any]) -> PeriodBudget:
        """
        Upsert the budget for (year, month)

        Replaces the categories of an existing entry, otherwise appends.
        """
        amounts = {name: to_amount(value) for name, value in categories.items()}

        for period in self._period_budgets:
            if period.year == year and period.month == month:
                period.categories = amounts
                return period

        period = PeriodBudget(year=year, month=month, categories=amounts)
        self._period_budgets.append(period)
        return period

    # --- spending ---

    @property
    def total_spent(self) -> Decimal:
        return self._total_spent

    def spending_for(self, category: str) -> List[SpendingItem]:
        return list(self._spending[validate_category(category)])

    def spending_by_category(self) -> List[Tuple[str, List[SpendingItem]]]:
        """All categories in declaration order with their items"""
        return [(category, list(self._spending[category])) for category in SPENDING_CATEGORIES]

    def add_items(self, entries: List[Tuple[str, SpendingItem]]) -> None:
        """
        Append items to their categories

        All categories are checked before anything is appended, so an
        invalid category leaves the aggregate untouched.
        """
        for category, _ in entries:
            validate_category(category)

        for category, item in entries:
            self._spending[category].append(item)
            self._total_spent += item.amount

    def find_item(self, uid: str) -> Tuple[str, int]:
        """
        Locate an item by uid (declaration order, first match wins)

        Returns:
            (category, index in that category's list)

        Raises:
            SpendingNotFoundError: no item with this uid
        """
        for category in SPENDING_CATEGORIES:
            for index, item in enumerate(self._spending[category]):
                if item.uid == uid:
                    return category, index
        raise SpendingNotFoundError(uid)

    def replace_item(
        self,
        uid: str,
        category: str,
        date: str,
        item_name: str,
        amount: Any,
    ) -> SpendingItem:
        """
        Replace an item, possibly moving it to another category

        The replacement keeps the uid and is appended to the new category.
        """
        validate_category(category)
        new_amount = to_amount(amount)

        old_category, index = self.find_item(uid)
        old_item = self._spending[old_category].pop(index)
        self._total_spent -= old_item.amount

        item = SpendingItem(uid=uid, date=date, item_name=item_name, amount=new_amount)
        self._spending[category].append(item)
        self._total_spent += item.amount
        return item

    def remove_item(self, uid: str) -> SpendingItem:
        category, index = self.find_item(uid)
        item = self._spending[category].pop(index)
        self._total_spent -= item.amount
        return item

    # --- document mapping ---

    def to_document(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "periodBudgets": [period.to_dict() for period in self._period_budgets],
            "categorySpending": {
                category: [item.to_dict() for item in self._spending[category]]
                for category in SPENDING_CATEGORIES
            },
            "totalSpent": str(self._total_spent),
        }

    @staticmethod
    def from_document(document: Dict[str, Any]) -> "BudgetAggregate":
        """Rebuild the aggregate; totalSpent is recomputed from the items."""
        spending = document.get("categorySpending", {})
        return BudgetAggregate(
            user_id=document["userId"],
            period_budgets=[PeriodBudget.from_dict(p) for p in document.get("periodBudgets", [])],
            spending={
                category: [SpendingItem.from_dict(i) for i in spending.get(category, [])]
                for category in SPENDING_CATEGORIES
            },
        )
