"""
Budget error taxonomy

Each error is terminal for the request; the API layer maps them to HTTP
status codes (validation -> 400, not found -> 404, limit exceeded -> 403,
concurrent update -> 409).
"""
from decimal import Decimal


class BudgetError(Exception):
    pass


class BudgetValidationError(BudgetError, ValueError):
    """Invalid category or malformed input"""
    pass


class NotFoundError(BudgetError, LookupError):
    pass


class AggregateNotFoundError(NotFoundError):
    def __init__(self, user_id: str):
        super().__init__("Budget not found for user")
        self.user_id = user_id


class SpendingNotFoundError(NotFoundError):
    def __init__(self, uid: str):
        super().__init__(f"Spending record with UID {uid} not found.")
        self.uid = uid


class CeilingNotFoundError(NotFoundError):
    pass


class LimitExceededError(BudgetError):
    """Proposed period budget is above the user's monthly ceiling"""

    def __init__(self, total: Decimal, ceiling: Decimal):
        super().__init__("Total amount exceeds user budget")
        self.total = total
        self.ceiling = ceiling


class ConcurrentUpdateError(BudgetError):
    """The user's budget document was written by another request in between"""

    def __init__(self, user_id: str):
        super().__init__("Budget was modified by another request, retry")
        self.user_id = user_id
