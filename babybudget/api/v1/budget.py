"""
Budget API endpoints
"""
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from babybudget.api.deps import get_db, get_ceiling_lookup, get_current_user_id
from babybudget.application.budget import (
    SetPeriodBudgetUseCase, AddSpendingUseCase, AddSpendingBatchUseCase,
    UpdateSpendingUseCase, DeleteSpendingUseCase, DeleteBudgetUseCase,
    list_period_budgets, list_spending, list_spending_by_category,
)
from babybudget.domain.budget import BudgetAggregate, PeriodBudget, SpendingItem
from babybudget.infrastructure.cache.ceiling import UserCeilingLookup


router = APIRouter(prefix="/budget", tags=["budget"])

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"  # YYYY-MM-DD


# === Request/Response models ===

class CreateBudgetRequest(BaseModel):
    year: int = Field(ge=1900, le=9999)
    month: int = Field(ge=1, le=12)
    categories: dict[str, Decimal]

    @field_validator("categories")
    @classmethod
    def validate_amounts(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Budget amounts must be non-negative"""
        for name, amount in v.items():
            if amount < 0:
                raise ValueError(f"Budget for {name} must be non-negative")
        return v


class SpendingRequest(BaseModel):
    date: str = Field(pattern=DATE_PATTERN)
    category: str  # checked against the closed set by the use case
    itemName: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)


class SpendingBatchRequest(BaseModel):
    spendings: list[SpendingRequest]


class SpendingItemResponse(BaseModel):
    uid: str
    date: str
    itemName: str
    amount: str  # Decimal as string


class PeriodBudgetResponse(BaseModel):
    year: int
    month: int
    categories: dict[str, str]
    totalBudget: str


class BudgetDocumentResponse(BaseModel):
    userId: str
    periodBudgets: list[PeriodBudgetResponse]
    categorySpending: dict[str, list[SpendingItemResponse]]
    totalSpent: str


class CategorizedSpendingResponse(BaseModel):
    category: str
    spending: SpendingItemResponse


class SpendingBatchResponse(BaseModel):
    message: str
    spendings: list[CategorizedSpendingResponse]


class CategorySpendingResponse(BaseModel):
    category: str
    details: list[SpendingItemResponse]


class SpendingListResponse(BaseModel):
    userId: str
    spending: list[CategorySpendingResponse]
    totalSpent: str


class SpendingByCategoryResponse(BaseModel):
    userId: str
    category: str
    details: list[SpendingItemResponse]


class MessageResponse(BaseModel):
    message: str


# === Helper functions ===

def _item_response(item: SpendingItem) -> SpendingItemResponse:
    return SpendingItemResponse(
        uid=item.uid,
        date=item.date,
        itemName=item.item_name,
        amount=str(item.amount),
    )


def _period_response(period: PeriodBudget) -> PeriodBudgetResponse:
    return PeriodBudgetResponse(
        year=period.year,
        month=period.month,
        categories={name: str(amount) for name, amount in period.categories.items()},
        totalBudget=str(period.total),
    )


def _document_response(aggregate: BudgetAggregate) -> BudgetDocumentResponse:
    return BudgetDocumentResponse(
        userId=aggregate.user_id,
        periodBudgets=[_period_response(p) for p in aggregate.period_budgets],
        categorySpending={
            category: [_item_response(item) for item in items]
            for category, items in aggregate.spending_by_category()
        },
        totalSpent=str(aggregate.total_spent),
    )


# === Endpoints ===

@router.post("", response_model=PeriodBudgetResponse)
def set_budget(
    req: CreateBudgetRequest,
    user_id: str = Depends(get_current_user_id),
    ceilings: UserCeilingLookup = Depends(get_ceiling_lookup),
    db: Session = Depends(get_db),
):
    """Set category budgets for a year/month (upsert)"""
    period = SetPeriodBudgetUseCase(db, ceilings).execute(
        user_id=user_id,
        year=req.year,
        month=req.month,
        categories=req.categories,
    )
    return _period_response(period)


@router.get("", response_model=list[PeriodBudgetResponse])
def get_budgets(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """All period budgets of the user"""
    return [_period_response(p) for p in list_period_budgets(db, user_id)]


@router.post("/spending", response_model=BudgetDocumentResponse)
def add_spending(
    req: SpendingRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Record a spending item"""
    aggregate = AddSpendingUseCase(db).execute(
        user_id=user_id,
        category=req.category,
        date=req.date,
        item_name=req.itemName,
        amount=req.amount,
    )
    return _document_response(aggregate)


@router.post("/spendings", response_model=SpendingBatchResponse)
def add_spendings(
    req: SpendingBatchRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Record several spending items (all or nothing)"""
    created = AddSpendingBatchUseCase(db).execute(
        user_id=user_id,
        spendings=[s.model_dump() for s in req.spendings],
    )
    return SpendingBatchResponse(
        message=f"{len(created)} spending records added",
        spendings=[
            CategorizedSpendingResponse(
                category=c["category"],
                spending=_item_response(c["spending"]),
            )
            for c in created
        ],
    )


@router.get("/spending", response_model=SpendingListResponse)
def get_spending(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Spending of every category plus totalSpent"""
    result = list_spending(db, user_id)
    return SpendingListResponse(
        userId=result["userId"],
        spending=[
            CategorySpendingResponse(
                category=entry["category"],
                details=[_item_response(item) for item in entry["details"]],
            )
            for entry in result["spending"]
        ],
        totalSpent=str(result["totalSpent"]),
    )


@router.get("/spending/{category}", response_model=SpendingByCategoryResponse)
def get_spending_by_category(
    category: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Spending of one category"""
    result = list_spending_by_category(db, user_id, category)
    return SpendingByCategoryResponse(
        userId=result["userId"],
        category=result["category"],
        details=[_item_response(item) for item in result["details"]],
    )


@router.put("/spending/{uid}", response_model=CategorizedSpendingResponse)
def update_spending(
    uid: str,
    req: SpendingRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Replace a spending item (category may change)"""
    result = UpdateSpendingUseCase(db).execute(
        user_id=user_id,
        uid=uid,
        date=req.date,
        category=req.category,
        item_name=req.itemName,
        amount=req.amount,
    )
    return CategorizedSpendingResponse(
        category=result["category"],
        spending=_item_response(result["spending"]),
    )


@router.delete("/spending/{uid}", response_model=MessageResponse)
def delete_spending(
    uid: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete a spending item"""
    return DeleteSpendingUseCase(db).execute(user_id=user_id, uid=uid)


@router.delete("", response_model=MessageResponse)
def delete_budget(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete the user's whole budget"""
    return DeleteBudgetUseCase(db).execute(user_id=user_id)
