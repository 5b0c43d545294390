"""
Budget summary route.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.models.user import User
from app.schemas.budget import BudgetSummary, BudgetCategoryItem
from app.api.dependencies import get_current_user
from app.api.routes.trips import check_trip_access
from app.services import expense_service
from app.services.budget_service import summarize_budget

router = APIRouter(prefix="/trips", tags=["budget"])


@router.get("/{trip_id}/budget", response_model=BudgetSummary)
async def get_budget_summary(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Budget, spending and per-category breakdown, recomputed on every call."""
    trip = check_trip_access(trip_id, current_user.id, db)
    expenses = expense_service.list_expenses(trip_id, db)
    totals = summarize_budget(trip.total_budget, expenses)

    category_items = [
        BudgetCategoryItem(
            category=category,
            spent=spent,
            percentage_of_total=(spent / totals.total_spent * 100) if totals.total_spent > 0 else 0.0,
        )
        for category, spent in totals.by_category.items()
    ]
    # Sort by spent amount (descending)
    category_items.sort(key=lambda x: x.spent, reverse=True)

    return BudgetSummary(
        trip_id=trip.id,
        currency=trip.currency,
        total_budget=totals.total_budget,
        total_spent=totals.total_spent,
        remaining=totals.remaining,
        spent_percentage=totals.spent_percentage,
        expense_count=len(expenses),
        categories=category_items,
    )
