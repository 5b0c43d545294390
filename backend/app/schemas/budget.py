"""
Pydantic schemas for the budget summary.
"""
from typing import List
from app.schemas.common import ApiModel


class BudgetCategoryItem(ApiModel):
    """Spending in one category."""
    category: str
    spent: float
    percentage_of_total: float  # Share of total spending (0-100)


class BudgetSummary(ApiModel):
    """Budget against spending for a trip."""
    trip_id: int
    currency: str
    total_budget: float
    total_spent: float
    remaining: float  # May be negative
    spent_percentage: float
    expense_count: int
    categories: List[BudgetCategoryItem] = []
