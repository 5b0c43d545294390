"""
Budget aggregation over a trip's expenses.

Everything here is recomputed from the expense list on each call; no running
totals are stored.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable


@dataclass
class BudgetTotals:
    """Result of aggregating expenses against a budget."""
    total_budget: float
    total_spent: float
    remaining: float
    spent_percentage: float
    by_category: Dict[str, float] = field(default_factory=dict)


def _field(expense, name):
    if isinstance(expense, dict):
        return expense[name]
    return getattr(expense, name)


def _category_key(category) -> str:
    return getattr(category, "value", category)


def spent_percentage(total_budget: float, total_spent: float) -> float:
    """Share of the budget used, 0 when there is no positive budget."""
    if total_budget <= 0:
        return 0.0
    return total_spent / total_budget * 100


def summarize_budget(total_budget: float, expenses: Iterable) -> BudgetTotals:
    """
    Aggregate expenses (ORM rows, schemas or dicts with amount/category).

    remaining = total_budget - total_spent and is allowed to go negative.
    """
    total_budget = float(total_budget or 0)
    total_spent = 0.0
    by_category: Dict[str, float] = {}

    for expense in expenses:
        amount = float(_field(expense, "amount"))
        category = _category_key(_field(expense, "category"))
        total_spent += amount
        by_category[category] = by_category.get(category, 0.0) + amount

    return BudgetTotals(
        total_budget=total_budget,
        total_spent=total_spent,
        remaining=total_budget - total_spent,
        spent_percentage=spent_percentage(total_budget, total_spent),
        by_category=by_category,
    )
