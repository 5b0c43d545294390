"""
Expense service for the append-only trip ledger.
"""
import logging
from datetime import date
from typing import List
from sqlalchemy.orm import Session
from app.models.expense import Expense
from app.models.trip import Trip
from app.schemas.expense import ExpenseCreate

logger = logging.getLogger(__name__)


def create_expense(trip: Trip, user_id: int, expense_data: ExpenseCreate, db: Session) -> Expense:
    """Log an expense. Expenses are never edited or deleted afterwards."""
    expense = Expense(
        trip_id=trip.id,
        user_id=user_id,
        category=expense_data.category,
        amount=expense_data.amount,
        currency=(expense_data.currency or trip.currency).upper(),
        description=expense_data.description,
        date=expense_data.date or date.today(),
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info(f"Logged expense {expense.id} of {expense.amount} {expense.currency} on trip {trip.id}")
    return expense


def list_expenses(trip_id: int, db: Session) -> List[Expense]:
    """Trip expenses, most recent date first."""
    return db.query(Expense).filter(Expense.trip_id == trip_id).order_by(
        Expense.date.desc(), Expense.id.desc()
    ).all()
