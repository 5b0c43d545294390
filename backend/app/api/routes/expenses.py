"""
Expense routes. The ledger is append-only: there is no edit or delete.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from app.db.session import get_db
from app.models.user import User
from app.schemas.expense import ExpenseCreate, ExpenseResponse
from app.api.dependencies import get_current_user
from app.api.routes.trips import check_trip_access, check_trip_membership
from app.services import expense_service

router = APIRouter(prefix="/trips", tags=["expenses"])


@router.get("/{trip_id}/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List a trip's expenses, newest first."""
    check_trip_access(trip_id, current_user.id, db)
    return expense_service.list_expenses(trip_id, db)


@router.post("/{trip_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    trip_id: int,
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Log an expense paid by the current user."""
    trip = check_trip_membership(trip_id, current_user.id, db)
    return expense_service.create_expense(trip, current_user.id, expense_data, db)
