"""
Pydantic schemas for Expense entity.
"""
from pydantic import Field, field_validator
from typing import Optional
from datetime import date as dt_date, datetime
from app.models.expense import ExpenseCategory
from app.schemas.common import ApiModel, parse_calendar_date


class ExpenseCreate(ApiModel):
    """Schema for expense creation."""
    category: ExpenseCategory
    amount: float = Field(gt=0)
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)  # Defaults to the trip's currency
    description: str = Field(min_length=1)
    date: Optional[dt_date] = None  # Defaults to today

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        return parse_calendar_date(v)


class ExpenseResponse(ApiModel):
    """Schema for expense response."""
    id: int
    trip_id: int
    user_id: int
    category: ExpenseCategory
    amount: float
    currency: str
    description: str
    date: dt_date
    created_at: datetime
