"""
Expense model for tracking spending against a trip budget.
"""
from sqlalchemy import Column, String, Float, Date, Text, Enum as SQLEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
import enum


class ExpenseCategory(str, enum.Enum):
    """Expense categories shown in the budget breakdown."""
    ACCOMMODATION = "accommodation"
    FOOD = "food"
    TRANSPORT = "transport"
    ACTIVITIES = "activities"
    SHOPPING = "shopping"
    OTHER = "other"


class Expense(BaseModel):
    """Expense model representing a single spending event. Never edited after creation."""
    __tablename__ = "expenses"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # Who paid
    category = Column(SQLEnum(ExpenseCategory), nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="expenses")
    user = relationship("User", back_populates="expenses")
