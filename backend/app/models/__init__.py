"""Models package - Import all models for SQLAlchemy registration."""
from app.models.user import User
from app.models.auth_session import AuthSession
from app.models.trip import Trip, TripDestination, TripMember, TripStatus, TripVisibility, TransportType, MemberRole
from app.models.itinerary import ItineraryDay, Activity, ActivityStatus, ActivityCategory
from app.models.expense import Expense, ExpenseCategory

__all__ = [
    "User",
    "AuthSession",
    "Trip",
    "TripDestination",
    "TripMember",
    "TripStatus",
    "TripVisibility",
    "TransportType",
    "MemberRole",
    "ItineraryDay",
    "Activity",
    "ActivityStatus",
    "ActivityCategory",
    "Expense",
    "ExpenseCategory",
]
