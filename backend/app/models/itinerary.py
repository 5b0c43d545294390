"""
Itinerary models: one row per trip day, activities ordered within the day.
"""
from sqlalchemy import Column, String, Date, Float, Text, Enum as SQLEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
import enum


class ActivityStatus(str, enum.Enum):
    """Lifecycle state of a planned activity."""
    PLANNED = "planned"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class ActivityCategory(str, enum.Enum):
    """Kind of activity."""
    DINING = "dining"
    SIGHTSEEING = "sightseeing"
    TRANSPORT = "transport"
    ACTIVITY = "activity"
    REST = "rest"
    ACCOMMODATION = "accommodation"


class ItineraryDay(BaseModel):
    """A calendar day of a trip's generated plan."""
    __tablename__ = "itinerary_days"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    day_index = Column(Integer, nullable=False)  # 1-based
    theme = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    trip = relationship("Trip", back_populates="itinerary_days")
    activities = relationship(
        "Activity",
        back_populates="day",
        cascade="all, delete-orphan",
        order_by="Activity.order",
    )


class Activity(BaseModel):
    """A single scheduled activity."""
    __tablename__ = "activities"

    itinerary_day_id = Column(Integer, ForeignKey("itinerary_days.id"), nullable=False, index=True)
    order = Column(Integer, nullable=False, default=1)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(200), nullable=True)
    estimated_cost = Column(Float, nullable=False, default=0)
    category = Column(SQLEnum(ActivityCategory), nullable=False, default=ActivityCategory.ACTIVITY)
    status = Column(SQLEnum(ActivityStatus), nullable=False, default=ActivityStatus.PLANNED)

    day = relationship("ItineraryDay", back_populates="activities")
