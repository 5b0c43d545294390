"""
Trip model with its ordered destination stops and members.
"""
from datetime import datetime
from sqlalchemy import Column, String, Date, DateTime, Float, Enum as SQLEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TripVisibility(str, enum.Enum):
    """Who can see a trip besides its members."""
    PUBLIC = "public"
    CONTACTS = "contacts"
    PRIVATE = "private"


class TransportType(str, enum.Enum):
    """Transport used on the leg to the next stop."""
    FLIGHT = "flight"
    TRAIN = "train"
    CAR = "car"
    BUS = "bus"
    SHIP = "ship"


class MemberRole(str, enum.Enum):
    """Role of a user on a shared trip."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class Trip(BaseModel):
    """Trip aggregate owning its stops, members, itinerary and expenses."""
    __tablename__ = "trips"

    title = Column(String(200), nullable=False)
    destination = Column(String(200), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    total_budget = Column(Float, nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    status = Column(SQLEnum(TripStatus), default=TripStatus.PLANNING, nullable=False)
    visibility = Column(SQLEnum(TripVisibility), default=TripVisibility.PRIVATE, nullable=False)

    # Relationships
    owner = relationship("User")
    destinations = relationship(
        "TripDestination",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="TripDestination.order_index",
    )
    members = relationship("TripMember", back_populates="trip", cascade="all, delete-orphan")
    itinerary_days = relationship(
        "ItineraryDay",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="ItineraryDay.day_index",
    )
    expenses = relationship("Expense", back_populates="trip", cascade="all, delete-orphan")


class TripDestination(BaseModel):
    """One stop of a multi-destination trip."""
    __tablename__ = "trip_destinations"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    location = Column(String(200), nullable=False)
    order_index = Column(Integer, nullable=False)  # 0, 1, 2...
    start_date = Column(Date, nullable=False)  # Arrival
    end_date = Column(Date, nullable=False)  # Departure
    transport_type = Column(SQLEnum(TransportType), nullable=True)  # To get to the NEXT stop

    trip = relationship("Trip", back_populates="destinations")


class TripMember(BaseModel):
    """Junction table for Trip and User with a role."""
    __tablename__ = "trip_members"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(SQLEnum(MemberRole), nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    trip = relationship("Trip", back_populates="members")
    user = relationship("User", back_populates="memberships")
