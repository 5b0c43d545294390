"""
Pydantic schemas for Trip entity and its destinations.
"""
from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime
from app.models.trip import TripStatus, TripVisibility, TransportType
from app.schemas.common import ApiModel, parse_calendar_date
from app.services.destination_service import Stop, validate_stops


class DestinationCreate(ApiModel):
    """One stop in a trip creation request."""
    location: str
    start_date: date
    end_date: date
    transport_type: Optional[TransportType] = None
    order_index: Optional[int] = None  # Recomputed from list position

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return parse_calendar_date(v)

    def to_stop(self) -> Stop:
        return Stop(
            location=self.location.strip(),
            start_date=self.start_date,
            end_date=self.end_date,
            transport_type=self.transport_type.value if self.transport_type else None,
        )


class DestinationResponse(ApiModel):
    """Schema for a stored stop."""
    id: int
    location: str
    order_index: int
    start_date: date
    end_date: date
    transport_type: Optional[TransportType] = None


class TripCreate(ApiModel):
    """Schema for trip creation."""
    title: str = Field(min_length=1, max_length=200)
    destination: Optional[str] = None
    visibility: TripVisibility = TripVisibility.PRIVATE
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_date: date
    end_date: date
    total_budget: float = Field(default=0, ge=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    status: TripStatus = TripStatus.PLANNING
    destinations: List[DestinationCreate] = []

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return parse_calendar_date(v)

    @field_validator("status", mode="before")
    @classmethod
    def accept_ongoing_alias(cls, v):
        """The mobile client calls an active trip "ongoing"."""
        if isinstance(v, str) and v.lower() == "ongoing":
            return TripStatus.ACTIVE
        return v

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_dates_and_stops(self):
        if self.start_date > self.end_date:
            raise ValueError("Trip end date must not be before its start date")
        validate_stops([d.to_stop() for d in self.destinations])
        return self


class TripResponse(ApiModel):
    """Schema for trip response."""
    id: int
    title: str
    destination: Optional[str] = None
    owner_id: int
    visibility: TripVisibility
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_date: date
    end_date: date
    total_budget: float
    currency: str
    status: TripStatus
    created_at: datetime
    destinations: List[DestinationResponse] = []


class TripCreateResponse(TripResponse):
    """Created trip plus advisory notes about stops outside the trip dates."""
    warnings: List[str] = []
