"""
Pydantic schemas for itineraries, activity status updates and re-optimization.
"""
from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from datetime import date as dt_date
import enum
from app.models.itinerary import ActivityStatus, ActivityCategory
from app.schemas.common import ApiModel, parse_calendar_date


class Pace(str, enum.Enum):
    """How packed each day should be."""
    RELAXED = "relaxed"
    MODERATE = "moderate"
    FAST = "fast"


def _as_list(v):
    if v is None:
        return []
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class GenerateItineraryRequest(ApiModel):
    """Preferences sent when asking for a new itinerary."""
    interests: List[str] = []
    pace: Pace = Pace.MODERATE

    @field_validator("interests", mode="before")
    @classmethod
    def split_interests(cls, v):
        return _as_list(v)


class ActivityResponse(ApiModel):
    """Schema for an activity, stored or freshly generated."""
    id: Optional[int] = None
    order: int
    start_time: str
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    estimated_cost: float = 0
    category: ActivityCategory = ActivityCategory.ACTIVITY
    status: ActivityStatus = ActivityStatus.PLANNED


class ItineraryDayResponse(ApiModel):
    """Schema for one day of an itinerary."""
    id: Optional[int] = None
    day_index: int
    date: dt_date
    theme: Optional[str] = None
    notes: Optional[str] = None
    activities: List[ActivityResponse] = []

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v):
        return parse_calendar_date(v)


class ItineraryBody(ApiModel):
    days: List[ItineraryDayResponse]
    needs_reoptimization: bool = False


class ItineraryResponse(ApiModel):
    """Envelope returned by generate and fetch."""
    itinerary: ItineraryBody


class ActivityStatusUpdate(ApiModel):
    """Either set an explicit status or advance one manual step."""
    status: Optional[ActivityStatus] = None
    advance: bool = False

    @model_validator(mode="after")
    def exactly_one(self):
        if (self.status is None) == (not self.advance):
            raise ValueError("Provide either a status or advance=true")
        return self


class ActivityStatusResponse(ApiModel):
    activity: ActivityResponse
    needs_reoptimization: bool


class ReoptimizeRequest(ApiModel):
    """Context for asking alternatives to a skipped or failed activity."""
    failed_activity: Optional[str] = None
    failed_activity_id: Optional[int] = None
    time_available: Optional[int] = Field(default=None, ge=0)  # Minutes
    constraints: List[str] = []

    @field_validator("constraints", mode="before")
    @classmethod
    def split_constraints(cls, v):
        return _as_list(v)


class Suggestion(ApiModel):
    """An alternative activity. Never persisted."""
    id: str
    title: str
    description: str
    estimated_cost: float = 0
    duration: int = 60  # Minutes
    reason: str = ""


class ReoptimizeResponse(ApiModel):
    suggestions: List[Suggestion]
