"""
Itinerary generation backends.

Both backends return exactly one day per calendar date between the trip's
start and end (inclusive), or raise ``GenerationFailure``. Callers persist
nothing when generation fails.

Supports two backends:
1. Mock: deterministic, cycles a three-day template over the trip length
2. Gemini: prompts the Gemini API for JSON and normalizes it onto the calendar
"""
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.utils import as_date, date_range
from app.models.itinerary import ActivityStatus
from app.schemas.itinerary import ActivityResponse, ItineraryDayResponse, Pace, Suggestion

logger = logging.getLogger(__name__)


class GenerationFailure(Exception):
    """The generator could not produce a complete itinerary or suggestion batch."""


@dataclass
class GenerationRequest:
    """Everything a generator needs to plan a trip."""
    destinations: List[str]
    start_date: date
    end_date: date
    interests: List[str] = field(default_factory=list)
    pace: Pace = Pace.MODERATE


@dataclass
class ReoptimizationRequest:
    """Context for alternatives to a skipped activity."""
    destinations: List[str]
    failed_activity: Optional[str] = None
    time_available: Optional[int] = None  # Minutes
    constraints: List[str] = field(default_factory=list)
    count: int = 2


def day_count(start_date: date, end_date: date) -> int:
    """Number of calendar days in the inclusive range."""
    return (as_date(end_date) - as_date(start_date)).days + 1


TEMPLATE_THEMES = [
    "Arrival & City Exploration",
    "Nature & Adventure",
    "Culture & Farewell",
]

# (start, duration minutes, title, description, location, cost, category)
TEMPLATE_ACTIVITIES = [
    [
        ("09:00", 60, "Morning coffee at local cafe", "Start your day with local specialties", "Downtown Coffee House", 15, "dining"),
        ("10:30", 150, "City walking tour", "Explore the historic district", "Old Town", 45, "sightseeing"),
        ("13:00", 90, "Lunch at local restaurant", "Try the regional cuisine", "Main Square", 35, "dining"),
        ("15:00", 120, "Museum visit", "Art and culture exploration", "National Museum", 25, "activity"),
    ],
    [
        ("08:00", 90, "Sunrise viewpoint", "Catch the sunrise from the best spot", "Mountain Overlook", 0, "sightseeing"),
        ("10:00", 180, "Nature hike", "Moderate trail through scenic landscape", "National Park", 10, "activity"),
        ("14:00", 60, "Picnic lunch", "Enjoy local delicacies outdoors", "Park Meadow", 20, "dining"),
        ("16:00", 120, "Spa & relaxation", "Unwind after the hike", "Wellness Center", 80, "rest"),
    ],
    [
        ("10:00", 120, "Local market visit", "Shop for souvenirs and local goods", "Central Market", 50, "activity"),
        ("12:30", 180, "Cooking class", "Learn to make local dishes", "Culinary School", 65, "activity"),
        ("16:00", 90, "Evening stroll", "Explore the waterfront", "Riverside Walk", 0, "sightseeing"),
        ("19:00", 120, "Farewell dinner", "Fine dining experience", "Rooftop Restaurant", 100, "dining"),
    ],
]


def _end_time(start: str, minutes: int) -> str:
    hours, mins = (int(part) for part in start.split(":"))
    total = (hours * 60 + mins + minutes) % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"


class ItineraryGenerator(ABC):
    """Interface shared by all generation backends."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> List[ItineraryDayResponse]:
        """Return one day per date in the request's range."""

    @abstractmethod
    async def suggest_alternatives(self, request: ReoptimizationRequest) -> List[Suggestion]:
        """Return exactly ``request.count`` alternatives."""


class MockItineraryGenerator(ItineraryGenerator):
    """Deterministic generator used in development and tests."""

    async def generate(self, request: GenerationRequest) -> List[ItineraryDayResponse]:
        if as_date(request.start_date) > as_date(request.end_date):
            raise GenerationFailure("Trip ends before it starts")

        days = []
        for i, day_date in enumerate(date_range(request.start_date, request.end_date)):
            template = i % len(TEMPLATE_THEMES)
            theme = TEMPLATE_THEMES[template]
            if i >= len(TEMPLATE_THEMES):
                theme = f"{theme} (Day {i + 1})"

            activities = [
                ActivityResponse(
                    order=order,
                    start_time=start,
                    end_time=_end_time(start, minutes),
                    duration_minutes=minutes,
                    title=title,
                    description=description,
                    location=location,
                    estimated_cost=cost,
                    category=category,
                    status=ActivityStatus.PLANNED,
                )
                for order, (start, minutes, title, description, location, cost, category)
                in enumerate(TEMPLATE_ACTIVITIES[template], start=1)
            ]
            days.append(ItineraryDayResponse(
                day_index=i + 1,
                date=day_date,
                theme=theme,
                activities=activities,
            ))
        return days

    async def suggest_alternatives(self, request: ReoptimizationRequest) -> List[Suggestion]:
        place = request.destinations[0] if request.destinations else "your destination"
        failed = request.failed_activity or "activity"
        duration = min(request.time_available or 120, 120)
        candidates = [
            Suggestion(
                id="sug-1",
                title=f"Alternative to {failed}",
                description=f"A great alternative experience in {place}.",
                estimated_cost=30,
                duration=duration,
                reason="Similar activity type, available now",
            ),
            Suggestion(
                id="sug-2",
                title=f"Relaxed option near {place}",
                description="Take it easy with this nearby attraction.",
                estimated_cost=15,
                duration=min(duration, 90),
                reason="Lower cost, fits your remaining time",
            ),
        ]
        return candidates[:request.count]


ITINERARY_PROMPT = """Plan a day-by-day travel itinerary.

Destinations (in order): {destinations}
Dates: {start_date} to {end_date} ({days} days)
Interests: {interests}
Pace: {pace}

Return ONLY JSON, no explanation, in this shape:
{{"days": [{{"day_index": 1, "date": "YYYY-MM-DD", "theme": "...",
  "activities": [{{"start_time": "HH:MM", "end_time": "HH:MM", "title": "...",
  "description": "...", "location": "...", "estimated_cost": 0,
  "category": "dining|sightseeing|transport|activity|rest|accommodation"}}]}}]}}

Include exactly {days} days, one for each date."""

SUGGESTION_PROMPT = """A traveller in {destinations} could not do "{failed}".
They have {time_available} minutes available.
Constraints: {constraints}

Suggest {count} alternative activities. Return ONLY JSON, no explanation:
{{"suggestions": [{{"title": "...", "description": "...", "estimated_cost": 0,
  "duration": 60, "reason": "..."}}]}}"""


def extract_json(text: str):
    """Parse a model reply, tolerating a surrounding markdown code fence."""
    json_str = text.strip()
    if json_str.startswith("```"):
        json_str = json_str.split("```")[1]
        if json_str.startswith("json"):
            json_str = json_str[4:]
    return json.loads(json_str.strip())


class GeminiItineraryGenerator(ItineraryGenerator):
    """Generator backed by the Gemini generateContent API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        api_url: str = "https://generativelanguage.googleapis.com/v1beta/models",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the text of the first candidate."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.api_url}/{self.model}:generateContent",
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json={
                        "contents": [{"parts": [{"text": prompt}]}],
                        "generationConfig": {
                            "temperature": 0.7,
                            "responseMimeType": "application/json",
                        },
                    },
                )
                response.raise_for_status()
                data = response.json()
                return data["candidates"][0]["content"]["parts"][0]["text"]
        except httpx.TimeoutException as e:
            logger.error("Gemini request timed out")
            raise GenerationFailure("Itinerary service timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini API error {e.response.status_code}: {e.response.text}")
            raise GenerationFailure(f"Itinerary service returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}", exc_info=True)
            raise GenerationFailure("Itinerary service unreachable") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Unexpected Gemini response shape: {e}")
            raise GenerationFailure("Itinerary service returned an unexpected response") from e

    async def generate(self, request: GenerationRequest) -> List[ItineraryDayResponse]:
        dates = list(date_range(request.start_date, request.end_date))
        if not dates:
            raise GenerationFailure("Trip ends before it starts")

        prompt = ITINERARY_PROMPT.format(
            destinations=", ".join(request.destinations) or "unspecified",
            start_date=dates[0].isoformat(),
            end_date=dates[-1].isoformat(),
            days=len(dates),
            interests=", ".join(request.interests) or "general sightseeing",
            pace=request.pace.value,
        )
        text = await self.complete(prompt)

        try:
            payload = extract_json(text)
            raw_days = payload["days"] if isinstance(payload, dict) else payload
            return self._normalize_days(raw_days, dates)
        except GenerationFailure:
            raise
        except (ValueError, KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.error(f"Malformed itinerary from Gemini: {e}")
            raise GenerationFailure("Itinerary service returned malformed JSON") from e

    def _normalize_days(self, raw_days: list, dates: List[date]) -> List[ItineraryDayResponse]:
        """Map the model's days onto the requested calendar by position."""
        if len(raw_days) < len(dates):
            raise GenerationFailure(
                f"Expected {len(dates)} days, got {len(raw_days)}"
            )

        days = []
        for i, day_date in enumerate(dates):
            raw = raw_days[i]
            activities = []
            for order, item in enumerate(raw.get("activities", []), start=1):
                activities.append(ActivityResponse(
                    order=order,
                    start_time=item.get("start_time") or "09:00",
                    end_time=item.get("end_time"),
                    duration_minutes=item.get("duration_minutes"),
                    title=item["title"],
                    description=item.get("description"),
                    location=item.get("location"),
                    estimated_cost=item.get("estimated_cost") or 0,
                    category=item.get("category") or "activity",
                    status=ActivityStatus.PLANNED,
                ))
            days.append(ItineraryDayResponse(
                day_index=i + 1,
                date=day_date,
                theme=raw.get("theme"),
                activities=activities,
            ))
        return days

    async def suggest_alternatives(self, request: ReoptimizationRequest) -> List[Suggestion]:
        prompt = SUGGESTION_PROMPT.format(
            destinations=", ".join(request.destinations) or "their destination",
            failed=request.failed_activity or "a planned activity",
            time_available=request.time_available if request.time_available is not None else "a few",
            constraints=", ".join(request.constraints) or "none",
            count=request.count,
        )
        text = await self.complete(prompt)

        try:
            payload = extract_json(text)
            raw = payload["suggestions"] if isinstance(payload, dict) else payload
            suggestions = [
                Suggestion(
                    id=f"sug-{i}",
                    title=item["title"],
                    description=item.get("description") or "",
                    estimated_cost=item.get("estimated_cost") or 0,
                    duration=item.get("duration") or 60,
                    reason=item.get("reason") or "",
                )
                for i, item in enumerate(raw, start=1)
            ]
        except (ValueError, KeyError, TypeError, AttributeError, ValidationError) as e:
            logger.error(f"Malformed suggestions from Gemini: {e}")
            raise GenerationFailure("Itinerary service returned malformed JSON") from e

        if len(suggestions) < request.count:
            raise GenerationFailure(
                f"Expected {request.count} suggestions, got {len(suggestions)}"
            )
        return suggestions[:request.count]


def get_itinerary_generator() -> ItineraryGenerator:
    """Build the generator selected by ITINERARY_GENERATOR."""
    if settings.ITINERARY_GENERATOR == "gemini":
        if settings.GEMINI_API_KEY:
            return GeminiItineraryGenerator(
                api_key=settings.GEMINI_API_KEY,
                model=settings.GEMINI_MODEL,
                api_url=settings.GEMINI_API_URL,
                timeout=settings.GEMINI_TIMEOUT,
            )
        logger.warning("GEMINI_API_KEY not configured. Using mock itinerary generator.")
    return MockItineraryGenerator()
