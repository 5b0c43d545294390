"""
Itinerary service: generation, wholesale replacement and activity status.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session, selectinload
from app.core.config import settings
from app.models.trip import Trip
from app.models.itinerary import ItineraryDay, Activity
from app.schemas.itinerary import (
    ActivityResponse, ItineraryBody, ItineraryDayResponse, ReoptimizeRequest, Suggestion,
)
from app.services.activity_status import advance_status, apply_status, needs_reoptimization
from app.services.itinerary_generator import (
    GenerationFailure, GenerationRequest, ItineraryGenerator, ReoptimizationRequest, day_count,
)

logger = logging.getLogger(__name__)


def destinations_of(trip: Trip) -> List[str]:
    """Stop names in order, falling back to the trip's headline destination."""
    names = [d.location for d in trip.destinations]
    if not names and trip.destination:
        names = [trip.destination]
    return names


def load_days(trip_id: int, db: Session) -> List[ItineraryDay]:
    return db.query(ItineraryDay).options(selectinload(ItineraryDay.activities)).filter(
        ItineraryDay.trip_id == trip_id
    ).order_by(ItineraryDay.day_index).all()


def to_body(days) -> ItineraryBody:
    """Serialize stored or generated days with the re-optimization flag."""
    day_responses = [
        day if isinstance(day, ItineraryDayResponse) else ItineraryDayResponse.model_validate(day)
        for day in days
    ]
    activities = [a for day in day_responses for a in day.activities]
    return ItineraryBody(days=day_responses, needs_reoptimization=needs_reoptimization(activities))


def replace_itinerary(trip: Trip, days: List[ItineraryDayResponse], db: Session) -> List[ItineraryDay]:
    """Swap the trip's stored itinerary for ``days`` in a single commit."""
    try:
        for old_day in load_days(trip.id, db):
            db.delete(old_day)
        db.flush()

        for day in days:
            row = ItineraryDay(
                trip_id=trip.id,
                date=day.date,
                day_index=day.day_index,
                theme=day.theme,
                notes=day.notes,
            )
            row.activities = [
                Activity(
                    order=a.order,
                    start_time=a.start_time,
                    end_time=a.end_time,
                    duration_minutes=a.duration_minutes,
                    title=a.title,
                    description=a.description,
                    location=a.location,
                    estimated_cost=a.estimated_cost,
                    category=a.category,
                    status=a.status,
                )
                for a in day.activities
            ]
            db.add(row)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to store itinerary for trip {trip.id}", exc_info=True)
        raise

    return load_days(trip.id, db)


async def generate_itinerary(
    trip: Trip,
    interests: List[str],
    pace,
    generator: ItineraryGenerator,
    db: Session,
) -> List[ItineraryDay]:
    """
    Generate and store a new itinerary.

    GenerationFailure propagates before anything is written, so the previous
    itinerary stays in place.
    """
    request = GenerationRequest(
        destinations=destinations_of(trip),
        start_date=trip.start_date,
        end_date=trip.end_date,
        interests=interests,
        pace=pace,
    )
    days = await generator.generate(request)

    expected = day_count(trip.start_date, trip.end_date)
    if len(days) != expected:
        raise GenerationFailure(f"Generator returned {len(days)} days, expected {expected}")

    logger.info(f"Generated {len(days)} day itinerary for trip {trip.id}")
    return replace_itinerary(trip, days, db)


def get_activity(trip_id: int, activity_id: int, db: Session) -> Optional[Activity]:
    return db.query(Activity).join(ItineraryDay).filter(
        Activity.id == activity_id,
        ItineraryDay.trip_id == trip_id,
    ).first()


def update_activity_status(activity: Activity, status, advance: bool, db: Session):
    """Apply an explicit status or one manual tap, then report the itinerary flag."""
    if advance:
        advance_status(activity)
    else:
        apply_status(activity, status)
    db.commit()
    db.refresh(activity)

    trip_id = activity.day.trip_id
    activities = db.query(Activity).join(ItineraryDay).filter(ItineraryDay.trip_id == trip_id).all()
    return ActivityResponse.model_validate(activity), needs_reoptimization(activities)


async def suggest_alternatives(
    trip: Trip,
    request: ReoptimizeRequest,
    generator: ItineraryGenerator,
    db: Session,
) -> List[Suggestion]:
    """Ask the generator for a fixed-size batch of alternatives. Nothing is stored."""
    failed = request.failed_activity
    if request.failed_activity_id is not None:
        activity = get_activity(trip.id, request.failed_activity_id, db)
        if activity is not None:
            failed = failed or activity.title

    return await generator.suggest_alternatives(ReoptimizationRequest(
        destinations=destinations_of(trip),
        failed_activity=failed,
        time_available=request.time_available,
        constraints=request.constraints,
        count=settings.REOPTIMIZE_SUGGESTION_COUNT,
    ))
