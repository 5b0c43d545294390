"""
Trip service for trip creation and membership queries.
"""
import logging
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload
from app.core.config import settings
from app.models.trip import Trip, TripDestination, TripMember, MemberRole, TripVisibility
from app.schemas.trip import TripCreate
from app.services.destination_service import Stop, reindex, check_trip_window

logger = logging.getLogger(__name__)


def stops_for(trip_data: TripCreate) -> List[Stop]:
    """
    Stops to store for a new trip, in order.

    A trip submitted without stops but with a destination gets a single stop
    spanning the whole trip.
    """
    stops = [d.to_stop() for d in trip_data.destinations]
    if not stops and trip_data.destination:
        stops = [Stop(
            location=trip_data.destination,
            start_date=trip_data.start_date,
            end_date=trip_data.end_date,
        )]
    return reindex(stops)


def create_trip(trip_data: TripCreate, owner_id: int, db: Session):
    """
    Create a trip, its owner membership and its stops in one transaction.

    Returns the trip and any advisory warnings about stops falling outside
    the trip dates. Raises DestinationValidationError in strict mode.
    """
    stops = stops_for(trip_data)
    warnings = check_trip_window(
        trip_data.start_date, trip_data.end_date, stops, strict=settings.STRICT_TRIP_WINDOW
    )

    trip = Trip(
        title=trip_data.title,
        destination=trip_data.destination or (stops[0].location if stops else None),
        owner_id=owner_id,
        visibility=trip_data.visibility,
        latitude=trip_data.latitude,
        longitude=trip_data.longitude,
        start_date=trip_data.start_date,
        end_date=trip_data.end_date,
        total_budget=trip_data.total_budget,
        currency=trip_data.currency,
        status=trip_data.status,
    )

    try:
        db.add(trip)
        db.flush()

        # Owner is always an admin of their trip
        db.add(TripMember(trip_id=trip.id, user_id=owner_id, role=MemberRole.ADMIN))

        for stop in stops:
            db.add(TripDestination(
                trip_id=trip.id,
                location=stop.location,
                order_index=stop.order_index,
                start_date=stop.start_date,
                end_date=stop.end_date,
                transport_type=stop.transport_type,
            ))
        db.commit()
    except Exception:
        db.rollback()
        logger.error("Trip creation rolled back", exc_info=True)
        raise

    db.refresh(trip)
    logger.info(f"Created trip {trip.id} with {len(stops)} stops for user {owner_id}")
    return trip, warnings


def list_trips_for_user(user_id: int, db: Session) -> List[Trip]:
    """All trips the user is a member of."""
    return db.query(Trip).options(selectinload(Trip.destinations)).join(TripMember).filter(
        TripMember.user_id == user_id
    ).order_by(Trip.start_date).all()


def get_trip_for_user(trip_id: int, user_id: int, db: Session) -> Optional[Trip]:
    """A trip the user may read: any trip they belong to, or any public trip."""
    return db.query(Trip).outerjoin(
        TripMember, (TripMember.trip_id == Trip.id) & (TripMember.user_id == user_id)
    ).filter(
        Trip.id == trip_id,
        or_(TripMember.id.isnot(None), Trip.visibility == TripVisibility.PUBLIC),
    ).first()


def get_trip_for_member(trip_id: int, user_id: int, db: Session, roles=None) -> Optional[Trip]:
    """A trip the user belongs to, optionally restricted to the given member roles."""
    query = db.query(Trip).join(TripMember).filter(
        Trip.id == trip_id,
        TripMember.user_id == user_id,
    )
    if roles:
        query = query.filter(TripMember.role.in_(roles))
    return query.first()
