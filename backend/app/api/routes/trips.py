"""
Trip management, itinerary generation and re-optimization routes.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from app.db.session import get_db
from app.models.user import User
from app.models.trip import Trip, MemberRole
from app.schemas.trip import TripCreate, TripCreateResponse, TripResponse, DestinationResponse
from app.schemas.itinerary import (
    GenerateItineraryRequest, ItineraryResponse, ActivityStatusUpdate, ActivityStatusResponse,
    ReoptimizeRequest, ReoptimizeResponse,
)
from app.api.dependencies import get_current_user, get_generator
from app.services import trip_service, itinerary_service
from app.services.destination_service import DestinationValidationError
from app.services.itinerary_generator import GenerationFailure, ItineraryGenerator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])


def check_trip_access(trip_id: int, user_id: int, db: Session) -> Trip:
    """Return the trip if the user may read it; 404 otherwise."""
    trip = trip_service.get_trip_for_user(trip_id, user_id, db)
    if not trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found"
        )
    return trip


WRITE_ROLES = (MemberRole.ADMIN, MemberRole.EDITOR)


def check_trip_membership(trip_id: int, user_id: int, db: Session) -> Trip:
    """Return the trip if the user may change it (admin or editor member); 404 otherwise."""
    trip = trip_service.get_trip_for_member(trip_id, user_id, db, roles=WRITE_ROLES)
    if not trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found"
        )
    return trip


@router.post("", response_model=TripCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a trip with its stops; the creator becomes its admin."""
    try:
        trip, warnings = trip_service.create_trip(trip_data, current_user.id, db)
    except DestinationValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    response = TripCreateResponse.model_validate(trip)
    response.warnings = warnings
    return response


@router.get("", response_model=List[TripResponse])
async def list_trips(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List all trips for current user."""
    return trip_service.list_trips_for_user(current_user.id, db)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get trip details."""
    return check_trip_access(trip_id, current_user.id, db)


@router.get("/{trip_id}/destinations", response_model=List[DestinationResponse])
async def get_destinations(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the trip's stops in order."""
    return check_trip_access(trip_id, current_user.id, db).destinations


@router.post("/{trip_id}/generate", response_model=ItineraryResponse)
async def generate_itinerary(
    trip_id: int,
    preferences: GenerateItineraryRequest,
    current_user: User = Depends(get_current_user),
    generator: ItineraryGenerator = Depends(get_generator),
    db: Session = Depends(get_db)
):
    """Generate a day-by-day itinerary, replacing any previous one."""
    trip = check_trip_membership(trip_id, current_user.id, db)

    try:
        days = await itinerary_service.generate_itinerary(
            trip, preferences.interests, preferences.pace, generator, db
        )
    except GenerationFailure as e:
        logger.error(f"Itinerary generation failed for trip {trip_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate itinerary"
        )

    return ItineraryResponse(itinerary=itinerary_service.to_body(days))


@router.get("/{trip_id}/itinerary", response_model=ItineraryResponse)
async def get_itinerary(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the stored itinerary (empty when none has been generated)."""
    check_trip_access(trip_id, current_user.id, db)
    days = itinerary_service.load_days(trip_id, db)
    return ItineraryResponse(itinerary=itinerary_service.to_body(days))


@router.patch("/{trip_id}/activities/{activity_id}/status", response_model=ActivityStatusResponse)
async def update_activity_status(
    trip_id: int,
    activity_id: int,
    update: ActivityStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Set an activity's status or advance it one manual step."""
    check_trip_membership(trip_id, current_user.id, db)

    activity = itinerary_service.get_activity(trip_id, activity_id, db)
    if not activity:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Activity not found"
        )

    updated, needs_reoptimization = itinerary_service.update_activity_status(
        activity, update.status, update.advance, db
    )
    return ActivityStatusResponse(activity=updated, needs_reoptimization=needs_reoptimization)


@router.post("/{trip_id}/reoptimize", response_model=ReoptimizeResponse)
async def reoptimize(
    trip_id: int,
    request: ReoptimizeRequest,
    current_user: User = Depends(get_current_user),
    generator: ItineraryGenerator = Depends(get_generator),
    db: Session = Depends(get_db)
):
    """Suggest alternatives to a skipped or failed activity."""
    trip = check_trip_membership(trip_id, current_user.id, db)

    try:
        suggestions = await itinerary_service.suggest_alternatives(trip, request, generator, db)
    except GenerationFailure as e:
        logger.error(f"Re-optimization failed for trip {trip_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reoptimize itinerary"
        )

    return ReoptimizeResponse(suggestions=suggestions)
