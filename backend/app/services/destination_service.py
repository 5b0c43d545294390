"""
Destination sequencing and validation for multi-stop trips.

Stops are handled as plain ``Stop`` values so the same rules apply to request
payloads, stored ``TripDestination`` rows, and the client-side trip builder.
"""
import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import List, Optional, Sequence

from app.core.config import settings
from app.core.utils import as_date

logger = logging.getLogger(__name__)


class DestinationValidationError(ValueError):
    """Raised when a list of stops breaks the sequencing rules."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


@dataclass(frozen=True)
class Stop:
    """One leg of a trip: where, when, and how to get to the next stop."""
    location: str
    start_date: date
    end_date: date
    transport_type: Optional[str] = None
    order_index: int = 0
    is_return: bool = False

    @property
    def nights(self) -> int:
        return (as_date(self.end_date) - as_date(self.start_date)).days


def validate_stops(stops: Sequence[Stop]) -> None:
    """
    Check every stop and each consecutive pair.

    A stop needs a non-empty location and start <= end. Stop i may end on the
    same day stop i+1 starts (same-day transit) but not after it.
    """
    for i, stop in enumerate(stops):
        if not stop.location or not stop.location.strip():
            raise DestinationValidationError(f"Stop {i} has no location", index=i)
        if as_date(stop.start_date) > as_date(stop.end_date):
            raise DestinationValidationError(
                f"Stop {i} ({stop.location}) ends before it starts", index=i
            )

    for i in range(len(stops) - 1):
        current, following = stops[i], stops[i + 1]
        if as_date(current.end_date) > as_date(following.start_date):
            raise DestinationValidationError(
                f"Stop {i} ({current.location}) overlaps stop {i + 1} ({following.location})",
                index=i + 1,
            )


def reindex(stops: Sequence[Stop]) -> List[Stop]:
    """Return the stops with order_index equal to their list position."""
    return [replace(stop, order_index=i) for i, stop in enumerate(stops)]


def insert_stop(
    stops: Sequence[Stop],
    location: str,
    transport_type: Optional[str] = None,
    default_days: Optional[int] = None,
) -> List[Stop]:
    """
    Insert a new stop after the last real stop.

    The new stop starts when the previous stop ends and lasts ``default_days``.
    A trailing return stop is kept last and shifted so it starts when the new
    stop ends, keeping its own length.
    """
    if default_days is None:
        default_days = settings.DEFAULT_STOP_DAYS
    stops = list(stops)
    has_return = bool(stops) and stops[-1].is_return
    real_stops = stops[:-1] if has_return else stops

    if real_stops:
        start = as_date(real_stops[-1].end_date)
    elif has_return:
        start = as_date(stops[-1].start_date)
    else:
        raise DestinationValidationError("Cannot derive dates for the first stop")

    new_stop = Stop(
        location=location,
        start_date=start,
        end_date=start + timedelta(days=default_days),
        transport_type=transport_type,
    )
    result = real_stops + [new_stop]

    if has_return:
        return_stop = stops[-1]
        result.append(replace(
            return_stop,
            start_date=new_stop.end_date,
            end_date=new_stop.end_date + timedelta(days=return_stop.nights),
        ))

    logger.debug(f"Inserted stop '{location}' at position {len(real_stops)}")
    return reindex(result)


def remove_stop(stops: Sequence[Stop], index: int) -> List[Stop]:
    """Remove the stop at ``index`` and reindex the rest."""
    if index < 0 or index >= len(stops):
        raise IndexError(f"No stop at position {index}")
    remaining = [stop for i, stop in enumerate(stops) if i != index]
    return reindex(remaining)


def check_trip_window(
    trip_start: date,
    trip_end: date,
    stops: Sequence[Stop],
    strict: bool = False,
) -> List[str]:
    """
    Compare the stops against the trip's own date range.

    Advisory by default: returns a warning per mismatch. With ``strict`` the
    first stop must start on the trip start and the last must end on the trip
    end, and any mismatch raises.
    """
    if as_date(trip_start) > as_date(trip_end):
        raise DestinationValidationError("Trip ends before it starts")
    if not stops:
        return []

    first_start = as_date(stops[0].start_date)
    last_end = as_date(stops[-1].end_date)
    trip_start = as_date(trip_start)
    trip_end = as_date(trip_end)

    warnings = []
    if strict:
        if first_start != trip_start:
            raise DestinationValidationError(
                f"First stop starts {first_start}, trip starts {trip_start}", index=0
            )
        if last_end != trip_end:
            raise DestinationValidationError(
                f"Last stop ends {last_end}, trip ends {trip_end}", index=len(stops) - 1
            )
        return warnings

    if first_start < trip_start:
        warnings.append(f"First stop starts {first_start}, before the trip starts on {trip_start}")
    if last_end > trip_end:
        warnings.append(f"Last stop ends {last_end}, after the trip ends on {trip_end}")
    return warnings
