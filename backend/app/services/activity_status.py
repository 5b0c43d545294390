"""
Activity status transitions.

A manual tap walks the ring planned -> completed -> skipped -> planned.
``ongoing`` is only entered through an explicit status update; tapping an
ongoing activity completes it.
"""
from typing import Iterable, Union

from app.models.itinerary import ActivityStatus

MANUAL_CYCLE = {
    ActivityStatus.PLANNED: ActivityStatus.COMPLETED,
    ActivityStatus.COMPLETED: ActivityStatus.SKIPPED,
    ActivityStatus.SKIPPED: ActivityStatus.PLANNED,
    ActivityStatus.ONGOING: ActivityStatus.COMPLETED,
}


def next_manual_status(status: Union[ActivityStatus, str]) -> ActivityStatus:
    """Status an activity moves to when the user taps it."""
    return MANUAL_CYCLE[ActivityStatus(status)]


def apply_status(activity, status: Union[ActivityStatus, str]):
    """Set an explicit status; every state is re-enterable."""
    activity.status = ActivityStatus(status)
    return activity


def advance_status(activity):
    """Apply one manual tap to the activity."""
    return apply_status(activity, next_manual_status(activity.status))


def _status_of(activity) -> ActivityStatus:
    if isinstance(activity, dict):
        return ActivityStatus(activity["status"])
    return ActivityStatus(activity.status)


def needs_reoptimization(activities: Iterable) -> bool:
    """True when at least one activity has been skipped."""
    return any(_status_of(a) == ActivityStatus.SKIPPED for a in activities)
