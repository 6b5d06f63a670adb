"""Service for detecting scheduling conflicts between festival screenings.

Two kinds of conflict are reported:

* **time**: two screenings on the same day whose ``[start, end)`` intervals
  intersect. Back-to-back screenings (one ends when the other starts) do not
  overlap.
* **travel**: two non-overlapping screenings on the same day where the gap
  between them is shorter than the walking time between their venues.

Everything here is a pure computation over in-memory records. Malformed
``HH:MM`` strings are rejected when a :class:`Screening` is built, so the
functions below do not re-check them.
"""

from __future__ import annotations

import logging
import math
from datetime import date

from app.domain.models import (
    ConflictResult,
    ConflictType,
    Screening,
    ScheduleValidation,
    Venue,
)

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
WALKING_SPEED_KMH = 4
TRAVEL_BUFFER_MINUTES = 5


def distance_km(venue_a: Venue, venue_b: Venue) -> float:
    """Great-circle distance between two venues (haversine).

    Returns 0 when either venue has no coordinates, which means no travel
    conflict can be derived for the pair.
    """
    if venue_a.coordinates is None or venue_b.coordinates is None:
        return 0.0

    lat1 = math.radians(venue_a.coordinates.latitude)
    lat2 = math.radians(venue_b.coordinates.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(
        venue_b.coordinates.longitude - venue_a.coordinates.longitude
    )

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def travel_minutes(venue_a: Venue, venue_b: Venue) -> int:
    """Walking minutes between two venues plus a fixed safety buffer.

    The distance-derived minutes are rounded up *before* the buffer is added.
    """
    walking = math.ceil(distance_km(venue_a, venue_b) / WALKING_SPEED_KMH * 60)
    return walking + TRAVEL_BUFFER_MINUTES


def time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` string into minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def is_same_calendar_day(d1: date, d2: date) -> bool:
    # Component-wise so datetimes compare by calendar day, ignoring time of day.
    return (d1.year, d1.month, d1.day) == (d2.year, d2.month, d2.day)


def has_time_overlap(a: Screening, b: Screening) -> bool:
    """Return True if two screenings on the same day overlap in time.

    Overlap rule: conflict if start_a < end_b AND start_b < end_a.
    Exact boundary touches (end == start) are NOT overlaps.
    """
    if not is_same_calendar_day(a.date, b.date):
        return False
    return time_to_minutes(a.start_time) < time_to_minutes(
        b.end_time
    ) and time_to_minutes(b.start_time) < time_to_minutes(a.end_time)


def travel_conflict(a: Screening, b: Screening) -> ConflictResult:
    """Check whether there is enough time to walk between *a* and *b*.

    Only meaningful for same-day screenings that do not overlap. The
    screening that ends first is taken as the departure point. A reported
    conflict always carries *b* as the conflicting screening.
    """
    if not is_same_calendar_day(a.date, b.date) or has_time_overlap(a, b):
        return ConflictResult.none()

    if time_to_minutes(a.end_time) <= time_to_minutes(b.end_time):
        first, second = a, b
    else:
        first, second = b, a

    gap = time_to_minutes(second.start_time) - time_to_minutes(first.end_time)
    needed = travel_minutes(first.venue, second.venue)
    if gap >= needed:
        return ConflictResult.none()

    return ConflictResult(
        has_conflict=True,
        conflict_type=ConflictType.TRAVEL,
        conflicting_screening=b,
        travel_minutes=needed,
        message=(
            f"Not enough travel time: {needed} min needed, only {gap} min "
            f"available between {first.venue.name} and {second.venue.name}"
        ),
    )


def _time_conflict(other: Screening) -> ConflictResult:
    return ConflictResult(
        has_conflict=True,
        conflict_type=ConflictType.TIME,
        conflicting_screening=other,
        message=(
            f"Time conflict with the screening at {other.venue.name} "
            f"from {other.start_time} to {other.end_time}"
        ),
    )


def _pair_conflict(a: Screening, b: Screening) -> ConflictResult:
    # A direct overlap makes the travel check meaningless for the pair.
    if has_time_overlap(a, b):
        return _time_conflict(b)
    return travel_conflict(a, b)


def check_conflicts(
    candidate: Screening,
    existing: list[Screening],
) -> list[ConflictResult]:
    """Return the conflicts *candidate* would create with an accepted list.

    One entry per conflicting screening, in the order of *existing*.
    """
    conflicts: list[ConflictResult] = []
    for other in existing:
        result = _pair_conflict(candidate, other)
        if result.has_conflict:
            logger.debug(
                "%s conflict between %s and %s",
                result.conflict_type,
                candidate.id,
                other.id,
            )
            conflicts.append(result)
    return conflicts


def validate_full_schedule(screenings: list[Screening]) -> ScheduleValidation:
    """Check every pair of a proposed schedule and collect all conflicts.

    Screenings are sorted by (date, start time); exact ties keep their input
    order. Each unordered pair is examined once and the later screening of
    the pair is reported as the conflicting one.
    """
    ordered = sorted(
        screenings, key=lambda s: (s.date, time_to_minutes(s.start_time))
    )

    conflicts: list[ConflictResult] = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1 :]:
            result = _pair_conflict(first, second)
            if result.has_conflict:
                logger.debug(
                    "%s conflict between %s and %s",
                    result.conflict_type,
                    first.id,
                    second.id,
                )
                conflicts.append(result)

    return ScheduleValidation(is_valid=not conflicts, conflicts=conflicts)


def suggested_alternatives(
    screening: Screening,
    all_screenings: list[Screening],
    exclude_id: str | None = None,
) -> list[Screening]:
    """Return other screenings of the same film.

    The screening itself and *exclude_id* (typically the one it conflicted
    with) are left out. No conflict checking is done on the results.
    """
    return [
        s
        for s in all_screenings
        if s.film_id == screening.film_id
        and s.id != screening.id
        and s.id != exclude_id
    ]
