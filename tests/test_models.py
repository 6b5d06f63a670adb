"""Tests for domain-model construction rules."""

from __future__ import annotations

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from app.domain.models import ConflictResult, Screening, Venue

_VENUE = Venue(id="v", name="Venue", address="Street")


def _screening(**overrides) -> Screening:
    defaults = dict(
        id="s",
        film_id="f",
        date=date(2026, 9, 18),
        start_time="10:00",
        end_time="12:00",
        venue=_VENUE,
    )
    defaults.update(overrides)
    return Screening(**defaults)


def test_datetime_is_truncated_to_calendar_day():
    screening = _screening(date=datetime(2026, 9, 18, 21, 45))
    assert screening.date == date(2026, 9, 18)


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "noon"])
def test_malformed_time_rejected(value):
    with pytest.raises(ValidationError):
        _screening(start_time=value)


def test_end_must_follow_start():
    with pytest.raises(ValidationError):
        _screening(start_time="12:00", end_time="12:00")


def test_screening_is_immutable():
    screening = _screening()
    with pytest.raises(ValidationError):
        screening.start_time = "11:00"


def test_no_conflict_result_is_empty():
    result = ConflictResult.none()
    assert result.has_conflict is False
    assert result.conflict_type is None
    assert result.conflicting_screening is None
    assert result.message is None
    assert result.travel_minutes is None
