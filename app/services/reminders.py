"""Service for building reminders ahead of selected screenings."""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from app.domain.models import ReminderScheduleItem, Screening

DEFAULT_OFFSETS = [60, 30]  # 1 hour, 30 minutes


def screening_start(screening: Screening, tz: ZoneInfo) -> datetime:
    """Combine a screening's date and ``HH:MM`` start into an aware datetime."""
    hours, minutes = screening.start_time.split(":")
    return datetime(
        screening.date.year,
        screening.date.month,
        screening.date.day,
        int(hours),
        int(minutes),
        tzinfo=tz,
    )


def _describe_offset(offset: int) -> str:
    if offset % 60 == 0:
        return f"{offset // 60}h"
    return f"{offset} minutes"


def schedule_reminders(
    screening: Screening,
    film_title: str,
    offsets_minutes: list[int],
    now: datetime,
    tz: ZoneInfo,
) -> list[ReminderScheduleItem]:
    """Create reminder items for the given offsets before the screening starts.

    Offsets whose trigger time is not after *now* are skipped.
    """
    start = screening_start(screening, tz)
    items: list[ReminderScheduleItem] = []
    for offset in offsets_minutes:
        trigger_time = start - timedelta(minutes=offset)
        if trigger_time <= now:
            continue
        items.append(
            ReminderScheduleItem(
                screening_id=screening.id,
                trigger_time=trigger_time,
                title=f"Screening in {_describe_offset(offset)}",
                body=f"{film_title} at {screening.venue.name}",
            )
        )
    return items
