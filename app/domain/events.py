"""Domain events emitted while a festival-goer builds their schedule."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from app.domain.models import ConflictResult


class ScreeningSelected(BaseModel):
    """Fired after a screening id is added to the selection.

    *conflicts* carries an already computed check against the rest of the
    selection; when omitted the handler runs the check itself.
    """

    screening_id: str
    conflicts: list[ConflictResult] | None = None


class ScreeningDeselected(BaseModel):
    """Fired after a screening id is removed from the selection."""

    screening_id: str


class ScheduleCleared(BaseModel):
    """Fired when the whole selection is wiped."""

    screening_ids: list[str]


class ConflictDetected(BaseModel):
    """Fired when a newly selected screening conflicts with the selection."""

    screening_id: str
    conflicting_screening_ids: list[str]
    messages: list[str]


class ReminderSent(BaseModel):
    """Fired when a reminder's trigger time has been reached (via /tick)."""

    screening_id: str
    schedule_item_id: str
    sent_at: datetime
