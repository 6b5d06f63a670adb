"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

from app.domain.bus import EventBus
from app.domain.events import (
    ConflictDetected,
    ReminderSent,
    ScheduleCleared,
    ScreeningDeselected,
    ScreeningSelected,
)
from app.domain.models import TimelineEntry, TimelineEntryType
from app.repos.memory import (
    Catalog,
    ReminderScheduleRepository,
    SelectionStore,
    TimelineRepository,
)
from app.services.conflicts import check_conflicts
from app.services.reminders import DEFAULT_OFFSETS, schedule_reminders

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to all repositories."""

    def __init__(
        self,
        bus: EventBus,
        catalog: Catalog,
        selection: SelectionStore,
        timeline_repo: TimelineRepository,
        reminder_schedule_repo: ReminderScheduleRepository,
        tz: ZoneInfo,
        reminder_offsets: list[int] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.bus = bus
        self.catalog = catalog
        self.selection = selection
        self.timeline_repo = timeline_repo
        self.reminder_schedule_repo = reminder_schedule_repo
        self.tz = tz
        self.reminder_offsets = reminder_offsets or DEFAULT_OFFSETS
        self.clock = clock
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(ScreeningSelected, self.on_screening_selected)
        self.bus.subscribe(ScreeningDeselected, self.on_screening_deselected)
        self.bus.subscribe(ScheduleCleared, self.on_schedule_cleared)
        self.bus.subscribe(ConflictDetected, self.on_conflict_detected)
        self.bus.subscribe(ReminderSent, self.on_reminder_sent)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_screening_selected(self, event: ScreeningSelected) -> None:
        screening = self.catalog.get_screening(event.screening_id)
        if screening is None:
            return

        # 1. Timeline: selected
        self.timeline_repo.add(
            TimelineEntry(screening_id=screening.id, type=TimelineEntryType.SELECTED)
        )

        # 2. Schedule reminders (replacing any left over from an earlier selection)
        self.reminder_schedule_repo.cancel_for_screening(screening.id)
        film = self.catalog.get_film(screening.film_id)
        items = schedule_reminders(
            screening=screening,
            film_title=film.title if film else screening.film_id,
            offsets_minutes=self.reminder_offsets,
            now=self.clock(),
            tz=self.tz,
        )
        for item in items:
            self.reminder_schedule_repo.add(item)
        if items:
            self.timeline_repo.add(
                TimelineEntry(
                    screening_id=screening.id,
                    type=TimelineEntryType.REMINDER_SCHEDULED,
                    payload={"schedule_item_ids": [i.id for i in items]},
                )
            )

        # 3. Advisory conflict check against the rest of the selection
        conflicts = event.conflicts
        if conflicts is None:
            others = self.catalog.resolve(
                [
                    sid
                    for sid in self.selection.get_selected_ids()
                    if sid != screening.id
                ]
            )
            conflicts = check_conflicts(screening, others)
        if conflicts:
            self.bus.publish(
                ConflictDetected(
                    screening_id=screening.id,
                    conflicting_screening_ids=[
                        c.conflicting_screening.id for c in conflicts
                    ],
                    messages=[c.message for c in conflicts],
                )
            )

    def on_screening_deselected(self, event: ScreeningDeselected) -> None:
        dropped = self.reminder_schedule_repo.cancel_for_screening(event.screening_id)
        self.timeline_repo.add(
            TimelineEntry(
                screening_id=event.screening_id,
                type=TimelineEntryType.DESELECTED,
                payload={"reminders_cancelled": dropped},
            )
        )

    def on_schedule_cleared(self, event: ScheduleCleared) -> None:
        dropped = self.reminder_schedule_repo.cancel_all_pending()
        logger.info(
            "Schedule cleared: %d screenings, %d reminders cancelled",
            len(event.screening_ids),
            dropped,
        )
        for screening_id in event.screening_ids:
            self.timeline_repo.add(
                TimelineEntry(
                    screening_id=screening_id, type=TimelineEntryType.DESELECTED
                )
            )

    def on_conflict_detected(self, event: ConflictDetected) -> None:
        for message in event.messages:
            logger.warning("Screening %s: %s", event.screening_id, message)

        self.timeline_repo.add(
            TimelineEntry(
                screening_id=event.screening_id,
                type=TimelineEntryType.CONFLICT_DETECTED,
                payload={
                    "conflicting_screening_ids": event.conflicting_screening_ids,
                    "messages": event.messages,
                },
            )
        )

    def on_reminder_sent(self, event: ReminderSent) -> None:
        self.reminder_schedule_repo.mark_sent(event.schedule_item_id, event.sent_at)
        self.timeline_repo.add(
            TimelineEntry(
                screening_id=event.screening_id,
                type=TimelineEntryType.REMINDER_SENT,
                payload={"schedule_item_id": event.schedule_item_id},
            )
        )
