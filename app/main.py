"""FastAPI application — entry point for the festival schedule service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from fastapi import Depends, FastAPI, HTTPException, Query, Request

from app.config import Settings
from app.domain.bus import EventBus
from app.domain.events import (
    ReminderSent,
    ScheduleCleared,
    ScreeningDeselected,
    ScreeningSelected,
)
from app.domain.handlers import HandlerRegistry
from app.domain.models import (
    AlternativesResponse,
    ConflictResult,
    Film,
    Screening,
    ScheduleValidation,
    SelectionResponse,
    TimelineEntry,
    Venue,
)
from app.repos.memory import (
    Catalog,
    KeyValueStore,
    ReminderScheduleRepository,
    SelectionStore,
    TimelineRepository,
    create_catalog,
)
from app.services.conflicts import (
    check_conflicts,
    suggested_alternatives,
    validate_full_schedule,
)

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Everything the routes need, built once per application."""

    settings: Settings
    catalog: Catalog
    selection: SelectionStore
    timeline_repo: TimelineRepository
    reminder_schedule_repo: ReminderScheduleRepository
    bus: EventBus
    handlers: HandlerRegistry


def build_container(settings: Settings, catalog: Catalog | None = None) -> Container:
    if catalog is None:
        catalog = create_catalog(settings.festival_start, settings.festival_days)

    bus = EventBus()
    selection = SelectionStore(KeyValueStore())
    timeline_repo = TimelineRepository()
    reminder_schedule_repo = ReminderScheduleRepository()
    handlers = HandlerRegistry(
        bus=bus,
        catalog=catalog,
        selection=selection,
        timeline_repo=timeline_repo,
        reminder_schedule_repo=reminder_schedule_repo,
        tz=ZoneInfo(settings.timezone),
        reminder_offsets=settings.reminder_offsets_minutes,
    )
    return Container(
        settings=settings,
        catalog=catalog,
        selection=selection,
        timeline_repo=timeline_repo,
        reminder_schedule_repo=reminder_schedule_repo,
        bus=bus,
        handlers=handlers,
    )


def get_container(request: Request) -> Container:
    return request.app.state.container


def _require_screening(catalog: Catalog, screening_id: str) -> Screening:
    screening = catalog.get_screening(screening_id)
    if screening is None:
        raise HTTPException(status_code=404, detail="Screening not found")
    return screening


def _selected_screenings(c: Container) -> list[Screening]:
    return c.catalog.resolve(c.selection.get_selected_ids())


def create_app(
    settings: Settings | None = None, catalog: Catalog | None = None
) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title=settings.app_title)
    app.state.container = build_container(settings, catalog)
    logger.info(
        "Catalog loaded: %d films, %d screenings",
        len(app.state.container.catalog.list_films()),
        len(app.state.container.catalog.list_screenings()),
    )

    # ── Catalog ───────────────────────────────────────────────────────

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/films", response_model=list[Film])
    def list_films(c: Container = Depends(get_container)) -> list[Film]:
        return c.catalog.list_films()

    @app.get("/films/{film_id}", response_model=Film)
    def get_film(film_id: str, c: Container = Depends(get_container)) -> Film:
        film = c.catalog.get_film(film_id)
        if film is None:
            raise HTTPException(status_code=404, detail="Film not found")
        return film

    @app.get("/films/{film_id}/screenings", response_model=list[Screening])
    def list_film_screenings(
        film_id: str, c: Container = Depends(get_container)
    ) -> list[Screening]:
        if c.catalog.get_film(film_id) is None:
            raise HTTPException(status_code=404, detail="Film not found")
        return c.catalog.screenings_for_film(film_id)

    @app.get("/venues", response_model=list[Venue])
    def list_venues(c: Container = Depends(get_container)) -> list[Venue]:
        return c.catalog.list_venues()

    @app.get("/screenings", response_model=list[Screening])
    def list_screenings(
        day: date | None = Query(default=None, alias="date"),
        c: Container = Depends(get_container),
    ) -> list[Screening]:
        """Return the programme, optionally restricted to one day (``?date=``)."""
        if day is None:
            return c.catalog.list_screenings()
        return c.catalog.screenings_on_date(day)

    @app.get("/screenings/{screening_id}", response_model=Screening)
    def get_screening(
        screening_id: str, c: Container = Depends(get_container)
    ) -> Screening:
        return _require_screening(c.catalog, screening_id)

    @app.get(
        "/screenings/{screening_id}/conflicts", response_model=list[ConflictResult]
    )
    def preview_conflicts(
        screening_id: str, c: Container = Depends(get_container)
    ) -> list[ConflictResult]:
        """Conflicts the screening would create, without selecting it."""
        candidate = _require_screening(c.catalog, screening_id)
        others = [s for s in _selected_screenings(c) if s.id != candidate.id]
        return check_conflicts(candidate, others)

    @app.get(
        "/screenings/{screening_id}/alternatives", response_model=AlternativesResponse
    )
    def list_alternatives(
        screening_id: str,
        exclude: str | None = None,
        c: Container = Depends(get_container),
    ) -> AlternativesResponse:
        screening = _require_screening(c.catalog, screening_id)
        return AlternativesResponse(
            screening_id=screening.id,
            alternatives=suggested_alternatives(
                screening, c.catalog.list_screenings(), exclude
            ),
        )

    # ── Selection ─────────────────────────────────────────────────────

    @app.get("/selection", response_model=SelectionResponse)
    def get_selection(c: Container = Depends(get_container)) -> SelectionResponse:
        return SelectionResponse(selected_ids=c.selection.get_selected_ids())

    @app.post("/selection/{screening_id}", response_model=SelectionResponse)
    def select_screening(
        screening_id: str, c: Container = Depends(get_container)
    ) -> SelectionResponse:
        """Add a screening to the selection.

        Conflicts are advisory: they are returned to the caller but the
        screening is always added.
        """
        candidate = _require_screening(c.catalog, screening_id)
        if c.selection.contains(candidate.id):
            return SelectionResponse(selected_ids=c.selection.get_selected_ids())

        conflicts = check_conflicts(candidate, _selected_screenings(c))
        c.selection.add(candidate.id)
        c.bus.publish(
            ScreeningSelected(screening_id=candidate.id, conflicts=conflicts)
        )
        return SelectionResponse(
            selected_ids=c.selection.get_selected_ids(), conflicts=conflicts
        )

    @app.delete("/selection/{screening_id}", response_model=SelectionResponse)
    def deselect_screening(
        screening_id: str, c: Container = Depends(get_container)
    ) -> SelectionResponse:
        if not c.selection.contains(screening_id):
            raise HTTPException(status_code=404, detail="Screening not selected")
        c.selection.remove(screening_id)
        c.bus.publish(ScreeningDeselected(screening_id=screening_id))
        return SelectionResponse(selected_ids=c.selection.get_selected_ids())

    @app.delete("/selection", response_model=SelectionResponse)
    def clear_selection(c: Container = Depends(get_container)) -> SelectionResponse:
        cleared = c.selection.get_selected_ids()
        c.selection.clear()
        c.bus.publish(ScheduleCleared(screening_ids=cleared))
        return SelectionResponse(selected_ids=[])

    @app.get("/selection/validation", response_model=ScheduleValidation)
    def validate_selection(c: Container = Depends(get_container)) -> ScheduleValidation:
        return validate_full_schedule(_selected_screenings(c))

    @app.get("/selection/timeline/{screening_id}", response_model=list[TimelineEntry])
    def get_timeline(
        screening_id: str, c: Container = Depends(get_container)
    ) -> list[TimelineEntry]:
        return c.timeline_repo.list_for_screening(screening_id)

    # ── Reminders ─────────────────────────────────────────────────────

    @app.post("/tick")
    def tick(
        now: datetime | None = None, c: Container = Depends(get_container)
    ) -> dict:
        """Advance simulated time and fire any due reminders.

        Pass *now* as a query param to control the simulated clock.
        Defaults to ``datetime.now(timezone.utc)`` when omitted.
        """
        current_time = now or datetime.now(timezone.utc)
        if current_time.tzinfo is None:
            current_time = current_time.replace(tzinfo=timezone.utc)
        fired: list[str] = []
        for item in c.reminder_schedule_repo.list_due(current_time):
            c.bus.publish(
                ReminderSent(
                    screening_id=item.screening_id,
                    schedule_item_id=item.id,
                    sent_at=current_time,
                )
            )
            fired.append(item.id)

        return {"time": current_time.isoformat(), "reminders_fired": fired}

    return app


app = create_app()
