"""In-memory repositories: key-value storage, selection, catalog and reminders."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime

from dateutil.rrule import DAILY, rrule

from app.domain.models import (
    Coordinates,
    Film,
    ReminderScheduleItem,
    Screening,
    TimelineEntry,
    Venue,
)

logger = logging.getLogger(__name__)

SELECTION_KEY = "@festival_user_schedule"


class KeyValueStore:
    """Dict-backed string store with get/set/remove semantics."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._store.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._store[key] = value

    def remove_item(self, key: str) -> None:
        self._store.pop(key, None)


class SelectionStore:
    """The festival-goer's selected screening ids, persisted as a JSON list."""

    def __init__(self, kv: KeyValueStore, key: str = SELECTION_KEY) -> None:
        self._kv = kv
        self._key = key

    def get_selected_ids(self) -> list[str]:
        raw = self._kv.get_item(self._key)
        if raw is None:
            return []
        try:
            ids = json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Stored selection under %s is not valid JSON", self._key)
            return []
        if not isinstance(ids, list):
            logger.error("Stored selection under %s is not a list", self._key)
            return []
        return [str(i) for i in ids]

    def _save(self, ids: list[str]) -> None:
        self._kv.set_item(self._key, json.dumps(ids))

    def add(self, screening_id: str) -> None:
        ids = self.get_selected_ids()
        if screening_id not in ids:
            ids.append(screening_id)
            self._save(ids)

    def remove(self, screening_id: str) -> None:
        self._save([i for i in self.get_selected_ids() if i != screening_id])

    def contains(self, screening_id: str) -> bool:
        return screening_id in self.get_selected_ids()

    def clear(self) -> None:
        self._kv.remove_item(self._key)


class Catalog:
    """Immutable festival catalog, built once at startup and passed around."""

    def __init__(
        self,
        films: list[Film],
        venues: list[Venue],
        screenings: list[Screening],
    ) -> None:
        self._films = {f.id: f for f in films}
        self._venues = {v.id: v for v in venues}
        self._screenings = {s.id: s for s in screenings}

    def get_film(self, film_id: str) -> Film | None:
        return self._films.get(film_id)

    def get_venue(self, venue_id: str) -> Venue | None:
        return self._venues.get(venue_id)

    def get_screening(self, screening_id: str) -> Screening | None:
        return self._screenings.get(screening_id)

    def list_films(self) -> list[Film]:
        return list(self._films.values())

    def list_venues(self) -> list[Venue]:
        return list(self._venues.values())

    def list_screenings(self) -> list[Screening]:
        return list(self._screenings.values())

    def screenings_for_film(self, film_id: str) -> list[Screening]:
        return [s for s in self._screenings.values() if s.film_id == film_id]

    def screenings_on_date(self, day: date) -> list[Screening]:
        return [s for s in self._screenings.values() if s.date == day]

    def resolve(self, screening_ids: list[str]) -> list[Screening]:
        """Map ids to screenings, skipping ids the catalog does not know."""
        found = []
        for sid in screening_ids:
            screening = self._screenings.get(sid)
            if screening is None:
                logger.warning("Selected screening %s is not in the catalog", sid)
                continue
            found.append(screening)
        return found


class ReminderScheduleRepository:
    """List-backed store for ReminderScheduleItem instances."""

    def __init__(self) -> None:
        self._items: list[ReminderScheduleItem] = []

    def add(self, item: ReminderScheduleItem) -> None:
        self._items.append(item)

    def list_due(self, now: datetime) -> list[ReminderScheduleItem]:
        return [i for i in self._items if not i.was_sent and i.trigger_time <= now]

    def mark_sent(self, item_id: str, sent_at: datetime) -> None:
        for item in self._items:
            if item.id == item_id:
                item.was_sent = True
                item.sent_at = sent_at
                return

    def list_for_screening(self, screening_id: str) -> list[ReminderScheduleItem]:
        return [i for i in self._items if i.screening_id == screening_id]

    def cancel_for_screening(self, screening_id: str) -> int:
        """Drop unsent reminders for a screening; returns how many were dropped."""
        kept = [
            i for i in self._items if i.screening_id != screening_id or i.was_sent
        ]
        dropped = len(self._items) - len(kept)
        self._items = kept
        return dropped

    def cancel_all_pending(self) -> int:
        kept = [i for i in self._items if i.was_sent]
        dropped = len(self._items) - len(kept)
        self._items = kept
        return dropped


class TimelineRepository:
    """List-backed store for TimelineEntry instances."""

    def __init__(self) -> None:
        self._entries: list[TimelineEntry] = []

    def add(self, entry: TimelineEntry) -> None:
        self._entries.append(entry)

    def list_for_screening(self, screening_id: str) -> list[TimelineEntry]:
        return sorted(
            [e for e in self._entries if e.screening_id == screening_id],
            key=lambda e: e.timestamp,
        )


# ---------------------------------------------------------------------------
# Seed data – the festival programme
# ---------------------------------------------------------------------------

VENUES = [
    Venue(
        id="venue-1",
        name="Cinéma Star Saint-Exupéry",
        address="17 Rue du 22 novembre, 67000 Strasbourg",
        coordinates=Coordinates(latitude=48.5734053, longitude=7.7521113),
        capacity=400,
    ),
    Venue(
        id="venue-2",
        name="Cinéma Odyssée",
        address="3 Rue des Francs Bourgeois, 67000 Strasbourg",
        coordinates=Coordinates(latitude=48.5839, longitude=7.7455),
        capacity=300,
    ),
    Venue(
        id="venue-3",
        name="Star UGC",
        address="Place des Halles, 67000 Strasbourg",
        coordinates=Coordinates(latitude=48.5798, longitude=7.7507),
        capacity=250,
    ),
]

FILMS = [
    Film(
        id="film-1",
        title="Nosferatu",
        original_title="Nosferatu",
        director="Robert Eggers",
        year=2024,
        duration=132,
        genres=["Horror", "Fantasy"],
        country="USA",
        synopsis=(
            "A gothic reimagining of Murnau's classic: a haunted young woman "
            "and the vampire obsessed with her."
        ),
        poster_url="https://example.com/nosferatu.jpg",
    ),
    Film(
        id="film-2",
        title="The Substance",
        original_title="The Substance",
        director="Coralie Fargeat",
        year=2024,
        duration=141,
        genres=["Horror", "Science Fiction", "Thriller"],
        country="France",
        synopsis=(
            "A fading star takes a black-market drug that creates a younger, "
            "better version of herself."
        ),
        poster_url="https://example.com/substance.jpg",
    ),
    Film(
        id="film-3",
        title="Longlegs",
        original_title="Longlegs",
        director="Oz Perkins",
        year=2024,
        duration=101,
        genres=["Horror", "Thriller"],
        country="USA",
        synopsis="An FBI agent hunts a serial killer with occult ties.",
        poster_url="https://example.com/longlegs.jpg",
    ),
    Film(
        id="film-4",
        title="Cuckoo",
        original_title="Cuckoo",
        director="Tilman Singer",
        year=2024,
        duration=102,
        genres=["Horror", "Mystery"],
        country="Germany",
        synopsis=(
            "A reluctant teenager discovers the sinister secrets of a resort "
            "in the German Alps."
        ),
        poster_url="https://example.com/cuckoo.jpg",
    ),
]


def _seed_screenings(start: date, days: int) -> list[Screening]:
    first_day = datetime(start.year, start.month, start.day)
    festival_days = [
        occurrence.date() for occurrence in rrule(DAILY, dtstart=first_day, count=days)
    ]

    screenings: list[Screening] = []
    for film_index, film in enumerate(FILMS):
        venue = VENUES[film_index % len(VENUES)]
        for day_index, day in enumerate(festival_days):
            # The one-hour daily shift repeats every three days.
            start_hour = 14 + film_index * 2 + day_index % 3
            end_total = start_hour * 60 + film.duration
            if end_total >= 24 * 60:
                logger.warning(
                    "Skipping %s on %s: it would run past midnight", film.id, day
                )
                continue
            screenings.append(
                Screening(
                    id=f"screening-{film.id}-{day_index}",
                    film_id=film.id,
                    date=day,
                    start_time=f"{start_hour:02d}:00",
                    end_time=f"{end_total // 60:02d}:{end_total % 60:02d}",
                    venue=venue,
                    tickets_available=True,
                    price=8.5,
                )
            )

    return sorted(screenings, key=lambda s: s.date)


def create_catalog(start: date, days: int = 3) -> Catalog:
    """Return a Catalog pre-loaded with the festival programme."""
    return Catalog(
        films=list(FILMS),
        venues=list(VENUES),
        screenings=_seed_screenings(start, days),
    )
