"""API tests for the catalog, selection and reminder routes."""

from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.repos.memory import create_catalog


@pytest.fixture()
def client():
    settings = Settings(festival_start=date(2030, 6, 1), timezone="Europe/Paris")
    app = create_app(settings=settings, catalog=create_catalog(date(2030, 6, 1)))
    return TestClient(app)


def test_health(client: TestClient):
    assert client.get("/health").json() == {"status": "ok"}


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def test_list_films_and_venues(client: TestClient):
    films = client.get("/films").json()
    assert [f["id"] for f in films] == ["film-1", "film-2", "film-3", "film-4"]
    assert len(client.get("/venues").json()) == 3


def test_unknown_film_is_404(client: TestClient):
    assert client.get("/films/nope").status_code == 404
    assert client.get("/films/nope/screenings").status_code == 404


def test_screenings_for_film(client: TestClient):
    resp = client.get("/films/film-2/screenings")
    assert resp.status_code == 200
    assert {s["id"] for s in resp.json()} == {
        "screening-film-2-0",
        "screening-film-2-1",
        "screening-film-2-2",
    }


def test_screenings_by_date(client: TestClient):
    resp = client.get("/screenings", params={"date": "2030-06-02"})
    assert resp.status_code == 200
    body = resp.json()
    assert len(body) == 4
    assert all(s["date"] == "2030-06-02" for s in body)


def test_get_screening(client: TestClient):
    body = client.get("/screenings/screening-film-1-0").json()
    assert body["start_time"] == "14:00"
    assert body["end_time"] == "16:12"
    assert body["venue"]["coordinates"]["latitude"] == pytest.approx(48.5734053)

    assert client.get("/screenings/nope").status_code == 404


def test_alternatives_exclude(client: TestClient):
    resp = client.get(
        "/screenings/screening-film-1-0/alternatives",
        params={"exclude": "screening-film-1-1"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["screening_id"] == "screening-film-1-0"
    assert [s["id"] for s in body["alternatives"]] == ["screening-film-1-2"]


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def test_select_without_conflict(client: TestClient):
    resp = client.post("/selection/screening-film-1-0")
    assert resp.status_code == 200
    assert resp.json() == {"selected_ids": ["screening-film-1-0"], "conflicts": []}


def test_select_conflicting_screening_is_still_added(client: TestClient):
    client.post("/selection/screening-film-1-0")

    resp = client.post("/selection/screening-film-2-0")

    body = resp.json()
    assert body["selected_ids"] == ["screening-film-1-0", "screening-film-2-0"]
    assert len(body["conflicts"]) == 1
    conflict = body["conflicts"][0]
    assert conflict["has_conflict"] is True
    assert conflict["conflict_type"] == "time"
    assert conflict["conflicting_screening"]["id"] == "screening-film-1-0"


def test_select_twice_is_noop(client: TestClient):
    client.post("/selection/screening-film-1-0")
    resp = client.post("/selection/screening-film-1-0")
    assert resp.json() == {"selected_ids": ["screening-film-1-0"], "conflicts": []}


def test_select_unknown_is_404(client: TestClient):
    assert client.post("/selection/nope").status_code == 404
    assert client.get("/selection").json()["selected_ids"] == []


def test_preview_conflicts_does_not_select(client: TestClient):
    client.post("/selection/screening-film-2-0")

    resp = client.get("/screenings/screening-film-1-0/conflicts")

    assert resp.status_code == 200
    assert [c["conflict_type"] for c in resp.json()] == ["time"]
    assert client.get("/selection").json()["selected_ids"] == ["screening-film-2-0"]


def test_validation_of_selection(client: TestClient):
    assert client.get("/selection/validation").json() == {
        "is_valid": True,
        "conflicts": [],
    }

    client.post("/selection/screening-film-2-0")
    client.post("/selection/screening-film-1-0")
    client.post("/selection/screening-film-1-1")

    body = client.get("/selection/validation").json()
    assert body["is_valid"] is False
    assert len(body["conflicts"]) == 1
    assert body["conflicts"][0]["conflicting_screening"]["id"] == "screening-film-2-0"


def test_deselect_and_clear(client: TestClient):
    client.post("/selection/screening-film-1-0")
    client.post("/selection/screening-film-3-0")

    resp = client.delete("/selection/screening-film-1-0")
    assert resp.json()["selected_ids"] == ["screening-film-3-0"]
    assert client.delete("/selection/screening-film-1-0").status_code == 404

    assert client.delete("/selection").json()["selected_ids"] == []
    assert client.get("/selection").json()["selected_ids"] == []


def test_timeline_records_selection(client: TestClient):
    client.post("/selection/screening-film-1-0")
    client.post("/selection/screening-film-2-0")

    types = [
        e["type"]
        for e in client.get("/selection/timeline/screening-film-2-0").json()
    ]
    assert types == ["selected", "reminder_scheduled", "conflict_detected"]


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------


def test_tick_fires_due_reminders(client: TestClient):
    client.post("/selection/screening-film-1-0")

    # 14:00 in Paris is 12:00 UTC; only the one-hour reminder is due at 11:15
    resp = client.post("/tick", params={"now": "2030-06-01T11:15:00Z"})
    assert resp.status_code == 200
    assert len(resp.json()["reminders_fired"]) == 1

    again = client.post("/tick", params={"now": "2030-06-01T11:15:00Z"})
    assert again.json()["reminders_fired"] == []

    later = client.post("/tick", params={"now": "2030-06-01T11:45:00Z"})
    assert len(later.json()["reminders_fired"]) == 1


def test_select_checks_conflicts_once(client: TestClient, monkeypatch):
    from app.domain import handlers

    calls = []
    monkeypatch.setattr(
        handlers, "check_conflicts", lambda *args: calls.append(args) or []
    )
    client.post("/selection/screening-film-1-0")
    client.post("/selection/screening-film-2-0")

    assert calls == []
    types = [
        e["type"]
        for e in client.get("/selection/timeline/screening-film-2-0").json()
    ]
    assert "conflict_detected" in types


def test_app_starts_with_a_longer_festival():
    settings = Settings(festival_start=date(2030, 6, 1), festival_days=4)
    app = create_app(settings=settings)
    resp = TestClient(app).get("/screenings", params={"date": "2030-06-04"})
    assert len(resp.json()) == 4
