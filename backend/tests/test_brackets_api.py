"""
API tests for the bracket endpoints.
"""
import pytest
from sqlmodel import select

from tatame.models.category import Category
from tatame.models.event import Event
from tatame.models.match import Match
from tatame.models.profile import Profile, ProfileRole


def _athlete(session) -> Profile:
    athlete = Profile(name="Curious Athlete", role=ProfileRole.athlete)
    session.add(athlete)
    session.commit()
    session.refresh(athlete)
    return athlete


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_identity_is_401(client, make_event):
    event, (category,) = make_event([4])

    assert client.post(f"/api/events/{event.id}/registrations/stop").status_code == 401
    assert client.get(f"/api/events/{event.id}/categories/{category.id}/bracket").status_code == 401


def test_unknown_identity_is_401(client, make_event):
    event, _ = make_event([4])
    response = client.post(f"/api/events/{event.id}/registrations/stop", headers={"X-User-Id": "9999"})
    assert response.status_code == 401


def test_athlete_is_403(client, session, make_event, as_user):
    event, (category,) = make_event([4])
    athlete = _athlete(session)

    response = client.get(f"/api/events/{event.id}/categories/{category.id}/bracket", headers=as_user(athlete))

    assert response.status_code == 403
    assert response.json()["detail"] == "Not authorized."


def test_non_owner_cannot_stop(client, session, other_organizer, make_event, register, as_user):
    event, (category,) = make_event([4])
    register(event, category, "Ana", minute=0)

    response = client.post(f"/api/events/{event.id}/registrations/stop", headers=as_user(other_organizer))

    assert response.status_code == 403
    assert response.json()["detail"] == "Not authorized."
    session.expire_all()
    assert session.get(Event, event.id).is_open_for_inscriptions is True
    assert session.exec(select(Match)).all() == []


def test_missing_event_is_403(client, organizer, as_user):
    response = client.post("/api/events/424242/registrations/stop", headers=as_user(organizer))
    assert response.status_code == 403


def test_stop_and_reopen_flow(client, session, organizer, make_event, register, as_user):
    event, (small, large) = make_event([2, 4])
    register(event, small, "Ana", minute=0)
    register(event, small, "Bia", minute=1)
    for i in range(3):
        register(event, large, f"Athlete {i}", minute=10 + i)

    response = client.post(f"/api/events/{event.id}/registrations/stop", headers=as_user(organizer))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Registrations closed and brackets generated."
    assert body["is_open_for_inscriptions"] is False
    created = {c["category_id"]: c["matches_created"] for c in body["categories"]}
    assert created == {small.id: 1, large.id: 2}
    assert all(c["status"] == "built" for c in body["categories"])

    session.expire_all()
    assert len(session.exec(select(Match).where(Match.event_id == event.id)).all()) == 3
    assert session.get(Category, large.id).is_locked

    response = client.post(f"/api/events/{event.id}/registrations/reopen", headers=as_user(organizer))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Registrations reopened."
    assert body["is_open_for_inscriptions"] is True
    deleted = {c["category_id"]: c["matches_deleted"] for c in body["categories"]}
    assert deleted == {small.id: 1, large.id: 2}

    session.expire_all()
    assert session.exec(select(Match).where(Match.event_id == event.id)).all() == []
    assert not session.get(Category, small.id).is_locked


def test_preview_bracket_includes_registrations(client, organizer, make_event, register, as_user):
    event, (category,) = make_event([4])
    register(event, category, "Ana", minute=0)
    register(event, category, "Bia", minute=1)
    register(event, category, "Carla", minute=2)

    response = client.get(f"/api/events/{event.id}/categories/{category.id}/bracket", headers=as_user(organizer))

    assert response.status_code == 200
    body = response.json()
    assert body["is_locked"] is False
    assert body["capacity"] == 4
    assert [r["athlete_name"] for r in body["registrations"]] == ["Ana", "Bia", "Carla"]
    assert [m["id"] for m in body["matches"]] == ["preview-1", "preview-2", "preview-r2-1"]
    bye = body["matches"][1]
    assert bye["is_bye"] is True
    assert bye["status"] == "completed"
    assert bye["winner_id"] == bye["athlete_a_id"]


def test_locked_bracket_omits_registrations(client, organizer, make_event, register, as_user):
    event, (category,) = make_event([4])
    register(event, category, "Ana", minute=0)
    register(event, category, "Bia", minute=1)
    client.post(f"/api/events/{event.id}/registrations/stop", headers=as_user(organizer))

    response = client.get(f"/api/events/{event.id}/categories/{category.id}/bracket", headers=as_user(organizer))

    assert response.status_code == 200
    body = response.json()
    assert body["is_locked"] is True
    assert "registrations" not in body
    assert len(body["matches"]) == 2
    first = body["matches"][0]
    assert (first["athlete_a_name"], first["athlete_b_name"]) == ("Ana", "Bia")
    assert first["is_preview"] is False
    assert not first["id"].startswith("preview")


def test_category_of_other_event_is_403(client, organizer, make_event, as_user):
    event, _ = make_event([4], name="Event A")
    _other, (foreign,) = make_event([4], name="Event B")

    response = client.get(f"/api/events/{event.id}/categories/{foreign.id}/bracket", headers=as_user(organizer))

    assert response.status_code == 403


def test_bracket_status_endpoint(client, organizer, make_event, register, as_user):
    event, (category,) = make_event([8])
    register(event, category, "Ana", minute=0)

    response = client.get(f"/api/events/{event.id}/brackets/status", headers=as_user(organizer))

    assert response.status_code == 200
    body = response.json()
    assert body["is_open_for_inscriptions"] is True
    assert body["warnings"] == []
    (summary,) = body["categories"]
    assert summary["capacity"] == 8
    assert summary["paid_registrations"] == 1
    assert summary["unseeded_registrations"] == 1
    assert summary["expected_round_one_matches"] == 4


def test_stop_reports_failed_category(client, organizer, make_event, register, as_user, monkeypatch):
    from tatame.services import bracket_lock

    event, (category,) = make_event([4])
    register(event, category, "Ana", minute=0)

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(bracket_lock, "build_bracket", broken)

    response = client.post(f"/api/events/{event.id}/registrations/stop", headers=as_user(organizer))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert str(category.id) in body["message"]
    assert body["categories"][0]["status"] == "failed"
    assert body["categories"][0]["error"] == "boom"


@pytest.mark.parametrize(
    "method, path, target",
    [
        ("post", "/api/events/{event_id}/registrations/stop", "stop_registrations"),
        ("post", "/api/events/{event_id}/registrations/reopen", "reopen_registrations"),
        ("get", "/api/events/{event_id}/brackets/status", "get_bracket_status"),
        ("get", "/api/events/{event_id}/categories/{category_id}/bracket", "get_bracket"),
    ],
)
def test_unexpected_errors_return_500(client, organizer, make_event, as_user, monkeypatch, method, path, target):
    from tatame.routes import brackets

    event, (category,) = make_event([4])

    def crash(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(brackets, target, crash)

    url = path.format(event_id=event.id, category_id=category.id)
    response = getattr(client, method)(url, headers=as_user(organizer))

    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error: database went away"
