import pytest
from fastapi.testclient import TestClient

from mavericks.core.auth import CurrentUser, get_current_user
from mavericks.core.services import Services
from mavericks.discussions.service import THREADS
from mavericks.main import create_app
from mavericks.missions.service import MISSIONS

DATE = "2024-05-01"


@pytest.fixture
def signed_in(alice):
    return {"user": alice}


@pytest.fixture
def client(store, provider, fake_config, signed_in):
    app = create_app(Services(config=fake_config, store=store, provider=provider))
    app.dependency_overrides[get_current_user] = lambda: signed_in["user"]
    with TestClient(app) as test_client:
        yield test_client


def test_requests_without_a_token_are_rejected(store, provider, fake_config):
    app = create_app(Services(config=fake_config, store=store, provider=provider))
    with TestClient(app) as anonymous:
        response = anonymous.get("/missions/daily")
    assert response.status_code == 401


def test_languages_are_listed(client):
    response = client.get("/missions/languages")
    assert response.status_code == 200
    assert "Python" in response.json()["languages"]


def test_daily_mission_is_generated_once_per_date(client, store, provider):
    python = client.get("/missions/daily", params={"language": "Python", "date": DATE})
    java = client.get("/missions/daily", params={"language": "Java", "date": DATE})

    assert python.status_code == java.status_code == 200
    assert python.json()["question_text"] == java.json()["question_text"]
    assert python.json()["type"] == "PROGRAMMING"
    assert provider.count("daily_mission") == 1
    assert store.raw(MISSIONS, DATE) is not None


def test_daily_mission_rejects_unknown_language_and_bad_date(client):
    assert client.get("/missions/daily", params={"language": "COBOL"}).status_code == 422
    assert client.get("/missions/daily", params={"language": "Python", "date": "May 1"}).status_code == 422


def test_generation_failure_maps_to_bad_gateway(client, provider):
    provider.fail_kinds.add("daily_mission")
    response = client.get("/missions/daily", params={"language": "Python", "date": DATE})
    assert response.status_code == 502


def test_run_and_complete_mission(client):
    run = client.post("/missions/daily/run", json={"date": DATE, "language": "Python", "code": "print(6)"})
    assert run.status_code == 200
    assert run.json()["success"] is True

    progress = client.post(
        "/missions/daily/progress",
        json={"language": "Python", "code": "print(6)", "completed": True},
    )
    assert progress.status_code == 200
    assert progress.json()["xp_awarded"] == 150

    me = client.get("/users/me").json()
    assert me["profile"]["xp"] == 150
    assert me["level"] == 1


def test_progress_for_another_date_is_rejected(client, store):
    response = client.post(
        "/missions/daily/progress",
        json={"date": "2020-01-01", "language": "Python", "code": "print(6)", "completed": True},
    )

    assert response.status_code == 422
    assert store.raw("users", "alice") is None


def test_thread_vote_round_trip(client, store):
    thread_id = client.post("/discussions", json={"title": "Big O?", "content": "Explain"}).json()["thread_id"]

    up = client.post(f"/discussions/{thread_id}/vote", json={"vote_type": "up"})
    assert up.status_code == 200
    assert up.json()["tally"]["upvoted_by"] == ["alice"]
    assert up.json()["user_vote"] == "up"

    again = client.post(f"/discussions/{thread_id}/vote", json={"vote_type": "up"})
    assert again.json()["tally"]["upvotes"] == 0
    assert again.json()["user_vote"] is None
    assert store.raw(THREADS, thread_id)["upvoted_by"] == []


def test_vote_on_missing_thread_is_404(client):
    response = client.post("/discussions/nope/vote", json={"vote_type": "down"})
    assert response.status_code == 404


def test_thread_detail_includes_replies(client):
    thread_id = client.post("/discussions", json={"title": "Help", "content": "Stuck"}).json()["thread_id"]
    client.post(f"/discussions/{thread_id}/replies", json={"content": "Try memoization"})

    detail = client.get(f"/discussions/{thread_id}").json()

    assert detail["thread"]["reply_count"] == 1
    assert [r["content"] for r in detail["replies"]] == ["Try memoization"]


def test_status_change_by_another_user_is_forbidden(client, signed_in):
    thread_id = client.post("/discussions", json={"title": "Mine", "content": "Body"}).json()["thread_id"]
    signed_in["user"] = CurrentUser(uid="bob", name="Bob")

    response = client.patch(f"/discussions/{thread_id}/status", json={"status": "Solved"})

    assert response.status_code == 403


def test_admin_only_routes(client, signed_in, admin_user, store):
    thread_id = client.post("/discussions", json={"title": "Spam", "content": "Buy now"}).json()["thread_id"]

    assert client.delete(f"/discussions/{thread_id}").status_code == 403
    assert client.post("/notifications", json={"user_id": "alice", "message": "hi"}).status_code == 403

    signed_in["user"] = admin_user
    assert client.delete(f"/discussions/{thread_id}").status_code == 200
    assert store.raw(THREADS, thread_id) is None

    sent = client.post("/notifications", json={"user_id": "alice", "message": "Welcome"})
    assert sent.status_code == 200
    assert sent.json()["type"] == "system_update"


def test_admin_cannot_delete_a_reply_through_another_thread(client, signed_in, admin_user, store):
    thread_a = client.post("/discussions", json={"title": "A", "content": "a"}).json()["thread_id"]
    thread_b = client.post("/discussions", json={"title": "B", "content": "b"}).json()["thread_id"]
    reply_id = client.post(f"/discussions/{thread_b}/replies", json={"content": "on B"}).json()["reply_id"]

    signed_in["user"] = admin_user
    response = client.delete(f"/discussions/{thread_a}/replies/{reply_id}")

    assert response.status_code == 404
    assert store.raw(THREADS, thread_b)["reply_count"] == 1
    assert client.delete(f"/discussions/{thread_b}/replies/{reply_id}").status_code == 200
    assert store.raw(THREADS, thread_b)["reply_count"] == 0


def test_notification_inbox(client, signed_in, admin_user):
    signed_in["user"] = admin_user
    note_id = client.post("/notifications", json={"user_id": "alice", "message": "Hello"}).json()["id"]

    signed_in["user"] = CurrentUser(uid="alice", name="Alice")
    assert [n["id"] for n in client.get("/notifications/unread").json()] == [note_id]
    assert client.post(f"/notifications/{note_id}/read").json() == {"success": True}
    assert client.get("/notifications/unread").json() == []
    assert client.post("/notifications/missing/read").status_code == 404


def test_leaderboard(client, store):
    client.get("/users/me")
    response = client.get("/users/leaderboard", params={"limit": 10})
    assert response.status_code == 200
    assert response.json()["entries"][0]["user_id"] == "alice"


def test_concept_explanation(client):
    response = client.get("/missions/concepts/explain", params={"concept": "Big O"})
    assert response.status_code == 200
    assert response.json()["explanation"].startswith("Big O")
