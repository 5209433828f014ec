"""
API tests - routes, admin auth and error bodies over a temp database

Run with: pytest tests/test_api.py
"""

import pytest
from fastapi.testclient import TestClient

from auth.sessions import MemorySessionStore
from config import config
from server.main import create_app
from vendors.tmdb import MovieLookup

ADMIN_PASSWORD = "popcorn"


class EmptyMetadataClient:
    def lookup(self, query):
        return MovieLookup()


@pytest.fixture
def clock():
    state = {"now": 1_000_000.0}

    def now():
        return state["now"]

    now.state = state
    return now


@pytest.fixture
def session_store(clock):
    return MemorySessionStore(ttl_seconds=3600, clock=clock)


@pytest.fixture
def client(tmp_path, monkeypatch, session_store):
    monkeypatch.setattr(config, "ADMIN_PASSWORD_HASH", None)
    monkeypatch.setattr(config, "ADMIN_PASSWORD", ADMIN_PASSWORD)
    app = create_app(
        db_path=str(tmp_path / "movienight.db"),
        session_store=session_store,
        metadata_client=EmptyMetadataClient(),
        enforce_allow_list=False,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"X-Admin-Token": response.json()["token"]}


@pytest.fixture
def seeded(client, admin_headers):
    """Three movies and one open meeting; returns their ids"""
    movie_ids = []
    for title in ("Heat", "Ronin", "Thief"):
        response = client.post("/api/movies", json={"title": title})
        movie_ids.append(response.json()["movie"]["id"])
    response = client.post(
        "/api/meetings",
        json={"name": "Friday", "candidateDays": ["2024-01-15", "2024-01-16"]},
        headers=admin_headers,
    )
    return {"movies": movie_ids, "meeting": response.json()["meeting"]["id"]}


def _vote(client, meeting_id, username, ranks, availability=None):
    return client.post(
        "/api/votes",
        json={
            "username": username,
            "meetingId": meeting_id,
            "ranks": [{"movieId": movie_id, "rank": rank} for movie_id, rank in ranks],
            "availability": availability,
        },
    )


class TestAdminAuth:
    def test_login_and_me(self, client):
        response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})
        body = response.json()
        assert body["success"] is True
        assert body["expires_in"] == 3600

        me = client.get("/api/admin/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.json() == {"success": True, "admin": True}

    def test_wrong_password(self, client):
        response = client.post("/api/admin/login", json={"password": "nope"})

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "invalid password",
            "code": "UNAUTHORIZED",
        }

    def test_login_not_configured(self, client, monkeypatch):
        monkeypatch.setattr(config, "ADMIN_PASSWORD", None)

        response = client.post("/api/admin/login", json={"password": ADMIN_PASSWORD})

        assert response.status_code == 401
        assert response.json()["error"] == "admin login is not configured"

    def test_logout_revokes_token(self, client, admin_headers):
        client.post("/api/admin/logout", headers=admin_headers)

        assert client.get("/api/admin/me", headers=admin_headers).json()["admin"] is False

    def test_missing_token(self, client):
        response = client.post("/api/meetings", json={"name": "x"})

        assert response.status_code == 401
        assert response.json()["error"] == "admin token required"

    def test_unknown_token(self, client):
        response = client.post("/api/meetings", json={"name": "x"}, headers={"X-Admin-Token": "abc"})

        assert response.status_code == 401
        assert response.json()["error"] == "invalid token"

    def test_expired_token(self, client, admin_headers, clock):
        clock.state["now"] += 3601

        response = client.post("/api/meetings", json={"name": "x"}, headers=admin_headers)

        assert response.status_code == 401
        assert response.json()["error"] == "token expired"


class TestVotingFlow:
    def test_vote_close_results(self, client, admin_headers, seeded):
        heat, ronin, thief = seeded["movies"]
        meeting_id = seeded["meeting"]

        assert _vote(client, meeting_id, "a", [(heat, 1), (ronin, 2)], ["2024-01-15"]).status_code == 200
        assert _vote(client, meeting_id, "b", [(ronin, 1), (heat, 3)], ["2024-01-15", "2024-01-16"]).status_code == 200
        assert _vote(client, meeting_id, "c", [(thief, 1), (heat, 2)], ["2024-01-16"]).status_code == 200

        response = client.post(f"/api/meetings/{meeting_id}/close", headers=admin_headers)
        meeting = response.json()["meeting"]
        assert meeting["voting_open"] is False
        assert meeting["date"] == "2024-01-15"
        assert meeting["watched_movie_id"] == heat

        results = client.get("/api/results", params={"meeting_id": meeting_id}).json()
        assert results["meeting_id"] == meeting_id
        assert [(r["id"], r["score"], r["vote_count"]) for r in results["results"]] == [
            (heat, 6, 3),
            (ronin, 5, 2),
            (thief, 3, 1),
        ]

    def test_vote_after_close_rejected(self, client, admin_headers, seeded):
        meeting_id = seeded["meeting"]
        client.post(f"/api/meetings/{meeting_id}/close", headers=admin_headers)

        response = _vote(client, meeting_id, "late", [(seeded["movies"][0], 1)])

        assert response.status_code == 400
        assert response.json()["code"] == "CONFLICT"

    def test_string_meeting_id_from_older_clients(self, client, seeded):
        response = client.post(
            "/api/votes",
            json={
                "username": "alice",
                "meetingId": str(seeded["meeting"]),
                "ranks": [{"movieId": seeded["movies"][0], "rank": 1}],
            },
        )

        assert response.status_code == 200
        meeting = client.get(f"/api/meetings/{seeded['meeting']}").json()["meeting"]
        assert meeting["ballot_count"] == 1

    def test_non_numeric_meeting_id_message(self, client, seeded):
        response = _vote(client, "friday", "alice", [(seeded["movies"][0], 1)])

        assert response.status_code == 400
        assert response.json()["error"] == "meeting_id must be an integer"

    def test_snake_case_ballot(self, client, seeded):
        response = client.post(
            "/api/votes",
            json={
                "username": "alice",
                "meeting_id": seeded["meeting"],
                "ranks": [{"movie_id": seeded["movies"][1], "rank": 1}],
            },
        )

        assert response.status_code == 200
        assert isinstance(response.json()["ballot_id"], int)

    def test_invalid_ballot_message(self, client, seeded):
        response = _vote(client, seeded["meeting"], "alice", [])

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "at least one rank required",
            "code": "VALIDATION_ERROR",
        }

    def test_results_legacy_query_and_empty(self, client, seeded):
        response = client.get("/api/results", params={"meetingId": seeded["meeting"]})

        results = response.json()["results"]
        assert len(results) == 3
        assert all(r["score"] == 0 and r["vote_count"] == 0 for r in results)

    def test_results_unknown_meeting(self, client):
        assert client.get("/api/results", params={"meeting_id": 42}).status_code == 404

    def test_patch_closes_and_resolves(self, client, admin_headers, seeded):
        meeting_id = seeded["meeting"]
        _vote(client, meeting_id, "a", [(seeded["movies"][2], 1)], ["2024-01-16"])

        response = client.patch(
            f"/api/meetings/{meeting_id}", json={"votingOpen": False}, headers=admin_headers
        )

        meeting = response.json()["meeting"]
        assert meeting["watched_movie_id"] == seeded["movies"][2]
        assert meeting["date"] == "2024-01-16"

    def test_patch_without_fields(self, client, admin_headers, seeded):
        response = client.patch(
            f"/api/meetings/{seeded['meeting']}", json={}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "no valid fields to update"


class TestMeetings:
    def test_get_unknown_meeting(self, client):
        response = client.get("/api/meetings/999")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_non_numeric_id_is_bad_request(self, client):
        response = client.get("/api/meetings/abc")

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_mark_watched_and_delete(self, client, admin_headers, seeded):
        meeting_id = seeded["meeting"]
        heat = seeded["movies"][0]

        response = client.post(
            f"/api/meetings/{meeting_id}/watched", json={"movieId": heat}, headers=admin_headers
        )
        assert response.json()["meeting"]["watched_movie"]["title"] == "Heat"

        response = client.delete(f"/api/movies/{heat}", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["code"] == "CONFLICT"

        assert client.delete(f"/api/meetings/{meeting_id}", headers=admin_headers).json() == {"success": True}
        assert client.get("/api/meetings").json()["count"] == 0

    def test_reopen(self, client, admin_headers, seeded):
        meeting_id = seeded["meeting"]
        client.post(f"/api/meetings/{meeting_id}/close", headers=admin_headers)

        response = client.post(f"/api/meetings/{meeting_id}/open", headers=admin_headers)

        assert response.json()["meeting"]["voting_open"] is True


class TestMoviesAndReviews:
    def test_movie_requires_title(self, client):
        response = client.post("/api/movies", json={"poster": "https://x.example/p.jpg"})

        assert response.status_code == 400
        assert response.json()["error"] == "title is required"

    def test_list_movies(self, client, seeded):
        body = client.get("/api/movies").json()

        assert body["count"] == 3

    def test_reviews(self, client, seeded):
        heat = seeded["movies"][0]

        client.post(f"/api/movies/{heat}/reviews", json={"username": "ann", "score": 9})
        response = client.post(f"/api/movies/{heat}/reviews", json={"score": 6, "comment": "long"})

        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert body["average"] == 7.5
        assert client.get(f"/api/movies/{heat}/reviews").json()["count"] == 2

    def test_review_bad_score(self, client, seeded):
        response = client.post(f"/api/movies/{seeded['movies'][0]}/reviews", json={"score": 12})

        assert response.status_code == 400

    def test_review_unknown_movie(self, client):
        assert client.get("/api/movies/999/reviews").status_code == 404


class TestMonitoring:
    def test_health(self, client):
        body = client.get("/api/health").json()

        assert body["status"] == "healthy"
        assert body["checks"]["metadata_lookup"]["status"] == "available"

    def test_metrics(self, client):
        client.get("/api/movies")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "movienight_api_requests_total" in response.text

    def test_request_id_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
