"""
Tests for the planner REST API.
"""

import pytest
from fastapi.testclient import TestClient

from tripflow.main import app


@pytest.fixture
def client():
    return TestClient(app)


def _create_session(client, session_id=None):
    body = {"session_id": session_id} if session_id else {}
    response = client.post("/api/planner/sessions", json=body)
    assert response.status_code == 201
    return response.json()["session_id"]


class TestSessionEndpoints:
    """Tests for session lifecycle endpoints."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_create_session(self, client):
        response = client.post("/api/planner/sessions", json={})
        assert response.status_code == 201
        data = response.json()
        assert data["current_state"] == "Idle"
        assert data["active_widget"] is None
        assert data["progress_percent"] == 0
        assert data["facts"]["travelers"]["adults"] == 0

    def test_duplicate_session_id_conflicts(self, client):
        _create_session(client, "api-duplicate")
        response = client.post(
            "/api/planner/sessions", json={"session_id": "api-duplicate"}
        )
        assert response.status_code == 409
        client.delete("/api/planner/sessions/api-duplicate")

    def test_unknown_session_is_404(self, client):
        assert client.get("/api/planner/sessions/nope").status_code == 404
        response = client.post(
            "/api/planner/sessions/nope/events", json={"type": "RESET"}
        )
        assert response.status_code == 404

    def test_delete_session(self, client):
        session_id = _create_session(client)
        assert client.delete(f"/api/planner/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/planner/sessions/{session_id}").status_code == 404


class TestEventEndpoint:
    """Tests for event submission over HTTP."""

    def test_round_trip_conversation(self, client):
        session_id = _create_session(client)
        url = f"/api/planner/sessions/{session_id}/events"

        response = client.post(url, json={"type": "USER_MESSAGE", "text": "Paris"})
        assert response.status_code == 200
        body = response.json()
        assert body["result"]["status"] == "applied"
        assert body["snapshot"]["active_widget"]["type"] == "citySelector"

        client.post(
            url,
            json={"type": "CITY_SELECTED", "city": "Paris", "countryCode": "FR"},
        )
        client.post(
            url,
            json={
                "type": "DATE_SELECTED",
                "date": "2025-06-01",
                "dateType": "departure",
            },
        )
        client.post(url, json={"type": "DATE_SELECTED", "date": "2025-06-08"})
        client.post(url, json={"type": "TRAVELERS_SELECTED", "adults": 2})
        response = client.post(
            url, json={"type": "TRIP_TYPE_CONFIRMED", "tripType": "roundtrip"}
        )

        snapshot = response.json()["snapshot"]
        assert snapshot["current_state"] == "ReadyToSearch"
        assert snapshot["is_ready_to_search"] is True
        assert snapshot["facts"]["returnDate"] == "2025-06-08"
        assert snapshot["facts"]["destination"]["countryCode"] == "FR"

        history = client.get(f"/api/planner/sessions/{session_id}/history").json()
        assert history["widgets"]["citySelector"]["completed"] == 1

    def test_ignored_event_returns_200(self, client):
        session_id = _create_session(client)
        response = client.post(
            f"/api/planner/sessions/{session_id}/events",
            json={"type": "SEARCH_SUCCEEDED"},
        )
        assert response.status_code == 200
        result = response.json()["result"]
        assert result["status"] == "ignored"
        assert result["state"] == "Idle"

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "TELEPORT"},
            {"text": "no type"},
            {"type": "TRAVELERS_SELECTED", "adults": "many"},
        ],
    )
    def test_malformed_event_is_422(self, client, payload):
        session_id = _create_session(client)
        response = client.post(
            f"/api/planner/sessions/{session_id}/events", json=payload
        )
        assert response.status_code == 422
