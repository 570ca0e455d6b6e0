"""Tests for the daily puzzle API."""

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from chessdle.main import app

from conftest import AFTER_E4_E5_NF3_FEN


@pytest.fixture
def client(controller):
    """Create a test client around a controller with a mocked source."""
    with patch("chessdle.api.routes.puzzle.get_session_controller", return_value=controller):
        yield TestClient(app)


class TestGetSession:
    """Test suite for GET /api/puzzle."""

    def test_first_get_loads_puzzle(self, client, mock_source):
        response = client.get("/api/puzzle")
        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "playing"
        assert data["puzzle_id"] == "K69di"
        assert data["starting_fen"] == AFTER_E4_E5_NF3_FEN
        assert data["side_to_move"] == "black"
        assert data["solution_length"] == 2
        assert data["solution"] is None
        mock_source.fetch_daily.assert_awaited_once()

    def test_reload(self, client, mock_source):
        client.get("/api/puzzle")
        response = client.post("/api/puzzle/load")
        assert response.status_code == 200
        assert mock_source.fetch_daily.await_count == 2


class TestMoves:
    """Test suite for POST /api/puzzle/move."""

    def test_legal_move(self, client):
        client.get("/api/puzzle")
        response = client.post("/api/puzzle/move", json={"from_square": "b8", "to_square": "c6"})
        assert response.status_code == 200
        data = response.json()

        assert data["accepted"] is True
        assert data["san"] == "Nc6"
        assert data["view"]["current_input"] == ["Nc6"]

    def test_illegal_move_is_not_an_error(self, client):
        client.get("/api/puzzle")
        response = client.post("/api/puzzle/move", json={"from_square": "e2", "to_square": "e4"})
        assert response.status_code == 200
        data = response.json()

        assert data["accepted"] is False
        assert data["san"] is None
        assert data["view"]["current_input"] == []

    def test_invalid_promotion_rejected_by_validation(self, client):
        response = client.post(
            "/api/puzzle/move",
            json={"from_square": "e7", "to_square": "e8", "promotion": "k"},
        )
        assert response.status_code == 422


class TestSubmit:
    """Test suite for POST /api/puzzle/submit and /reset."""

    def test_submit_winning_attempt(self, client):
        client.get("/api/puzzle")
        client.post("/api/puzzle/move", json={"from_square": "b8", "to_square": "c6"})
        client.post("/api/puzzle/move", json={"from_square": "f1", "to_square": "c4"})

        response = client.post("/api/puzzle/submit")
        assert response.status_code == 200
        data = response.json()

        assert data["feedback"] == ["correct", "correct"]
        assert data["solved"] is True
        assert data["view"]["status"] == "won"
        assert data["view"]["solution"] == ["b8c6", "f1c4"]

    def test_submit_partial_attempt(self, client):
        client.get("/api/puzzle")
        client.post("/api/puzzle/move", json={"from_square": "b8", "to_square": "a6"})

        data = client.post("/api/puzzle/submit").json()
        assert data["feedback"] == ["partial", "incorrect"]
        assert data["solved"] is False
        assert data["view"]["attempt_number"] == 2
        assert data["view"]["history"][0]["sequence"] == ["Na6"]

    def test_submit_empty_conflicts(self, client):
        client.get("/api/puzzle")
        response = client.post("/api/puzzle/submit")
        assert response.status_code == 409

    def test_reset(self, client):
        client.get("/api/puzzle")
        client.post("/api/puzzle/move", json={"from_square": "b8", "to_square": "c6"})
        response = client.post("/api/puzzle/reset")
        assert response.status_code == 200
        assert response.json()["current_input"] == []

    def test_reset_before_loading_conflicts(self, client):
        response = client.post("/api/puzzle/reset")
        assert response.status_code == 409


class TestRulesSeen:
    """Test suite for POST /api/puzzle/rules-seen."""

    def test_mark_rules_seen(self, client):
        client.get("/api/puzzle")
        response = client.post("/api/puzzle/rules-seen")
        assert response.json() == {"marked": True}
        assert client.get("/api/puzzle").json()["rules_seen"] is True
