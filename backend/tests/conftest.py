"""Pytest fixtures for Chessdle backend tests."""

import pytest
from unittest.mock import AsyncMock

from chessdle.models.puzzle import PuzzleDefinition
from chessdle.services.session_controller import SessionController
from chessdle.services.session_store import InMemoryStore, SessionStore


# Sample FEN positions for testing
STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
AFTER_E4_FEN = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
AFTER_E4_WRONG_TURN_FEN = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 1"
AFTER_E4_E5_NF3_FEN = "rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2"
PROMOTION_FEN = "8/4P3/8/8/8/8/k7/4K3 w - - 0 1"

OPENING_SOLUTION = ("e2e4", "e7e5", "g1f3")
OPENING_SAN = ["e4", "e5", "Nf3"]


def make_puzzle(
    solution=OPENING_SOLUTION,
    fen: str = STARTING_FEN,
    puzzle_id: str = "abc12",
) -> PuzzleDefinition:
    """Build a puzzle definition without going through normalization."""
    return PuzzleDefinition(
        id=puzzle_id,
        rating=1500,
        starting_fen=fen,
        solution=tuple(solution),
        side_to_move="white" if " w " in fen else "black",
    )


def make_payload(
    solution=("b8c6", "f1c4"),
    pgn: str | None = "e4 e5 Nf3 Nc6 Bc4",
    initial_ply: int | None = 2,
    fen: str | None = None,
    puzzle_id: str | None = "K69di",
) -> dict:
    """Build a raw payload in the daily puzzle API's shape."""
    game = {"id": "x2vK6Pbq", "pgn": pgn}
    if fen is not None:
        game["fen"] = fen
    return {
        "game": game,
        "puzzle": {
            "id": puzzle_id,
            "rating": 1723,
            "plays": 4213,
            "initialPly": initial_ply,
            "solution": list(solution) if solution is not None else None,
            "themes": ["opening", "short"],
        },
    }


@pytest.fixture
def puzzle():
    """A three-move puzzle from the starting position."""
    return make_puzzle()


@pytest.fixture
def memory_store():
    """A fresh in-memory key-value store."""
    return InMemoryStore()


@pytest.fixture
def session_store(memory_store):
    """A session store backed by memory."""
    return SessionStore(memory_store, prefix="chessdle_progress_", max_attempts=5)


@pytest.fixture
def mock_source():
    """A puzzle source returning a PGN-derived puzzle."""
    source = AsyncMock()
    source.fetch_daily = AsyncMock(return_value=make_payload())
    return source


@pytest.fixture
def controller(session_store, mock_source):
    """A session controller with in-memory storage and a mocked source."""
    return SessionController(store=session_store, source=mock_source, max_attempts=5)
