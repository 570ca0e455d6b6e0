"""Puzzle normalization service.

Turns a raw puzzle payload into a PuzzleDefinition with a validated
starting position. Puzzle sources often hand out a position at a ply
boundary where the side-to-move flag does not match how the solution is
indexed, so the known first solution move is used to settle whose turn
it is.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from ..models.errors import (
    DerivationError,
    IncompletePuzzleError,
    InvalidPosition,
    InvalidSolution,
    MalformedNotation,
)
from ..models.puzzle import Move, PuzzleDefinition, RawPuzzle
from . import rules_engine
from .move_codec import parse_fixed

logger = logging.getLogger(__name__)


def derive_position(pgn: str, initial_ply: int) -> str:
    """Derive the puzzle position from a game's move history.

    Replays `initial_ply` plies, then the opponent's setup move that
    creates the puzzle, if the history has one.

    Raises:
        DerivationError: If the history is unreadable, too short, or a
            replayed move is illegal.
    """
    if initial_ply < 0:
        raise DerivationError(f"Initial ply must not be negative, got {initial_ply}")

    try:
        fen, history = rules_engine.replay_history(pgn)
    except ValueError as e:
        raise DerivationError(f"Failed to derive position from move history: {e}") from e

    for ply in range(initial_ply + 1):
        if ply >= len(history):
            if ply == initial_ply:
                break  # No setup move recorded; the puzzle starts here
            raise DerivationError(f"Move history is missing the move at ply {ply}")

        applied = rules_engine.apply_san(fen, history[ply])
        if applied is None:
            raise DerivationError(f"Move {history[ply]!r} at ply {ply} is illegal")
        fen = applied.fen_after

    logger.debug(f"Derived position at ply {initial_ply}: {fen}")
    return fen


def correct_turn(fen: str, first_move: Move) -> tuple[str, bool]:
    """Make the side to move agree with the first solution move.

    Returns:
        Tuple of (position, consistent). If neither the given nor the
        flipped side to move makes the first move legal, the given position
        comes back with consistent=False.
    """
    if rules_engine.apply_move(fen, first_move) is not None:
        return fen, True

    flipped = rules_engine.flip_turn(fen)
    if flipped is not None and rules_engine.apply_move(flipped, first_move) is not None:
        logger.info(f"Corrected side to move for first move {first_move}: {flipped}")
        return flipped, True

    logger.error(
        f"First solution move {first_move} is illegal for either side to move; "
        f"keeping position {fen}"
    )
    return fen, False


def normalize_puzzle(payload: Any, today: Optional[date] = None) -> PuzzleDefinition:
    """Build a PuzzleDefinition from a raw puzzle payload.

    Args:
        payload: A RawPuzzle or a dict in the puzzle source's shape.
        today: Date used for the fallback puzzle id (defaults to today, UTC).

    Raises:
        IncompletePuzzleError: If the solution or every way of building the
            starting position is missing.
        DerivationError: If the position cannot be derived from the history.
        InvalidPosition: If the starting position is malformed.
        InvalidSolution: If the first solution move is malformed.
    """
    try:
        raw = payload if isinstance(payload, RawPuzzle) else RawPuzzle.model_validate(payload or {})
    except ValidationError as e:
        raise IncompletePuzzleError(f"Malformed puzzle data: {e.error_count()} invalid field(s)") from e

    solution = raw.puzzle.solution
    if not solution:
        raise IncompletePuzzleError("Incomplete puzzle data: solution is missing or empty")

    fen = raw.game.fen
    initial_ply = raw.puzzle.initial_ply
    if not fen and (not raw.game.pgn or initial_ply is None):
        raise IncompletePuzzleError("Incomplete puzzle data: cannot determine starting position")

    if not fen:
        fen = derive_position(raw.game.pgn, initial_ply)

    try:
        fen = rules_engine.validate_fen(fen)
    except ValueError as e:
        raise InvalidPosition(f"Starting position {fen!r} is invalid: {e}") from e

    try:
        first_move = parse_fixed(solution[0])
    except MalformedNotation as e:
        raise InvalidSolution(f"Invalid first solution move: {solution[0]!r}") from e

    fen, consistent = correct_turn(fen, first_move)

    try:
        fen = rules_engine.validate_fen(fen)
    except ValueError as e:
        raise InvalidPosition(f"Final position {fen!r} is invalid: {e}") from e

    puzzle_id = raw.puzzle.id
    if not puzzle_id:
        today = today or datetime.now(timezone.utc).date()
        puzzle_id = f"lichess_daily_{today.isoformat()}"

    puzzle = PuzzleDefinition(
        id=puzzle_id,
        rating=raw.puzzle.rating,
        starting_fen=fen,
        solution=tuple(solution),
        side_to_move=rules_engine.side_to_move(fen),
        turn_consistent=consistent,
    )
    logger.info(
        f"Puzzle {puzzle.id} normalized: rating={puzzle.rating}, "
        f"{len(puzzle.solution)} moves, {puzzle.side_to_move} to move"
    )
    return puzzle
