"""Session state machine.

Transitions are pure functions from a SessionState (plus an event) to a
new SessionState:

    loading -> playing | error
    playing -> playing | won | lost | error
    won, lost, error: terminal

A rejected event raises TransitionError or IllegalMoveError and leaves the
caller's state as it was.
"""

import logging
from typing import Optional

from ..models.errors import IllegalMoveError, SolutionDataError, TransitionError
from ..models.puzzle import (
    MAX_ATTEMPTS,
    AttemptRecord,
    GameStatus,
    Move,
    PieceKind,
    PuzzleDefinition,
    SessionSnapshot,
    SessionState,
)
from . import rules_engine
from .attempt_scorer import score_attempt

logger = logging.getLogger(__name__)


def initial_state() -> SessionState:
    """A fresh session waiting for its puzzle."""
    return SessionState()


def _require_playing(state: SessionState, action: str) -> PuzzleDefinition:
    if state.status != GameStatus.PLAYING or state.puzzle is None:
        raise TransitionError(f"Cannot {action} while the game is {state.status.value}")
    return state.puzzle


def start(
    state: SessionState,
    puzzle: PuzzleDefinition,
    snapshot: Optional[SessionSnapshot] = None,
) -> SessionState:
    """Begin play on a loaded puzzle, optionally restoring saved progress.

    The board always shows the puzzle's starting position, whatever the
    restored status.
    """
    if state.status != GameStatus.LOADING:
        raise TransitionError(f"Cannot start a puzzle while the game is {state.status.value}")

    if snapshot is None:
        return SessionState(
            puzzle=puzzle,
            displayed_fen=puzzle.starting_fen,
            status=GameStatus.PLAYING,
        )

    logger.info(
        f"Restoring puzzle {puzzle.id}: attempt {snapshot.attempt_number}, "
        f"{len(snapshot.history)} past attempt(s), status {snapshot.status.value}"
    )
    return SessionState(
        puzzle=puzzle,
        displayed_fen=puzzle.starting_fen,
        history=tuple(snapshot.history),
        attempt_number=snapshot.attempt_number,
        status=snapshot.status,
    )


def fail(state: SessionState, message: str) -> SessionState:
    """Move the session into the terminal error state."""
    return SessionState(
        puzzle=state.puzzle,
        status=GameStatus.ERROR,
        error_message=message,
    )


def record_move(
    state: SessionState,
    from_square: str,
    to_square: str,
    promotion: Optional[PieceKind] = None,
) -> SessionState:
    """Append a dragged move to the current attempt.

    The first move of an attempt is played from the puzzle's start, later
    ones from the displayed position. A pawn reaching the last rank without
    a promotion piece becomes a queen.

    Raises:
        TransitionError: If not playing, or the attempt is already as long
            as the solution.
        IllegalMoveError: If the move is not legal.
    """
    puzzle = _require_playing(state, "record a move")
    if len(state.current_input) >= len(puzzle.solution):
        raise TransitionError("Maximum sequence length reached")

    fen = state.displayed_fen if state.current_input else puzzle.starting_fen
    move = Move(from_square=from_square, to_square=to_square, promotion=promotion)

    applied = rules_engine.apply_move(fen, move)
    if applied is None and promotion is None:
        applied = rules_engine.apply_move(fen, Move(from_square, to_square, PieceKind.QUEEN))
    if applied is None:
        raise IllegalMoveError(f"Illegal move {move}")

    return state.model_copy(update={
        "current_input": state.current_input + (applied.san,),
        "displayed_fen": applied.fen_after,
    })


def reset_current_input(state: SessionState) -> SessionState:
    """Discard the moves of the current attempt."""
    puzzle = _require_playing(state, "reset the current attempt")
    return state.model_copy(update={
        "current_input": (),
        "displayed_fen": puzzle.starting_fen,
    })


def submit_attempt(state: SessionState, max_attempts: int = MAX_ATTEMPTS) -> SessionState:
    """Score the current attempt and advance the game.

    A malformed solution entry is fatal and moves the session to error.

    Raises:
        TransitionError: If not playing or the current attempt is empty.
    """
    puzzle = _require_playing(state, "submit an attempt")
    if not state.current_input:
        raise TransitionError("Cannot submit an empty attempt")

    try:
        result = score_attempt(puzzle.starting_fen, puzzle.solution, state.current_input)
    except SolutionDataError as e:
        logger.error(f"Scoring aborted for puzzle {puzzle.id}: {e}")
        return fail(state, f"Internal error: {e}")

    record = AttemptRecord(sequence=state.current_input, feedback=result.verdicts)
    update = {
        "history": state.history + (record,),
        "current_input": (),
        "displayed_fen": puzzle.starting_fen,
    }

    if result.solved:
        update["status"] = GameStatus.WON
        logger.info(f"Puzzle {puzzle.id} solved on attempt {state.attempt_number}")
    elif state.attempt_number >= max_attempts:
        update["status"] = GameStatus.LOST
        logger.info(f"Puzzle {puzzle.id} lost after {state.attempt_number} attempts")
    else:
        update["attempt_number"] = state.attempt_number + 1

    return state.model_copy(update=update)
