"""Session controller.

Owns the single puzzle session: fetches and normalizes the daily puzzle,
applies state machine transitions, and saves progress after each one.
"""

import logging
from typing import Optional

from ..config import get_settings
from ..models.errors import PuzzleError
from ..models.puzzle import (
    AttemptView,
    GameStatus,
    PieceKind,
    PuzzleDefinition,
    SessionState,
    SessionView,
)
from . import game_logger, session_machine
from .position_normalizer import normalize_puzzle
from .puzzle_source import PuzzleSourceClient
from .session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)


class SessionController:
    """Single owner of the SessionState."""

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        source: Optional[PuzzleSourceClient] = None,
        max_attempts: Optional[int] = None,
    ):
        self._store = store if store is not None else get_session_store()
        self._source = source if source is not None else PuzzleSourceClient()
        self._max_attempts = max_attempts or get_settings().max_attempts
        self._state = session_machine.initial_state()
        self._loaded = False

    @property
    def state(self) -> SessionState:
        return self._state

    async def load_daily(self) -> SessionState:
        """Fetch the daily puzzle and start (or restore) a session for it.

        Any fetch or normalization failure ends in the error state.
        """
        self._state = session_machine.initial_state()
        self._loaded = True

        try:
            payload = await self._source.fetch_daily()
            puzzle = normalize_puzzle(payload)
        except PuzzleError as e:
            logger.error(f"Failed to fetch or process puzzle: {e}")
            self._state = session_machine.fail(
                self._state,
                f"Failed to load daily puzzle: {e}. Please try refreshing.",
            )
            return self._state

        try:
            return self.load_puzzle(puzzle)
        except Exception as e:
            logger.error(f"Failed to start puzzle {puzzle.id}: {e}")
            self._state = session_machine.fail(
                session_machine.initial_state(),
                f"Failed to load daily puzzle: {e}. Please try refreshing.",
            )
            return self._state

    async def ensure_loaded(self) -> SessionState:
        """Load the daily puzzle unless a load has already happened."""
        if not self._loaded:
            await self.load_daily()
        return self._state

    def load_puzzle(self, puzzle: PuzzleDefinition) -> SessionState:
        """Start a session on an already normalized puzzle."""
        self._loaded = True
        if not puzzle.turn_consistent:
            logger.warning(f"Puzzle {puzzle.id} loaded with an inconsistent side to move")

        snapshot = self._store.load(puzzle.id)
        self._state = session_machine.start(session_machine.initial_state(), puzzle, snapshot)
        self._store.save(self._state)

        game_logger.log_puzzle_loaded(
            puzzle_id=puzzle.id,
            rating=puzzle.rating,
            num_moves=len(puzzle.solution),
            restored=snapshot is not None,
        )
        return self._state

    def record_move(
        self,
        from_square: str,
        to_square: str,
        promotion: Optional[PieceKind] = None,
    ) -> str:
        """Add a dragged move to the current attempt.

        Returns:
            The move in SAN.

        Raises:
            IllegalMoveError: If the move is illegal.
            TransitionError: If moves are not accepted right now.
        """
        self._state = session_machine.record_move(self._state, from_square, to_square, promotion)
        return self._state.current_input[-1]

    def reset_current_input(self) -> SessionState:
        """Clear the current attempt."""
        self._state = session_machine.reset_current_input(self._state)
        return self._state

    def submit_attempt(self) -> SessionState:
        """Score the current attempt, then save progress.

        Raises:
            TransitionError: If there is nothing to submit.
        """
        previous = self._state
        self._state = session_machine.submit_attempt(previous, self._max_attempts)
        self._store.save(self._state)

        state = self._state
        if state.status == GameStatus.ERROR:
            return state

        record = state.history[-1]
        game_logger.log_attempt(
            puzzle_id=state.puzzle.id,
            attempt_number=previous.attempt_number,
            sequence=list(record.sequence),
            feedback=[v.value for v in record.feedback],
        )
        if state.status in (GameStatus.WON, GameStatus.LOST):
            game_logger.log_game_over(
                puzzle_id=state.puzzle.id,
                status=state.status.value,
                attempts=len(state.history),
            )
        return state

    def mark_rules_seen(self) -> bool:
        """Remember that the rules were shown for the current puzzle."""
        if self._state.puzzle is None:
            return False
        self._store.mark_rules_seen(self._state.puzzle.id)
        return True

    def view(self) -> SessionView:
        """Summarize the session for a front end."""
        state = self._state
        puzzle = state.puzzle
        if puzzle is None or state.status == GameStatus.ERROR:
            return SessionView(
                status=state.status,
                puzzle_id=puzzle.id if puzzle else None,
                attempt_number=state.attempt_number,
                max_attempts=self._max_attempts,
                error_message=state.error_message,
            )

        game_over = state.status in (GameStatus.WON, GameStatus.LOST)
        return SessionView(
            status=state.status,
            puzzle_id=puzzle.id,
            rating=puzzle.rating,
            side_to_move=puzzle.side_to_move,
            starting_fen=puzzle.starting_fen,
            displayed_fen=state.displayed_fen,
            solution_length=len(puzzle.solution),
            attempt_number=state.attempt_number,
            max_attempts=self._max_attempts,
            current_input=list(state.current_input),
            history=[
                AttemptView(sequence=list(r.sequence), feedback=list(r.feedback))
                for r in state.history
            ],
            solution=list(puzzle.solution) if game_over else None,
            rules_seen=self._store.has_seen_rules(puzzle.id),
        )


# Singleton instance
_session_controller: Optional[SessionController] = None


def get_session_controller() -> SessionController:
    """Get the global session controller instance."""
    global _session_controller
    if _session_controller is None:
        _session_controller = SessionController()
    return _session_controller
