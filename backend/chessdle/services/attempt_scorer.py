"""Attempt scoring service.

Compares a player's move sequence against the solution line, move by move.

Every move is judged in the position reached by playing the *solution*
up to that point, not the player's own earlier moves, so feedback at
step i always answers "was this right, had everything before it been
right?".
"""

import logging
from typing import Optional, Sequence

from ..models.errors import IllegalOrMalformed, MalformedNotation, SolutionDataError
from ..models.puzzle import Move, ScoreResult, Verdict
from . import rules_engine
from .move_codec import extract_intended_destination, parse_contextual, parse_fixed

logger = logging.getLogger(__name__)


def compare_moves(actual: Move, expected: Move) -> Verdict:
    """Verdict for a legal move against the expected one.

    Exact match (promotion included) is CORRECT. Otherwise a move that
    gets exactly one of origin and destination right is PARTIAL.
    """
    if actual == expected:
        return Verdict.CORRECT

    from_match = actual.from_square == expected.from_square
    to_match = actual.to_square == expected.to_square
    if from_match != to_match:
        return Verdict.PARTIAL
    return Verdict.INCORRECT


def salvage_verdict(text: str, expected: Move) -> Verdict:
    """Verdict for a move that could not be resolved in the validation position.

    Falls back to the square the notation appears to aim at. The guess
    only ever feeds this verdict, never position tracking.
    """
    if extract_intended_destination(text) == expected.to_square:
        return Verdict.PARTIAL
    return Verdict.INCORRECT


def _expected_move(solution: Sequence[str], index: int) -> Optional[Move]:
    if index >= len(solution):
        return None
    try:
        return parse_fixed(solution[index])
    except MalformedNotation as e:
        raise SolutionDataError(
            f"Invalid solution data: entry {index} ({solution[index]!r}) is malformed"
        ) from e


def score_attempt(
    starting_fen: str,
    solution: Sequence[str],
    attempt: Sequence[str],
) -> ScoreResult:
    """Score an attempt against the solution.

    Args:
        starting_fen: The puzzle's starting position.
        solution: Solution moves in fixed (UCI) notation.
        attempt: The player's moves in SAN.

    Returns:
        ScoreResult with one verdict per index of the longer sequence.
        `solved` requires every verdict CORRECT and equal lengths.

    Raises:
        SolutionDataError: If a solution entry is malformed.
    """
    length = max(len(attempt), len(solution))
    verdicts: list[Verdict] = []
    stopped_at: Optional[int] = None
    validation_fen = starting_fen

    for i in range(length):
        expected = _expected_move(solution, i)
        played = attempt[i] if i < len(attempt) else None

        verdict = Verdict.INCORRECT
        if expected is not None and played is not None:
            try:
                actual, _ = parse_contextual(validation_fen, played)
            except IllegalOrMalformed:
                verdict = salvage_verdict(played, expected)
            else:
                verdict = compare_moves(actual, expected)
        verdicts.append(verdict)

        if expected is None:
            continue

        applied = rules_engine.apply_move(validation_fen, expected)
        if applied is None:
            logger.error(
                f"Solution move {i} ({solution[i]}) is illegal from {validation_fen}; "
                f"stopping validation of this attempt"
            )
            verdicts[-1] = Verdict.INCORRECT
            stopped_at = i
            break
        validation_fen = applied.fen_after

    verdicts.extend([Verdict.INCORRECT] * (length - len(verdicts)))

    solved = (
        len(attempt) == len(solution)
        and all(v == Verdict.CORRECT for v in verdicts)
    )
    return ScoreResult(verdicts=tuple(verdicts), solved=solved, stopped_at=stopped_at)
