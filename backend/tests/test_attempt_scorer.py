"""Tests for the attempt scoring algorithm."""

import pytest

from chessdle.models.errors import SolutionDataError
from chessdle.models.puzzle import Move, PieceKind, Verdict
from chessdle.services.attempt_scorer import compare_moves, salvage_verdict, score_attempt

from conftest import (
    AFTER_E4_FEN,
    OPENING_SAN,
    OPENING_SOLUTION,
    PROMOTION_FEN,
    STARTING_FEN,
)

C, P, I = Verdict.CORRECT, Verdict.PARTIAL, Verdict.INCORRECT


class TestCompareMoves:
    """Tests for the per-move comparison and its XOR tie-break."""

    def test_exact_match(self):
        assert compare_moves(Move("e2", "e4"), Move("e2", "e4")) == C

    def test_from_matches_only(self):
        assert compare_moves(Move("e2", "e3"), Move("e2", "e4")) == P

    def test_to_matches_only(self):
        assert compare_moves(Move("d2", "e4"), Move("e2", "e4")) == P

    def test_neither_matches(self):
        assert compare_moves(Move("d2", "d4"), Move("e2", "e4")) == I

    def test_promotion_mismatch_is_incorrect(self):
        """Same squares but a different promotion: both match, so no partial credit."""
        expected = Move("e7", "e8", PieceKind.QUEEN)
        assert compare_moves(Move("e7", "e8", PieceKind.KNIGHT), expected) == I
        assert compare_moves(Move("e7", "e8"), expected) == I


class TestSalvageVerdict:
    """Tests for the illegal-notation fallback."""

    def test_destination_matches(self):
        assert salvage_verdict("Qe4", Move("e2", "e4")) == P

    def test_destination_differs(self):
        assert salvage_verdict("Qh5", Move("e2", "e4")) == I

    def test_no_destination(self):
        assert salvage_verdict("O-O", Move("e1", "g1")) == I


class TestScoreAttempt:
    """Tests for scoring full attempts."""

    def test_exact_solution_wins(self):
        result = score_attempt(STARTING_FEN, OPENING_SOLUTION, OPENING_SAN)
        assert result.verdicts == (C, C, C)
        assert result.solved is True
        assert result.stopped_at is None

    def test_deterministic(self):
        attempt = ["d4", "e5", "Nc3"]
        first = score_attempt(STARTING_FEN, OPENING_SOLUTION, attempt)
        second = score_attempt(STARTING_FEN, OPENING_SOLUTION, attempt)
        assert first == second

    def test_judged_against_solution_path(self):
        """Later moves are read in the solution's position, not the player's."""
        result = score_attempt(STARTING_FEN, OPENING_SOLUTION, ["d4", "e5", "Nf3"])
        assert result.verdicts == (I, C, C)
        assert result.solved is False

    def test_partial_same_piece_other_square(self):
        result = score_attempt(STARTING_FEN, OPENING_SOLUTION, ["e3", "e5", "Nf3"])
        assert result.verdicts == (P, C, C)

    def test_partial_other_piece_same_square(self):
        result = score_attempt(STARTING_FEN, ("g1f3",), ["f3"])
        assert result.verdicts == (P,)

    def test_illegal_notation_salvaged_by_destination(self):
        result = score_attempt(STARTING_FEN, OPENING_SOLUTION, ["Qe4", "e5", "Nf3"])
        assert result.verdicts == (P, C, C)

    def test_illegal_notation_wrong_destination(self):
        result = score_attempt(STARTING_FEN, OPENING_SOLUTION, ["Qh5", "e5", "Nf3"])
        assert result.verdicts == (I, C, C)

    def test_longer_attempt(self):
        attempt = OPENING_SAN + ["Nc6", "Bc4"]
        result = score_attempt(STARTING_FEN, OPENING_SOLUTION, attempt)
        assert result.verdicts == (C, C, C, I, I)
        assert result.solved is False

    def test_shorter_attempt(self):
        result = score_attempt(STARTING_FEN, OPENING_SOLUTION, ["e4"])
        assert result.verdicts == (C, I, I)
        assert result.solved is False

    def test_promotion(self):
        assert score_attempt(PROMOTION_FEN, ("e7e8q",), ["e8=Q"]).verdicts == (C,)
        assert score_attempt(PROMOTION_FEN, ("e7e8q",), ["e8=N"]).verdicts == (I,)

    def test_black_to_move(self):
        result = score_attempt(AFTER_E4_FEN, ("e7e5", "g1f3"), ["e5", "Nf3"])
        assert result.solved is True

    def test_broken_solution_line_stops_scoring(self):
        """A solution move that cannot be played ends scoring for the attempt."""
        solution = ("e2e4", "e2e4", "g1f3")
        result = score_attempt(STARTING_FEN, solution, OPENING_SAN)
        assert result.verdicts == (C, I, I)
        assert result.stopped_at == 1
        assert result.solved is False

    def test_broken_solution_overrides_verdict_and_fills(self):
        """e4 would earn partial credit against e2e5, but the broken line forces incorrect."""
        solution = ("e2e5",)
        result = score_attempt(STARTING_FEN, solution, ["e4", "e5", "Nf3"])
        assert result.verdicts == (I, I, I)
        assert result.stopped_at == 0

    def test_malformed_solution_entry_is_fatal(self):
        with pytest.raises(SolutionDataError):
            score_attempt(STARTING_FEN, ("e2e4", "bogus"), ["e4", "e5"])

    def test_malformed_entry_beyond_attempt_is_still_found(self):
        with pytest.raises(SolutionDataError):
            score_attempt(STARTING_FEN, ("e2e4", "e7e5", "xx"), ["e4"])
