"""Exceptions raised by the puzzle engine.

Fatal errors move the session into the error state, codec errors are
handled where moves are parsed, and play-time rejections leave the
session untouched.
"""


class PuzzleError(Exception):
    """Base class for all puzzle engine errors."""


# --- Fatal: the session cannot continue ---


class PuzzleSourceError(PuzzleError):
    """The puzzle source could not be reached or returned garbage."""


class IncompletePuzzleError(PuzzleError):
    """The puzzle payload lacks a solution or any way to build a position."""


class DerivationError(PuzzleError):
    """The starting position could not be derived from the move history."""


class InvalidPosition(PuzzleError):
    """The starting position is not a well-formed FEN."""


class InvalidSolution(PuzzleError):
    """The first solution move is not valid fixed notation."""


class SolutionDataError(PuzzleError):
    """A malformed solution entry was discovered while scoring."""


# --- Codec ---


class MalformedNotation(PuzzleError, ValueError):
    """Text is not a valid fixed-notation (UCI) move."""


class IllegalOrMalformed(PuzzleError, ValueError):
    """Text cannot be read as a legal move in the given position."""


# --- Play-time rejections (no state change) ---


class IllegalMoveError(PuzzleError):
    """A dragged move is not legal from the displayed position."""


class TransitionError(PuzzleError):
    """The requested event is not allowed in the current session state."""
