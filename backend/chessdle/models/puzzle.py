"""Data models for puzzles, attempts and session state."""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


MAX_ATTEMPTS = 5


class PieceKind(str, Enum):
    """Pieces a pawn may promote to, by fixed-notation letter."""
    QUEEN = "q"
    ROOK = "r"
    BISHOP = "b"
    KNIGHT = "n"


@dataclass(frozen=True)
class Move:
    """A position-independent move: from-square, to-square, promotion."""
    from_square: str
    to_square: str
    promotion: Optional[PieceKind] = None

    def uci(self) -> str:
        suffix = self.promotion.value if self.promotion else ""
        return f"{self.from_square}{self.to_square}{suffix}"

    def __str__(self) -> str:
        return self.uci()


class Verdict(str, Enum):
    """Per-move feedback for a submitted attempt."""
    CORRECT = "correct"      # Right piece, right square
    PARTIAL = "partial"      # Exactly one of from/to matches
    INCORRECT = "incorrect"


class GameStatus(str, Enum):
    """Overall status of a puzzle session."""
    LOADING = "loading"
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.WON, GameStatus.LOST, GameStatus.ERROR)


class PuzzleDefinition(BaseModel):
    """A normalized puzzle, immutable for the session's lifetime."""
    model_config = ConfigDict(frozen=True)

    id: str
    rating: int | None = None
    starting_fen: str
    solution: tuple[str, ...]  # Fixed (UCI) notation
    side_to_move: Literal["white", "black"]
    turn_consistent: bool = True  # False if the first solution move never became legal


class AttemptRecord(BaseModel):
    """One submitted attempt and the feedback it earned."""
    model_config = ConfigDict(frozen=True)

    sequence: tuple[str, ...]  # SAN, as played
    feedback: tuple[Verdict, ...]


class ScoreResult(BaseModel):
    """Outcome of scoring one attempt against the solution."""
    model_config = ConfigDict(frozen=True)

    verdicts: tuple[Verdict, ...]
    solved: bool
    stopped_at: int | None = None  # Index where a broken solution line halted scoring


class SessionState(BaseModel):
    """Complete state of one puzzle session.

    Never mutated in place; transitions in session_machine return a copy.
    """
    model_config = ConfigDict(frozen=True)

    puzzle: PuzzleDefinition | None = None
    displayed_fen: str | None = None
    current_input: tuple[str, ...] = ()
    history: tuple[AttemptRecord, ...] = ()
    attempt_number: int = 1
    status: GameStatus = GameStatus.LOADING
    error_message: str | None = None


class SessionSnapshot(BaseModel):
    """The persisted subset of a session."""
    history: list[AttemptRecord]
    attempt_number: int = Field(..., ge=1, strict=True)
    status: GameStatus


# --- Puzzle source payload ---


class RawGame(BaseModel):
    """The `game` section of a puzzle source payload."""
    id: str | None = None
    fen: str | None = None
    pgn: str | None = None


class RawPuzzleInfo(BaseModel):
    """The `puzzle` section of a puzzle source payload."""
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    rating: int | None = None
    initial_ply: int | None = Field(default=None, alias="initialPly")
    solution: list[str] | None = None
    themes: list[str] = Field(default_factory=list)


class RawPuzzle(BaseModel):
    """Untrusted puzzle payload, e.g. from the Lichess daily puzzle API."""
    game: RawGame = Field(default_factory=RawGame)
    puzzle: RawPuzzleInfo = Field(default_factory=RawPuzzleInfo)


# --- API models ---


class MoveRequest(BaseModel):
    """A piece dropped on the board."""
    from_square: str = Field(..., min_length=2, max_length=2, description="Origin square, e.g. 'e2'")
    to_square: str = Field(..., min_length=2, max_length=2, description="Target square, e.g. 'e4'")
    promotion: PieceKind | None = Field(default=None, description="Promotion piece; queen if omitted")


class AttemptView(BaseModel):
    """An attempt as shown to the player."""
    sequence: list[str]
    feedback: list[Verdict]


class SessionView(BaseModel):
    """What a front end needs to render the session."""
    status: GameStatus
    puzzle_id: str | None = None
    rating: int | None = None
    side_to_move: str | None = None
    starting_fen: str | None = None
    displayed_fen: str | None = None
    solution_length: int = 0
    attempt_number: int = 1
    max_attempts: int = MAX_ATTEMPTS
    current_input: list[str] = Field(default_factory=list)
    history: list[AttemptView] = Field(default_factory=list)
    solution: list[str] | None = None  # Revealed once the game is over
    rules_seen: bool = False
    error_message: str | None = None


class MoveResponse(BaseModel):
    """Result of dropping a piece."""
    accepted: bool
    san: str | None = None
    view: SessionView


class SubmitResponse(BaseModel):
    """Result of submitting an attempt."""
    feedback: list[Verdict]
    solved: bool
    view: SessionView
