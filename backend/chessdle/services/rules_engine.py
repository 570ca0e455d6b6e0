"""Rules engine adapter over python-chess.

Every function takes a FEN and builds its own board, so no board state is
ever shared between two computations. Positions are plain FEN strings and
moves are applied as pure (fen, move) -> fen functions.
"""

import io
import logging
from dataclasses import dataclass
from typing import Literal, Optional

import chess
import chess.pgn

from ..models.puzzle import Move, PieceKind

logger = logging.getLogger(__name__)


PROMOTION_TYPES = {
    PieceKind.QUEEN: chess.QUEEN,
    PieceKind.ROOK: chess.ROOK,
    PieceKind.BISHOP: chess.BISHOP,
    PieceKind.KNIGHT: chess.KNIGHT,
}


@dataclass(frozen=True)
class AppliedMove:
    """A legal move together with its SAN and the resulting position."""
    move: Move
    san: str
    fen_after: str


def to_chess_move(move: Move) -> chess.Move:
    """Convert a Move to a python-chess move.

    Raises:
        ValueError: If a square name is not one of a1..h8.
    """
    promotion = PROMOTION_TYPES[move.promotion] if move.promotion else None
    return chess.Move(
        chess.parse_square(move.from_square),
        chess.parse_square(move.to_square),
        promotion=promotion,
    )


def from_chess_move(move: chess.Move) -> Move:
    """Convert a python-chess move to a Move."""
    promotion = PieceKind(chess.piece_symbol(move.promotion)) if move.promotion else None
    return Move(
        from_square=chess.square_name(move.from_square),
        to_square=chess.square_name(move.to_square),
        promotion=promotion,
    )


def _board(fen: str) -> Optional[chess.Board]:
    try:
        return chess.Board(fen)
    except (TypeError, ValueError):
        return None


def validate_fen(fen: str) -> str:
    """Check that a FEN is well-formed and return its canonical form.

    Raises:
        ValueError: If the FEN cannot be parsed.
    """
    if not isinstance(fen, str) or not fen.strip():
        raise ValueError("empty position string")
    return chess.Board(fen).fen()


def apply_move(fen: str, move: Move) -> Optional[AppliedMove]:
    """Apply a coordinate move to a position.

    Returns:
        AppliedMove, or None if the move is not legal in the position.
    """
    board = _board(fen)
    if board is None:
        return None

    try:
        chess_move = to_chess_move(move)
    except ValueError:
        return None

    if chess_move not in board.legal_moves:
        return None

    san = board.san(chess_move)
    board.push(chess_move)
    return AppliedMove(move=from_chess_move(chess_move), san=san, fen_after=board.fen())


def apply_san(fen: str, san: str) -> Optional[AppliedMove]:
    """Apply a SAN move to a position.

    Only moves legal for the side to move are accepted; null moves are
    rejected.

    Returns:
        AppliedMove, or None if the notation is malformed or illegal.
    """
    board = _board(fen)
    if board is None or not san:
        return None

    try:
        chess_move = board.parse_san(san)
    except ValueError:
        # InvalidMoveError, IllegalMoveError and AmbiguousMoveError
        return None

    if not chess_move:
        return None

    canonical = board.san(chess_move)
    board.push(chess_move)
    return AppliedMove(move=from_chess_move(chess_move), san=canonical, fen_after=board.fen())


def flip_turn(fen: str) -> Optional[str]:
    """Swap the side-to-move field of a FEN, leaving every other field as is."""
    parts = fen.split(" ")
    if len(parts) < 2:
        return None
    parts[1] = "b" if parts[1] == "w" else "w"
    return " ".join(parts)


def side_to_move(fen: str) -> Literal["white", "black"]:
    """Color to move in a FEN."""
    return "white" if chess.Board(fen).turn == chess.WHITE else "black"


def replay_history(pgn: str) -> tuple[str, list[str]]:
    """Read a recorded game and list its mainline moves.

    Args:
        pgn: PGN text, with or without headers.

    Returns:
        Tuple of (starting FEN, mainline moves in SAN).

    Raises:
        ValueError: If no game can be read or the movetext has errors.
    """
    game = chess.pgn.read_game(io.StringIO(pgn))
    if game is None:
        raise ValueError("no game found in move history")
    if game.errors:
        raise ValueError(f"move history is not readable: {game.errors[0]}")

    board = game.board()
    starting_fen = board.fen()
    sans: list[str] = []
    for move in game.mainline_moves():
        sans.append(board.san(move))
        board.push(move)

    logger.debug(f"Replayed {len(sans)} plies from move history")
    return starting_fen, sans
