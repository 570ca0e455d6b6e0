"""Move codec: fixed (UCI) and contextual (SAN) notation to Move records."""

import re
from typing import Optional

from ..models.errors import IllegalOrMalformed, MalformedNotation
from ..models.puzzle import Move, PieceKind
from . import rules_engine


SQUARE = r'[a-h][1-8]'

FIXED_PATTERN = re.compile(rf'^({SQUARE})({SQUARE})([qrbn])?$')

# Trailing square of a SAN move, past any promotion or check/mate suffix:
# "Nf3" -> f3, "exd8=Q+" -> d8, "e8Q#" -> e8
SAN_DESTINATION_PATTERN = re.compile(rf'({SQUARE})=?([qrbn])?[+#]?$', re.IGNORECASE)


def parse_fixed(text: str) -> Move:
    """Parse fixed notation such as "e2e4" or "e7e8q".

    The promotion letter is case-insensitive; squares must be lowercase.

    Raises:
        MalformedNotation: If the text is not two squares plus an optional
            promotion letter.
    """
    if not isinstance(text, str) or len(text) not in (4, 5):
        raise MalformedNotation(f"Expected 4 or 5 characters of fixed notation, got {text!r}")

    match = FIXED_PATTERN.match(text[:4] + text[4:].lower())
    if not match:
        raise MalformedNotation(f"Not a valid fixed-notation move: {text!r}")

    from_square, to_square, promotion = match.groups()
    return Move(
        from_square=from_square,
        to_square=to_square,
        promotion=PieceKind(promotion) if promotion else None,
    )


def encode_fixed(move: Move) -> str:
    """Encode a Move in fixed notation."""
    return move.uci()


def parse_contextual(fen: str, text: str) -> tuple[Move, str]:
    """Resolve a SAN move against a position.

    Args:
        fen: Position the move is played from.
        text: SAN as entered by the player.

    Returns:
        Tuple of (Move, canonical SAN).

    Raises:
        IllegalOrMalformed: If the text is malformed or the move is not
            legal for the side to move.
    """
    applied = rules_engine.apply_san(fen, text)
    if applied is None:
        raise IllegalOrMalformed(f"{text!r} is not a legal move in {fen!r}")
    return applied.move, applied.san


def extract_intended_destination(text: str) -> Optional[str]:
    """Best-effort guess at the square a SAN move was aimed at.

    Only a scoring fallback for moves that could not be resolved; it says
    nothing about legality.
    """
    if not text:
        return None
    match = SAN_DESTINATION_PATTERN.search(text.strip())
    return match.group(1).lower() if match else None
