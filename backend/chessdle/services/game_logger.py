"""Game logging service for puzzle telemetry (JSON lines)."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..config import get_settings


def _log_file() -> Optional[Path]:
    path = get_settings().telemetry_log_path
    return Path(path) if path else None


def log_event(event_type: str, data: dict[str, Any]) -> None:
    """Log a game event to the telemetry file, if one is configured."""
    log_file = _log_file()
    if log_file is None:
        return

    entry = {
        "timestamp": datetime.now().isoformat(),
        "type": event_type,
        **data
    }

    with open(log_file, "a") as f:
        f.write(json.dumps(entry) + "\n")

def log_puzzle_loaded(puzzle_id: str, rating: int | None, num_moves: int, restored: bool) -> None:
    """Log a puzzle being loaded."""
    log_event("puzzle_loaded", {
        "puzzle_id": puzzle_id,
        "rating": rating,
        "moves": num_moves,
        "restored": restored,
    })

def log_attempt(puzzle_id: str, attempt_number: int, sequence: list[str], feedback: list[str]) -> None:
    """Log a submitted attempt."""
    log_event("attempt", {
        "puzzle_id": puzzle_id,
        "attempt": attempt_number,
        "sequence": sequence,
        "feedback": feedback,
    })

def log_game_over(puzzle_id: str, status: str, attempts: int) -> None:
    """Log a puzzle being won or lost."""
    log_event("game_over", {
        "puzzle_id": puzzle_id,
        "status": status,
        "attempts": attempts,
    })
