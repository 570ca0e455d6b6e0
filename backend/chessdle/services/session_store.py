"""Session persistence.

Saves each puzzle's progress (attempt history, attempt number and status)
in a key -> string store, keyed by "<prefix><puzzle id>". Saved progress
is only trusted if it is structurally valid; anything else is discarded.
"""

import json
import logging
import re
from pathlib import Path
from typing import Optional, Protocol

from ..config import get_settings, get_storage_dir
from ..models.puzzle import MAX_ATTEMPTS, GameStatus, SessionSnapshot, SessionState

logger = logging.getLogger(__name__)


SEEN_RULES_SUFFIX = "_seen_modal"

SAVED_STATUSES = (GameStatus.PLAYING, GameStatus.WON, GameStatus.LOST)


class KeyValueStore(Protocol):
    """Minimal string store, no transactions."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStore:
    """Store that lives as long as the process."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class FileStore:
    """Store keeping one file per key in a directory."""

    def __init__(self, directory: Path):
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe = re.sub(r'[^A-Za-z0-9_.-]', '_', key)
        return self._dir / f"{safe}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        self._path(key).write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


class SessionStore:
    """Saves and restores puzzle progress."""

    def __init__(
        self,
        store: KeyValueStore,
        prefix: str = "chessdle_progress_",
        max_attempts: int = MAX_ATTEMPTS,
    ):
        """Initialize the session store.

        Args:
            store: Backing key -> string store.
            prefix: Prepended to the puzzle id to form storage keys.
            max_attempts: Highest attempt number a valid snapshot may hold.
        """
        self._store = store
        self._prefix = prefix
        self._max_attempts = max_attempts

    def key(self, puzzle_id: str) -> str:
        return f"{self._prefix}{puzzle_id}"

    def save(self, state: SessionState) -> bool:
        """Write a snapshot of the session.

        Skipped while loading or in error, and without a puzzle.

        Returns:
            True if a snapshot was written.
        """
        if state.puzzle is None or state.status not in SAVED_STATUSES:
            return False

        snapshot = SessionSnapshot(
            history=list(state.history),
            attempt_number=state.attempt_number,
            status=state.status,
        )
        try:
            self._store.set(self.key(state.puzzle.id), snapshot.model_dump_json())
        except OSError as e:
            logger.error(f"Error writing progress for puzzle {state.puzzle.id}: {e}")
            return False

        logger.debug(
            f"Saved puzzle {state.puzzle.id}: attempt {state.attempt_number}, "
            f"status {state.status.value}"
        )
        return True

    def load(self, puzzle_id: str) -> Optional[SessionSnapshot]:
        """Load saved progress for a puzzle.

        Returns:
            The snapshot, or None if there is none or it is malformed
            (malformed snapshots are deleted).
        """
        key = self.key(puzzle_id)
        try:
            raw = self._store.get(key)
        except OSError as e:
            logger.error(f"Error reading progress for puzzle {puzzle_id}: {e}")
            return None
        except ValueError as e:
            # Undecodable bytes on disk
            logger.warning(f"Discarding unreadable saved progress for puzzle {puzzle_id}: {e}")
            self.clear(puzzle_id)
            return None

        if raw is None:
            logger.debug(f"No saved progress for puzzle {puzzle_id}")
            return None

        try:
            snapshot = SessionSnapshot.model_validate(json.loads(raw))
            self._check_consistency(snapshot)
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors
            logger.warning(f"Discarding invalid saved progress for puzzle {puzzle_id}: {e}")
            self.clear(puzzle_id)
            return None

        return snapshot

    def _check_consistency(self, snapshot: SessionSnapshot) -> None:
        if snapshot.status not in SAVED_STATUSES:
            raise ValueError(f"status {snapshot.status.value!r} is never saved")
        if snapshot.attempt_number > self._max_attempts:
            raise ValueError(f"attempt number {snapshot.attempt_number} exceeds {self._max_attempts}")

        # Playing: one record per finished attempt. Won/lost: the last attempt counts too.
        expected = snapshot.attempt_number - 1 if snapshot.status == GameStatus.PLAYING else snapshot.attempt_number
        if len(snapshot.history) != expected:
            raise ValueError(
                f"{len(snapshot.history)} attempt(s) recorded for attempt number "
                f"{snapshot.attempt_number} ({snapshot.status.value})"
            )

        for record in snapshot.history:
            if not record.sequence or len(record.feedback) < len(record.sequence):
                raise ValueError("attempt record without feedback for every move")

    def clear(self, puzzle_id: str) -> None:
        """Forget saved progress for a puzzle."""
        try:
            self._store.delete(self.key(puzzle_id))
        except OSError as e:
            logger.error(f"Error clearing progress for puzzle {puzzle_id}: {e}")

    def has_seen_rules(self, puzzle_id: str) -> bool:
        """Whether the player has dismissed the rules for this puzzle."""
        try:
            return self._store.get(self.key(puzzle_id) + SEEN_RULES_SUFFIX) == "true"
        except (OSError, ValueError) as e:
            logger.error(f"Error reading rules flag for puzzle {puzzle_id}: {e}")
            return False

    def mark_rules_seen(self, puzzle_id: str) -> None:
        """Remember that the rules were shown for this puzzle."""
        try:
            self._store.set(self.key(puzzle_id) + SEEN_RULES_SUFFIX, "true")
        except OSError as e:
            logger.error(f"Error writing rules flag for puzzle {puzzle_id}: {e}")


# Singleton instance
_session_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """Get the global session store instance."""
    global _session_store
    if _session_store is None:
        settings = get_settings()
        directory = get_storage_dir()
        store = FileStore(directory) if directory else InMemoryStore()
        _session_store = SessionStore(
            store,
            prefix=settings.storage_key_prefix,
            max_attempts=settings.max_attempts,
        )
    return _session_store
