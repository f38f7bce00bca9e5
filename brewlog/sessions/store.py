"""Bounded, newest-first store of saved brewing sessions.

The store keeps at most ``MAX_SESSIONS`` sessions.  ``save`` is the only
way it grows; ``upsert`` (autosave) only ever rewrites a session that is
already there, matched by name and brew date::

    primary    stored.name == current.name and stored.date == current.date
    fallback   stored.date == current.date and stored.name starts with the
               bare beer name (a batch number was added after saving)

The whole list is persisted as one JSON blob after every change.  When
writing fails the in-memory list keeps the change and ``save_failed`` is
emitted; memory and disk stay out of step until the next good write.
"""

from __future__ import annotations

import copy
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Protocol

from PyQt6.QtCore import QObject, pyqtSignal
from sqlalchemy.exc import SQLAlchemyError

from ..database.db import DatabaseBlobStorage
from .models import BrewSession, CurrentSession, dump_sessions, load_sessions

logger = logging.getLogger(__name__)


# ── constants ─────────────────────────────────────────────────────────────

MAX_SESSIONS = 12
STORAGE_KEY = "brewSessions"

MISSING_NAME_MESSAGE = "Please enter a beer name before saving the session."
SAVE_FAILED_MESSAGE = "Failed to save session. Please try again."

_STORAGE_ERRORS = (SQLAlchemyError, OSError, TypeError, ValueError)


class BlobStorage(Protocol):
    def load(self, key: str) -> str | None: ...
    def save(self, key: str, value: str) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── store ─────────────────────────────────────────────────────────────────


class SessionStore(QObject):
    """Owns the saved-session list.  Callers only ever see copies.

    Signals
    -------
    sessions_changed(sessions: list[BrewSession])
    save_failed(message: str)
        User-facing message for a rejected or failed save.
    """

    sessions_changed = pyqtSignal(object)
    save_failed = pyqtSignal(str)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        storage: BlobStorage | None = None,
        capacity: int = MAX_SESSIONS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        super().__init__(parent)
        self._storage = storage if storage is not None else DatabaseBlobStorage()
        self._capacity = capacity
        self._clock = clock
        self._sessions: list[BrewSession] = []
        self.reload()

    # ══════════════════════════════════════════════════════════════════
    #  QUERIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._sessions)

    def list(self) -> list[BrewSession]:
        """Saved sessions, newest first."""
        return copy.deepcopy(self._sessions)

    def get(self, session_id: str) -> BrewSession | None:
        for session in self._sessions:
            if session.id == session_id:
                return copy.deepcopy(session)
        return None

    def find_match(self, current: CurrentSession) -> int | None:
        """Index of the stored session *current* should autosave into."""
        beer_name = current.beer_name
        if not beer_name.strip():
            return None

        name = current.name
        for i, session in enumerate(self._sessions):
            if session.name == name and session.date == current.date:
                return i

        for i, session in enumerate(self._sessions):
            if session.date == current.date and (
                session.name == beer_name or session.name.startswith(beer_name)
            ):
                return i
        return None

    # ══════════════════════════════════════════════════════════════════
    #  MUTATIONS
    # ══════════════════════════════════════════════════════════════════

    def save(self, current: CurrentSession) -> BrewSession | None:
        """Explicitly save *current* as a new session at the front.

        The oldest session is dropped once the store is over capacity.
        """
        if not current.beer_name.strip():
            self.save_failed.emit(MISSING_NAME_MESSAGE)
            return None

        session = BrewSession(
            id=uuid.uuid4().hex,
            name=current.name,
            date=current.date,
            brew_data=copy.deepcopy(current.brew_data),
            log_entries=copy.deepcopy(current.log_entries),
            saved_at=self._clock(),
        )
        self._sessions = [session, *self._sessions][: self._capacity]
        logger.info("Saved session %r (%d stored)", session.name, len(self._sessions))

        if not self._persist("save"):
            return None
        return copy.deepcopy(session)

    def upsert(self, current: CurrentSession) -> BrewSession | None:
        """Autosave *current* into its matching stored session.

        Returns the updated copy, or None when nothing matched (no session
        is created here).
        """
        index = self.find_match(current)
        if index is None:
            return None

        existing = self._sessions[index]
        updated = BrewSession(
            id=existing.id,
            name=current.name,
            date=existing.date,
            brew_data=copy.deepcopy(current.brew_data),
            log_entries=copy.deepcopy(current.log_entries),
            saved_at=self._clock(),
        )
        sessions = list(self._sessions)
        sessions[index] = updated
        self._sessions = sessions
        logger.debug("Autosaved session %r", updated.name)

        if not self._persist("autosave"):
            return None
        return copy.deepcopy(updated)

    def delete(self, session_id: str) -> bool:
        remaining = [s for s in self._sessions if s.id != session_id]
        if len(remaining) == len(self._sessions):
            return False
        self._sessions = remaining
        self._persist("delete")
        return True

    def reload(self) -> None:
        """Replace the in-memory list with what storage holds."""
        self._sessions = self._read()[: self._capacity]
        self.sessions_changed.emit(self.list())

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — persistence
    # ══════════════════════════════════════════════════════════════════

    def _read(self) -> list[BrewSession]:
        try:
            raw = self._storage.load(STORAGE_KEY)
            if raw is None:
                return []
            return load_sessions(json.loads(raw))
        except _STORAGE_ERRORS:
            logger.exception("Failed to load saved sessions")
            return []

    def _persist(self, action: str) -> bool:
        self.sessions_changed.emit(self.list())
        try:
            payload = json.dumps(dump_sessions(self._sessions))
            self._storage.save(STORAGE_KEY, payload)
        except _STORAGE_ERRORS:
            logger.exception("Failed to %s session", action)
            self.save_failed.emit(SAVE_FAILED_MESSAGE)
            return False
        return True
