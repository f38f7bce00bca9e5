"""The brew-day log: brew data, log entries, timers and autosave.

``BrewDayLog`` is the single owner of a ``TimerEngine`` and a
``SessionStore`` for the brew day in progress.  Every edit is followed by
an autosave attempt, which only touches a session the user already saved
explicitly.
"""

from __future__ import annotations

import copy
import logging
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any

from PyQt6.QtCore import QObject

from .audio.alerts import AlertDispatcher
from .sessions.models import BrewSession, CurrentSession, LogEntry, TimerSnapshot
from .sessions.store import SessionStore
from .settings import Settings
from .timer.engine import TimerEngine, remaining_seconds

logger = logging.getLogger(__name__)


def _timestamp_label(moment: datetime | None = None) -> str:
    return (moment or datetime.now()).strftime("%H:%M")


def default_brew_data() -> dict[str, Any]:
    return {
        "brewDate": date.today().isoformat(),
        "beerName": "",
        "batchNo": "",
    }


class BrewDayLog(QObject):
    """Brew data and log entries for one brew day."""

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        engine: TimerEngine | None = None,
        store: SessionStore | None = None,
        dispatcher: AlertDispatcher | None = None,
    ) -> None:
        super().__init__(parent)
        self.engine = engine if engine is not None else TimerEngine(self)
        self.store = store if store is not None else SessionStore(self)
        self.dispatcher = dispatcher
        if dispatcher is not None:
            self.engine.timer_expired.connect(dispatcher.on_expire)

        self._brew_data: dict[str, Any] = default_brew_data()
        self._entries: list[LogEntry] = []
        self.just_saved = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
    ) -> BrewDayLog:
        engine = TimerEngine(tick_interval_ms=settings.tick_interval_ms)
        store = SessionStore(capacity=settings.max_sessions)
        dispatcher = AlertDispatcher(
            sounds_dir=sounds_dir,
            play_count=settings.alert_play_count,
            interval_ms=settings.alert_interval_ms,
            volume=settings.sound_volume,
            enabled=settings.sound_enabled,
        )
        log = cls(parent, engine=engine, store=store, dispatcher=dispatcher)
        for child in (engine, store, dispatcher):
            child.setParent(log)
        return log

    # ── brew data ─────────────────────────────────────────────────────

    @property
    def brew_data(self) -> dict[str, Any]:
        return dict(self._brew_data)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def update_brew_data(self, field: str, value: Any) -> None:
        self._brew_data = {**self._brew_data, field: value}
        self.just_saved = False
        self._autosave()

    # ── log entries ───────────────────────────────────────────────────

    def add_entry(self, text: str) -> LogEntry | None:
        """Append a plain note.  Blank text is ignored."""
        text = text.strip()
        if not text:
            return None
        entry = LogEntry(id=uuid.uuid4().hex, timestamp_label=_timestamp_label(), text=text)
        self._append(entry)
        return entry

    def start_timer(self, duration_minutes: float, text: str = "") -> LogEntry:
        """Start a countdown and log it.  The entry shares the timer's id."""
        timer = self.engine.create(duration_minutes)
        entry = LogEntry(
            id=timer.id,
            timestamp_label=_timestamp_label(),
            text=text.strip() or f"Started {duration_minutes:g} minute timer",
            timer=TimerSnapshot(
                duration_minutes=duration_minutes,
                start_timestamp=timer.start_timestamp,
                is_active=True,
            ),
        )
        self._append(entry)
        return entry

    def remove_entry(self, entry_id: str) -> bool:
        """Delete an entry.  A still-running timer behind it is cancelled
        and will not alert; the engine then forgets it."""
        remaining = [e for e in self._entries if e.id != entry_id]
        if len(remaining) == len(self._entries):
            return False
        self.engine.cancel(entry_id)
        self.engine.forget(entry_id)
        self._entries = remaining
        self.just_saved = False
        self._autosave()
        return True

    def entry_remaining(self, entry: LogEntry, now: int | None = None) -> int | None:
        """Seconds left on a timed entry, re-derived from its snapshot.

        Returns None for untimed entries.  A live timer that was cancelled
        reports the value frozen at cancellation.
        """
        if entry.timer is None:
            return None
        live = self.engine.get(entry.id)
        if live is not None:
            return self.engine.query(live, now)
        now = self.engine.now() if now is None else now
        snap = entry.timer
        return remaining_seconds(
            int(round(snap.duration_minutes * 60)), snap.start_timestamp, now
        )

    # ── sessions ──────────────────────────────────────────────────────

    def current_session(self) -> CurrentSession:
        data = self._brew_data
        return CurrentSession(
            beer_name=data.get("beerName", ""),
            batch_no=data.get("batchNo", ""),
            date=data.get("brewDate") or date.today().isoformat(),
            brew_data=copy.deepcopy(data),
            log_entries=copy.deepcopy(self._entries),
        )

    def save_session(self) -> BrewSession | None:
        saved = self.store.save(self.current_session())
        if saved is not None:
            self.just_saved = True
        return saved

    def load_session(self, session_id: str) -> bool:
        """Replace the current brew data and entries with a saved session."""
        session = self.store.get(session_id)
        if session is None:
            return False
        self._brew_data = {**default_brew_data(), **session.brew_data}
        self._entries = list(session.log_entries)
        self.just_saved = True
        logger.info("Loaded session %r", session.name)
        return True

    def delete_session(self, session_id: str) -> bool:
        return self.store.delete(session_id)

    # ── internal ──────────────────────────────────────────────────────

    def _append(self, entry: LogEntry) -> None:
        self._entries = [*self._entries, entry]
        self.just_saved = False
        self._autosave()

    def _autosave(self) -> None:
        if len(self.store) == 0:
            return
        if self.store.upsert(self.current_session()) is not None:
            self.just_saved = True
