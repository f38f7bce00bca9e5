"""Countdown timers for the brew-day log.

Every timer is anchored to the wall clock: ``remaining_seconds`` is always
recomputed from ``start_timestamp`` and the current time, never decremented
per tick.  A paused event loop (laptop lid closed, busy UI thread) therefore
costs only detection latency, not accuracy.

Lifecycle
---------
created   ``is_active`` True, counting down.
expired   ``is_active`` False, ``finish_timestamp`` set, ``timer_expired``
          emitted exactly once.
cancelled ``is_active`` False, ``cancelled`` True, no alert.

Finished timers stay in the collection (their finish time is still
displayed) until ``forget`` drops them.  Forgotten ids remain in the
alerted set for the engine's lifetime.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

logger = logging.getLogger(__name__)


# ── constants ─────────────────────────────────────────────────────────────

TICK_INTERVAL_MS = 1000
DEBUG_WINDOW_SECONDS = 3  # log every tick for timers this close to zero


# ── helpers ───────────────────────────────────────────────────────────────


def now_ms() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def remaining_seconds(duration_seconds: int, start_timestamp: int, now: int) -> int:
    """Seconds left on a timer, derived purely from the wall clock."""
    elapsed = (now - start_timestamp) // 1000
    return max(0, min(duration_seconds, duration_seconds - elapsed))


def format_time(seconds: int) -> str:
    """``m:ss`` display, e.g. ``65 -> "1:05"``."""
    mins, secs = divmod(max(0, seconds), 60)
    return f"{mins}:{secs:02d}"


@dataclass(frozen=True)
class CountdownTimer:
    id: str
    duration_seconds: int
    remaining_seconds: int
    is_active: bool
    start_timestamp: int
    finish_timestamp: int | None = None
    cancelled: bool = False


def status_text(timer: CountdownTimer) -> str:
    """Human-readable status line shown next to a timed log entry."""
    if timer.is_active:
        return f"{format_time(timer.remaining_seconds)} remaining"
    if timer.finish_timestamp is not None:
        finished = datetime.fromtimestamp(timer.finish_timestamp / 1000)
        return f"Timer finished at {finished.strftime('%H:%M:%S')}"
    return "Timer finished"


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine(QObject):
    """Owns the set of live countdown timers and advances them on a 1 Hz
    QTimer.

    Signals
    -------
    timer_created(timer: CountdownTimer)
    timers_updated(timers: list[CountdownTimer])
        Emitted after every tick with the full, freshly committed collection.
    timer_expired(timer_id: str)
        Emitted exactly once per timer, after its expiration is committed.
    timer_cancelled(timer_id: str)
    """

    timer_created = pyqtSignal(object)
    timers_updated = pyqtSignal(object)
    timer_expired = pyqtSignal(str)
    timer_cancelled = pyqtSignal(str)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        tick_interval_ms: int = TICK_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._clock = clock
        self._timers: dict[str, CountdownTimer] = {}
        # ids that have already alerted (or been cancelled); never shrinks
        self._alerted: set[str] = set()

        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(tick_interval_ms)
        self._qt_timer.timeout.connect(self._on_tick)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def timers(self) -> list[CountdownTimer]:
        """All timers in creation order."""
        return list(self._timers.values())

    @property
    def active_timers(self) -> list[CountdownTimer]:
        return [t for t in self._timers.values() if t.is_active]

    @property
    def is_running(self) -> bool:
        """True while the 1 s driver is scheduled."""
        return self._qt_timer.isActive()

    def now(self) -> int:
        """Current time from the engine's clock, in ms."""
        return self._clock()

    def get(self, timer_id: str) -> CountdownTimer | None:
        return self._timers.get(timer_id)

    def has_alerted(self, timer_id: str) -> bool:
        return timer_id in self._alerted

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def create(self, duration_minutes: float, now: int | None = None) -> CountdownTimer:
        """Start a new countdown of *duration_minutes*.

        Callers validate that the duration is positive.
        """
        start = self._clock() if now is None else now
        duration = int(round(duration_minutes * 60))
        timer = CountdownTimer(
            id=uuid.uuid4().hex,
            duration_seconds=duration,
            remaining_seconds=duration,
            is_active=True,
            start_timestamp=start,
        )
        self._timers = {**self._timers, timer.id: timer}
        logger.debug("Timer %s created: %ss", timer.id, duration)
        self.timer_created.emit(timer)

        if not self._qt_timer.isActive():
            self._qt_timer.start()
        return timer

    def cancel(self, timer_id: str) -> bool:
        """Stop an active timer without alerting.  Returns False if the
        timer is unknown or already finished."""
        timer = self._timers.get(timer_id)
        if timer is None or not timer.is_active:
            return False

        self._alerted.add(timer_id)
        self._timers = {
            **self._timers,
            timer_id: replace(
                timer,
                remaining_seconds=self.query(timer),
                is_active=False,
                cancelled=True,
            ),
        }
        logger.info("Timer %s cancelled", timer_id)
        self.timer_cancelled.emit(timer_id)
        self._stop_if_idle()
        return True

    def forget(self, timer_id: str) -> bool:
        """Drop a finished or cancelled timer from the collection.

        Active timers are kept; cancel them first.
        """
        timer = self._timers.get(timer_id)
        if timer is None or timer.is_active:
            return False
        self._timers = {k: v for k, v in self._timers.items() if k != timer_id}
        return True

    def query(self, timer: CountdownTimer, now: int | None = None) -> int:
        """Remaining seconds for *timer* at *now*, without side effects.

        Returns exactly what the next ``tick`` at the same instant would
        store.
        """
        if not timer.is_active:
            return timer.remaining_seconds
        now = self._clock() if now is None else now
        return remaining_seconds(timer.duration_seconds, timer.start_timestamp, now)

    def tick(self, now: int | None = None) -> list[str]:
        """Recompute every active timer against one *now*.

        Returns the ids that expired on this tick.
        """
        now = self._clock() if now is None else now
        updated: dict[str, CountdownTimer] = {}
        expired: list[str] = []

        for timer_id, timer in self._timers.items():
            if not timer.is_active:
                updated[timer_id] = timer
                continue

            new_remaining = remaining_seconds(
                timer.duration_seconds, timer.start_timestamp, now
            )
            if timer.remaining_seconds <= DEBUG_WINDOW_SECONDS:
                logger.debug(
                    "Timer %s: remaining=%s new_remaining=%s",
                    timer_id, timer.remaining_seconds, new_remaining,
                )

            if new_remaining > 0:
                updated[timer_id] = replace(timer, remaining_seconds=new_remaining)
            elif timer.remaining_seconds > 0 and timer_id not in self._alerted:
                self._alerted.add(timer_id)
                expired.append(timer_id)
                updated[timer_id] = replace(
                    timer,
                    remaining_seconds=0,
                    is_active=False,
                    finish_timestamp=now,
                )
            else:
                # Reached zero but already handled once
                finished = timer.finish_timestamp
                updated[timer_id] = replace(
                    timer,
                    remaining_seconds=0,
                    is_active=False,
                    finish_timestamp=now if finished is None else finished,
                )

        self._timers = updated
        self.timers_updated.emit(list(updated.values()))

        for timer_id in expired:
            logger.info("Timer %s finished", timer_id)
            self.timer_expired.emit(timer_id)

        self._stop_if_idle()
        return expired

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self) -> None:
        self.tick()

    def _stop_if_idle(self) -> None:
        if not any(t.is_active for t in self._timers.values()):
            self._qt_timer.stop()
