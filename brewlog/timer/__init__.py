"""Timer package."""

from .engine import (
    TimerEngine,
    CountdownTimer,
    TICK_INTERVAL_MS,
    format_time,
    now_ms,
    remaining_seconds,
    status_text,
)

__all__ = [
    "TimerEngine",
    "CountdownTimer",
    "TICK_INTERVAL_MS",
    "format_time",
    "now_ms",
    "remaining_seconds",
    "status_text",
]
