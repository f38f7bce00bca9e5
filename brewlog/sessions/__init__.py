"""Saved brewing sessions."""

from .models import (
    BrewSession,
    CurrentSession,
    LogEntry,
    TimerSnapshot,
    SCHEMA_VERSION,
    dump_sessions,
    load_sessions,
    session_name,
)
from .store import SessionStore, MAX_SESSIONS, STORAGE_KEY

__all__ = [
    "BrewSession",
    "CurrentSession",
    "LogEntry",
    "TimerSnapshot",
    "SessionStore",
    "SCHEMA_VERSION",
    "MAX_SESSIONS",
    "STORAGE_KEY",
    "dump_sessions",
    "load_sessions",
    "session_name",
]
