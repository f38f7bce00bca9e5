"""Brew-day log entries and saved brewing sessions.

The persisted form keeps the camelCase keys the web version of the brew
log wrote to local storage, so older exports load unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


SCHEMA_VERSION = 1


# ── log entries ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TimerSnapshot:
    """Starting parameters of a timer, frozen when the entry is created."""

    duration_minutes: float
    start_timestamp: int
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "duration": self.duration_minutes,
            "startTime": self.start_timestamp,
            "isActive": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerSnapshot:
        return cls(
            duration_minutes=data["duration"],
            start_timestamp=int(data["startTime"]),
            is_active=bool(data.get("isActive", True)),
        )


@dataclass
class LogEntry:
    id: str
    timestamp_label: str
    text: str
    timer: TimerSnapshot | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp_label,
            "text": self.text,
            "timer": self.timer.to_dict() if self.timer else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogEntry:
        timer = data.get("timer")
        return cls(
            id=str(data["id"]),
            timestamp_label=data.get("timestamp", ""),
            text=data.get("text", ""),
            timer=TimerSnapshot.from_dict(timer) if timer else None,
        )


# ── sessions ──────────────────────────────────────────────────────────────


def session_name(beer_name: str, batch_no: str = "") -> str:
    """``"IPA"`` or ``"IPA - Batch 7"`` when a batch number is given."""
    if batch_no.strip():
        return f"{beer_name} - Batch {batch_no}"
    return beer_name


@dataclass
class CurrentSession:
    """The in-progress brew day as handed to the store for saving."""

    beer_name: str
    date: str
    batch_no: str = ""
    brew_data: dict[str, Any] = field(default_factory=dict)
    log_entries: list[LogEntry] = field(default_factory=list)

    @property
    def name(self) -> str:
        return session_name(self.beer_name, self.batch_no)


@dataclass
class BrewSession:
    id: str
    name: str
    date: str
    brew_data: dict[str, Any]
    log_entries: list[LogEntry]
    saved_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date,
            "brewData": self.brew_data,
            "logEntries": [e.to_dict() for e in self.log_entries],
            "savedAt": self.saved_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BrewSession:
        saved_at = datetime.fromisoformat(data["savedAt"].replace("Z", "+00:00"))
        if saved_at.tzinfo is None:
            saved_at = saved_at.replace(tzinfo=timezone.utc)
        return cls(
            id=str(data["id"]),
            name=data["name"],
            date=data["date"],
            brew_data=dict(data.get("brewData") or {}),
            log_entries=[LogEntry.from_dict(e) for e in data.get("logEntries", [])],
            saved_at=saved_at,
        )


# ── blob (de)serialization ────────────────────────────────────────────────


def dump_sessions(sessions: list[BrewSession]) -> dict[str, Any]:
    """Build the versioned blob written under the storage key."""
    return {
        "version": SCHEMA_VERSION,
        "sessions": [s.to_dict() for s in sessions],
    }


def load_sessions(blob: Any) -> list[BrewSession]:
    """Parse a stored blob.

    Accepts the versioned ``{"version": n, "sessions": [...]}`` form and the
    bare list written before versioning.  Raises ValueError for anything
    else, including a version newer than this code understands.
    """
    if isinstance(blob, list):
        records = blob
    elif isinstance(blob, dict):
        version = blob.get("version")
        if not isinstance(version, int) or version > SCHEMA_VERSION:
            raise ValueError(f"Unsupported session blob version: {version!r}")
        records = blob.get("sessions", [])
    else:
        raise ValueError(f"Unrecognised session blob: {type(blob).__name__}")

    try:
        return [BrewSession.from_dict(r) for r in records]
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Malformed session record: {exc}") from exc
