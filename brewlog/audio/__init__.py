"""Audio package."""

from .alerts import (
    AlertDispatcher,
    ALERT_INTERVAL_MS,
    ALERT_PLAY_COUNT,
    ensure_alert_sound,
    generate_beep_beep,
)

__all__ = [
    "AlertDispatcher",
    "ALERT_INTERVAL_MS",
    "ALERT_PLAY_COUNT",
    "ensure_alert_sound",
    "generate_beep_beep",
]
