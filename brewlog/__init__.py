"""BrewLog: brew-day timers, timer alerts and saved brewing sessions."""

__version__ = "0.1.0"
