"""Shared pytest fixtures for BrewLog tests."""

import sys
import pytest

from PyQt6.QtWidgets import QApplication

from brewlog.audio.alerts import AlertDispatcher
from brewlog.database.db import configure_engine, init_db
from brewlog.log import BrewDayLog
from brewlog.sessions.store import SessionStore
from brewlog.timer.engine import TimerEngine

from helpers import FakeEffect, ManualClock, RecordingScheduler


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def clock():
    """Wall clock frozen at t=0 ms; advance with ``clock.advance(ms)``."""
    return ManualClock()


@pytest.fixture
def engine(qapp, clock):
    """Fresh TimerEngine reading the manual clock."""
    return TimerEngine(parent=None, clock=clock)


@pytest.fixture
def scheduler():
    return RecordingScheduler()


@pytest.fixture
def effects():
    """Every FakeEffect the dispatcher builds, in creation order."""
    return []


@pytest.fixture
def dispatcher(qapp, tmp_path, scheduler, effects):
    """AlertDispatcher with fake audio and a recording scheduler."""

    def factory(path):
        effect = FakeEffect(path)
        effects.append(effect)
        return effect

    return AlertDispatcher(
        parent=None,
        sounds_dir=tmp_path,
        effect_factory=factory,
        scheduler=scheduler,
    )


@pytest.fixture
def store(qapp):
    """SessionStore backed by the in-memory database."""
    return SessionStore(parent=None)


@pytest.fixture
def brew_log(engine, store, dispatcher):
    return BrewDayLog(parent=None, engine=engine, store=store, dispatcher=dispatcher)
