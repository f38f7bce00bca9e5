"""Tests for the brew-day log host.

Covers: timed entries and their snapshots, entry removal cancelling
timers, autosave after edits, save/load/delete of sessions, and
construction from settings.
"""

from datetime import date

from brewlog.log import BrewDayLog
from brewlog.settings import Settings
from brewlog.timer.engine import TimerEngine

from helpers import SignalCollector, expire


def _name(log, beer="IPA", batch="", date="2024-01-01"):
    log.update_brew_data("beerName", beer)
    log.update_brew_data("batchNo", batch)
    log.update_brew_data("brewDate", date)


# ═══════════════════════════════════════════════════════════════════════════
#  LOG ENTRIES
# ═══════════════════════════════════════════════════════════════════════════


class TestEntries:

    def test_add_entry(self, brew_log):
        entry = brew_log.add_entry("  Mash in at 152F  ")
        assert entry.text == "Mash in at 152F"
        assert entry.timer is None
        assert len(entry.timestamp_label) == 5  # HH:MM
        assert brew_log.entries == [entry]

    def test_blank_entry_ignored(self, brew_log):
        assert brew_log.add_entry("   ") is None
        assert brew_log.entries == []

    def test_start_timer_links_entry_and_timer(self, brew_log, clock):
        clock.advance(5_000)
        entry = brew_log.start_timer(60, "Boil")
        timer = brew_log.engine.get(entry.id)

        assert timer is not None
        assert timer.duration_seconds == 3600
        assert entry.text == "Boil"
        assert entry.timer.duration_minutes == 60
        assert entry.timer.start_timestamp == timer.start_timestamp == 5_000
        assert entry.timer.is_active is True

    def test_default_timer_text(self, brew_log):
        assert brew_log.start_timer(15).text == "Started 15 minute timer"
        assert brew_log.start_timer(0.5).text == "Started 0.5 minute timer"

    def test_snapshot_stays_frozen(self, brew_log):
        entry = brew_log.start_timer(1)
        expire(brew_log.engine, brew_log.engine.get(entry.id))
        assert brew_log.entries[0].timer.is_active is True
        assert brew_log.engine.get(entry.id).is_active is False

    def test_remaining_rederived_from_clock(self, brew_log, clock):
        entry = brew_log.start_timer(1)
        clock.advance(42_000)
        assert brew_log.entry_remaining(entry) == 18
        assert brew_log.entry_remaining(entry, 61_000) == 0

    def test_remaining_from_snapshot_without_live_timer(self, brew_log, store, clock):
        """A loaded session's timers are re-derived from their start time."""
        _name(brew_log)
        entry = brew_log.start_timer(2)
        saved = brew_log.save_session()

        other = BrewDayLog(engine=TimerEngine(clock=clock), store=store)
        other.load_session(saved.id)
        clock.advance(30_000)
        assert other.entry_remaining(other.entries[0]) == 90
        assert other.entry_remaining(entry, 500_000) == 0

    def test_remaining_for_plain_entry_is_none(self, brew_log):
        assert brew_log.entry_remaining(brew_log.add_entry("note")) is None

    def test_remove_entry_cancels_timer(self, brew_log, scheduler):
        cancelled = SignalCollector()
        brew_log.engine.timer_cancelled.connect(cancelled)
        entry = brew_log.start_timer(1)
        assert brew_log.remove_entry(entry.id) is True
        assert brew_log.entries == []
        assert cancelled.items == [entry.id]

        brew_log.engine.tick(120_000)
        assert scheduler.calls == []

    def test_remove_entry_drops_timer_from_engine(self, brew_log):
        kept = brew_log.start_timer(5)
        gone = brew_log.start_timer(1)
        expire(brew_log.engine, brew_log.engine.get(gone.id))

        brew_log.remove_entry(gone.id)
        assert brew_log.engine.get(gone.id) is None
        assert [t.id for t in brew_log.engine.timers] == [kept.id]
        assert brew_log.engine.has_alerted(gone.id)

    def test_remove_missing_entry(self, brew_log):
        assert brew_log.remove_entry("nope") is False

    def test_expiry_plays_alert(self, brew_log, scheduler):
        entry = brew_log.start_timer(1)
        expire(brew_log.engine, brew_log.engine.get(entry.id))
        assert scheduler.delays == [0, 4000]


# ═══════════════════════════════════════════════════════════════════════════
#  SESSIONS / AUTOSAVE
# ═══════════════════════════════════════════════════════════════════════════


class TestSessions:

    def test_save_session(self, brew_log):
        _name(brew_log, batch="3")
        brew_log.add_entry("Dough in")
        saved = brew_log.save_session()
        assert saved.name == "IPA - Batch 3"
        assert saved.date == "2024-01-01"
        assert [e.text for e in saved.log_entries] == ["Dough in"]
        assert brew_log.just_saved is True

    def test_blank_brew_date_saves_as_today(self, brew_log, store):
        _name(brew_log, date="")
        saved = brew_log.save_session()
        assert saved.date == date.today().isoformat()

        brew_log.add_entry("Mash in")
        stored = store.list()
        assert len(stored) == 1
        assert [e.text for e in stored[0].log_entries] == ["Mash in"]

    def test_save_without_name_fails(self, brew_log, store):
        c = SignalCollector()
        store.save_failed.connect(c)
        assert brew_log.save_session() is None
        assert len(c) == 1
        assert brew_log.just_saved is False

    def test_no_autosave_before_first_save(self, brew_log, store):
        _name(brew_log)
        brew_log.add_entry("note")
        assert len(store) == 0

    def test_entries_autosave_into_saved_session(self, brew_log, store):
        _name(brew_log)
        brew_log.save_session()
        brew_log.add_entry("Vorlauf")
        brew_log.start_timer(60, "Boil")

        stored = store.list()
        assert len(stored) == 1
        assert [e.text for e in stored[0].log_entries] == ["Vorlauf", "Boil"]
        assert brew_log.just_saved is True

    def test_adding_batch_number_keeps_session(self, brew_log, store):
        _name(brew_log)
        saved = brew_log.save_session()
        brew_log.update_brew_data("batchNo", "7")

        stored = store.list()
        assert len(stored) == 1
        assert stored[0].id == saved.id
        assert stored[0].name == "IPA - Batch 7"

    def test_removal_autosaves(self, brew_log, store):
        _name(brew_log)
        entry = brew_log.add_entry("oops")
        brew_log.save_session()
        brew_log.remove_entry(entry.id)
        assert store.list()[0].log_entries == []

    def test_load_session_replaces_state(self, brew_log):
        _name(brew_log, beer="Stout")
        brew_log.add_entry("roast")
        saved = brew_log.save_session()

        _name(brew_log, beer="Lager", date="2024-02-02")
        brew_log.add_entry("lager note")

        assert brew_log.load_session(saved.id) is True
        assert brew_log.brew_data["beerName"] == "Stout"
        assert [e.text for e in brew_log.entries] == ["roast"]
        assert brew_log.just_saved is True

    def test_load_missing_session(self, brew_log):
        assert brew_log.load_session("missing") is False

    def test_delete_session(self, brew_log, store):
        _name(brew_log)
        saved = brew_log.save_session()
        assert brew_log.delete_session(saved.id) is True
        assert len(store) == 0

    def test_edits_clear_just_saved_without_match(self, brew_log):
        _name(brew_log)
        brew_log.save_session()
        brew_log.update_brew_data("brewDate", "2030-01-01")
        assert brew_log.just_saved is False


# ═══════════════════════════════════════════════════════════════════════════
#  CONSTRUCTION
# ═══════════════════════════════════════════════════════════════════════════


class TestFromSettings:

    def test_components_follow_settings(self, qapp, tmp_path):
        settings = Settings(
            sound_volume=40,
            sound_enabled=False,
            max_sessions=5,
            tick_interval_ms=500,
        )
        log = BrewDayLog.from_settings(settings, sounds_dir=tmp_path)

        assert log.store.capacity == 5
        assert log.dispatcher.volume == 40
        assert log.dispatcher.enabled is False
        assert log.dispatcher.sound_path.parent == tmp_path
        assert log.engine._qt_timer.interval() == 500
        assert log.engine.parent() is log
