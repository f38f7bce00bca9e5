"""Shared test helpers for BrewLog."""

from PyQt6.QtMultimedia import QSoundEffect


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class ManualClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 0):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class RecordingScheduler:
    """Stands in for ``QTimer.singleShot``; run the callbacks by hand."""

    def __init__(self):
        self.calls: list = []

    def __call__(self, delay_ms, callback):
        self.calls.append((delay_ms, callback))

    @property
    def delays(self) -> list:
        return [delay for delay, _ in self.calls]

    def run_all(self):
        calls, self.calls = self.calls, []
        for _, callback in calls:
            callback()


class FakeEffect:
    """Duck-typed QSoundEffect that records calls instead of making noise."""

    def __init__(self, path, *, fail: bool = False, raises: bool = False):
        self.path = path
        self.fail = fail
        self.raises = raises
        self.volume = None
        self.plays = 0
        self.stops = 0

    def setVolume(self, volume):
        self.volume = volume

    def status(self):
        if self.fail:
            return QSoundEffect.Status.Error
        return QSoundEffect.Status.Ready

    def stop(self):
        self.stops += 1

    def play(self):
        if self.raises:
            raise RuntimeError("playback rejected")
        self.plays += 1


def expire(engine, timer, extra_ms: int = 1000) -> list:
    """Tick *engine* just past *timer*'s end."""
    return engine.tick(timer.start_timestamp + timer.duration_seconds * 1000 + extra_ms)
