"""Timer-finished alert: a synthesized "beep-beep" played twice.

The tone is generated with numpy the first time it is needed and cached
as a WAV file, so there is no bundled audio asset.  Playback goes through
``QSoundEffect``; one effect is preloaded and reused, and a fresh effect
is built once per attempt if the preloaded one refuses to play.

Schedule for one expiration (defaults)::

    t=0s   attempt 1
    t=4s   attempt 2
"""

from __future__ import annotations

import io
import logging
import wave
from pathlib import Path
from typing import Any, Callable

import numpy as np

from PyQt6.QtCore import QObject, QTimer, QUrl, pyqtSignal
from PyQt6.QtMultimedia import QSoundEffect

logger = logging.getLogger(__name__)


# ── paths / constants ────────────────────────────────────────────────────

APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "BrewLog"
SOUNDS_DIR = APP_SUPPORT_DIR / "sounds"
ALERT_SOUND = "beep-beep.wav"

SAMPLE_RATE = 44100
ALERT_PLAY_COUNT = 2
ALERT_INTERVAL_MS = 4000
DEFAULT_VOLUME = 70  # 0-100

EffectFactory = Callable[[Path], Any]
Scheduler = Callable[[int, Callable[[], None]], None]


# ═══════════════════════════════════════════════════════════════════════════
#  TONE SYNTHESIS
# ═══════════════════════════════════════════════════════════════════════════


def _envelope(length: int, attack: int, release: int) -> np.ndarray:
    """Linear attack/release ramp with a flat middle (durations in samples)."""
    env = np.ones(length, dtype=np.float64)
    a = min(attack, length)
    if a > 0:
        env[:a] = np.linspace(0.0, 1.0, a)
    r = min(release, length - a)
    if r > 0:
        env[length - r:] = np.linspace(1.0, 0.0, r)
    return env


def _tone(freq: float, duration_s: float, amplitude: float) -> np.ndarray:
    n = int(SAMPLE_RATE * duration_s)
    t = np.arange(n) / SAMPLE_RATE
    return np.sin(2 * np.pi * freq * t) * amplitude


def _wav_bytes(samples: np.ndarray) -> bytes:
    """16-bit mono PCM WAV from a float array in -1..1."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


def generate_beep_beep() -> bytes:
    """Two short 880 Hz beeps, loud enough to hear over a boil."""
    beep = _tone(880.0, 0.18, 0.8)
    beep = beep * _envelope(len(beep), attack=220, release=660)
    gap = np.zeros(int(SAMPLE_RATE * 0.12))
    tail = np.zeros(int(SAMPLE_RATE * 0.1))
    return _wav_bytes(np.concatenate([beep, gap, beep, tail]))


def ensure_alert_sound(sounds_dir: Path | None = None) -> Path:
    """Write the alert WAV to *sounds_dir* unless it is already cached."""
    directory = sounds_dir or SOUNDS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / ALERT_SOUND
    if not path.exists():
        path.write_bytes(generate_beep_beep())
    return path


def qt_effect_factory(path: Path) -> QSoundEffect:
    effect = QSoundEffect()
    effect.setSource(QUrl.fromLocalFile(str(path)))
    return effect


# ═══════════════════════════════════════════════════════════════════════════
#  DISPATCHER
# ═══════════════════════════════════════════════════════════════════════════


class AlertDispatcher(QObject):
    """Plays the alert cue when a timer expires.

    Connect it to the engine::

        engine.timer_expired.connect(dispatcher.on_expire)

    The engine emits ``timer_expired`` at most once per timer, so the
    dispatcher keeps no record of which timers it has already announced.

    Signals
    -------
    alert_played(timer_id: str, attempt: int)
    alert_failed(timer_id: str, attempt: int)
        The preloaded effect and the fallback both failed.
    """

    alert_played = pyqtSignal(str, int)
    alert_failed = pyqtSignal(str, int)

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
        play_count: int = ALERT_PLAY_COUNT,
        interval_ms: int = ALERT_INTERVAL_MS,
        volume: int = DEFAULT_VOLUME,
        enabled: bool = True,
        effect_factory: EffectFactory = qt_effect_factory,
        scheduler: Scheduler = QTimer.singleShot,
    ) -> None:
        super().__init__(parent)
        self._play_count = play_count
        self._interval_ms = interval_ms
        self._volume = max(0, min(volume, 100)) / 100.0
        self._enabled = enabled
        self._effect_factory = effect_factory
        self._schedule = scheduler

        self._sound_path = ensure_alert_sound(sounds_dir)
        self._effect = self._new_effect()
        self._fallback = None

    # ── public API ────────────────────────────────────────────────────

    @property
    def volume(self) -> int:
        return round(self._volume * 100)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def sound_path(self) -> Path:
        return self._sound_path

    def set_volume(self, level: int) -> None:
        """Set volume (0-100)."""
        self._volume = max(0, min(level, 100)) / 100.0
        self._effect.setVolume(self._volume)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def on_expire(self, timer_id: str) -> None:
        """Schedule the alert attempts for *timer_id*.  Returns immediately."""
        if not self._enabled:
            logger.debug("Sound disabled; skipping alert for timer %s", timer_id)
            return
        for attempt in range(self._play_count):
            self._schedule(
                attempt * self._interval_ms,
                lambda attempt=attempt: self.play_attempt(timer_id, attempt),
            )

    def play_attempt(self, timer_id: str, attempt: int) -> bool:
        """Rewind and play the preloaded effect, falling back once to a
        fresh one.  Returns True if either played."""
        if self._try_play(self._effect, rewind=True):
            self.alert_played.emit(timer_id, attempt)
            return True

        logger.info("Preloaded alert sound failed; trying a fresh instance")
        # Keep a reference so the effect is not collected mid-playback
        self._fallback = fallback = self._new_effect()
        if self._try_play(fallback, rewind=False):
            self.alert_played.emit(timer_id, attempt)
            return True

        logger.warning(
            "Alert sound for timer %s failed (attempt %d)", timer_id, attempt + 1
        )
        self.alert_failed.emit(timer_id, attempt)
        return False

    # ── internal ──────────────────────────────────────────────────────

    def _new_effect(self):
        effect = self._effect_factory(self._sound_path)
        effect.setVolume(self._volume)
        return effect

    @staticmethod
    def _try_play(effect, *, rewind: bool) -> bool:
        try:
            if effect.status() == QSoundEffect.Status.Error:
                return False
            if rewind:
                effect.stop()
            effect.play()
        except Exception:
            logger.exception("Audio playback raised")
            return False
        return effect.status() != QSoundEffect.Status.Error
