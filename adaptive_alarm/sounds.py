from __future__ import annotations

import logging
import wave
from pathlib import Path
from threading import Event, Thread
from typing import Optional

import numpy as np

try:
    import winsound
except ImportError:  # pragma: no cover - non-Windows fallback
    winsound = None  # type: ignore

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050


def ensure_alarm_sound(path: Path, beeps: int = 3, beep_seconds: float = 0.25, freq: float = 880.0) -> None:
    """Write a short beep-beep-beep WAV to ``path`` unless one already exists."""
    if path.exists():
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    t = np.arange(int(beep_seconds * SAMPLE_RATE)) / SAMPLE_RATE
    tone = 0.4 * np.sin(2 * np.pi * freq * t)
    gap = np.zeros(int(0.15 * SAMPLE_RATE))
    signal = np.concatenate([np.concatenate([tone, gap]) for _ in range(beeps)])
    frames = (signal * 32767).astype("<i2").tobytes()
    with wave.open(str(path), "w") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(frames)
    logger.info("Generated default alarm sound at %s", path)


class AlarmSoundPlayer:
    """Loops the alarm sound while an episode is ringing."""

    def __init__(self, sound_path: Path):
        self.sound_path = Path(sound_path)
        self._stop_event = Event()
        self._beep_thread: Optional[Thread] = None
        self.playing = False

    def start_loop(self) -> None:
        if self.playing:
            return
        self.playing = True
        self._stop_event.clear()
        if winsound:
            try:
                ensure_alarm_sound(self.sound_path)
                winsound.PlaySound(
                    str(self.sound_path),
                    winsound.SND_FILENAME | winsound.SND_LOOP | winsound.SND_ASYNC,
                )
                return
            except (OSError, RuntimeError):
                logger.warning("winsound.PlaySound failed, falling back to beep loop")

        if self._beep_thread and self._beep_thread.is_alive():
            return
        self._beep_thread = Thread(target=self._beep_loop, name="alarm-beep", daemon=True)
        self._beep_thread.start()

    def stop_loop(self) -> None:
        if not self.playing:
            return
        self.playing = False
        self._stop_event.set()
        if winsound:
            try:
                winsound.PlaySound(None, winsound.SND_PURGE)
            except RuntimeError:
                logger.debug("winsound.PlaySound purge failed")

    def _beep_loop(self) -> None:  # pragma: no cover - timing loop
        while not self._stop_event.is_set():
            if winsound:
                try:
                    winsound.Beep(880, 250)
                except RuntimeError:
                    logger.debug("winsound.Beep failed inside loop")
            else:
                logger.info("Alarm ringing...")
            self._stop_event.wait(0.75)
