# audio.py (synthesised sound effects)
import logging
import os

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import numpy as np
import pygame

from config import SOUNDS

logger = logging.getLogger(__name__)


def make_beep_samples(frequency: float, duration: float, volume: float = 0.5,
                      sample_rate: int = 44100) -> np.ndarray:
    """
    Mono int16 sine beep whose gain ramps exponentially from volume * 0.3
    down to 0.01 over the duration.
    """
    n = max(1, int(sample_rate * duration))
    if volume <= 0:
        return np.zeros(n, dtype=np.int16)
    t = np.arange(n) / sample_rate
    start = volume * 0.3
    gain = start * (0.01 / start) ** (t / duration)
    wave = np.sin(2 * np.pi * frequency * t) * gain
    return (np.clip(wave, -1.0, 1.0) * 32767).astype(np.int16)


class NullAudio:
    """Silent stand-in used headless and in tests."""

    enabled = False

    def set_enabled(self, enabled: bool):
        pass

    def play(self, name: str):
        pass


class BeepAudio:
    def __init__(self, enabled: bool = True, sfx_volume: float = 0.5):
        self.enabled = enabled
        self.sfx_volume = sfx_volume
        self._sounds = {}
        self._ready = False

    @classmethod
    def from_settings(cls, settings: dict) -> "BeepAudio":
        return cls(enabled=settings.get("sound_enabled", True),
                   sfx_volume=settings.get("sfx_volume", 0.5))

    def init(self):
        if self._ready:
            return
        try:
            if not pygame.mixer.get_init():
                pygame.mixer.init()
            sample_rate, _, channels = pygame.mixer.get_init()
            for name, (frequency, duration) in SOUNDS.items():
                samples = make_beep_samples(frequency, duration, self.sfx_volume, sample_rate)
                if channels > 1:
                    samples = np.repeat(samples[:, None], channels, axis=1)
                self._sounds[name] = pygame.sndarray.make_sound(np.ascontiguousarray(samples))
            self._ready = True
        except pygame.error as e:
            logger.warning("Audio unavailable: %s", e)

    def set_enabled(self, enabled: bool):
        self.enabled = enabled

    def play(self, name: str):
        if not self.enabled or not self._ready:
            return
        sound = self._sounds.get(name)
        if sound is None:
            logger.debug("no sound registered for %r", name)
            return
        sound.play()
