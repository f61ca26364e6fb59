from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import numpy as np
import pygame

from utils import clamp_float, clamp_int

logger = logging.getLogger(__name__)

# cue -> (frequency Hz, duration ms, waveform)
CUES: Dict[str, Tuple[int, int, str]] = {
    "key": (880, 300, "sine"),
    "exit": (660, 500, "triangle"),
    "immunity": (800, 200, "triangle"),
    "trap": (200, 400, "sawtooth"),
    "trigger": (1200, 200, "square"),
    "powerup": (1000, 400, "triangle"),
    "portal": (1200, 250, "square"),
    "teleport": (900, 80, "triangle"),
    "regenerate": (440, 100, "sine"),
    "game_over": (150, 800, "sawtooth"),
}

WAVEFORMS = ("sine", "square", "triangle", "sawtooth")


def _waveform(waveform: str, phase: np.ndarray) -> np.ndarray:
    """Samples in [-1, 1] for phases in [0, 1)."""
    if waveform == "square":
        return np.sign(0.5 - phase)
    if waveform == "triangle":
        return 1.0 - 4.0 * np.abs(phase - 0.5)
    if waveform == "sawtooth":
        return 2.0 * phase - 1.0
    return np.sin(2.0 * np.pi * phase)


def synth_tone(
    frequency: float,
    duration_ms: int,
    waveform: str = "sine",
    sample_rate: int = 22050,
    volume: float = 0.1,
    channels: int = 1,
) -> np.ndarray:
    """Signed 16-bit samples for a short tone with an exponential fade to 10%.

    Mono output is 1-D; for more channels the wave is repeated per column, the
    layout pygame.sndarray.make_sound expects.
    """
    n = max(1, int(sample_rate * duration_ms / 1000))
    t = np.linspace(0, duration_ms / 1000, n, False)
    phase = (frequency * t) % 1.0
    envelope = np.exp(np.linspace(0.0, np.log(0.1), n))
    wave = _waveform(waveform, phase) * envelope * clamp_float(volume, 0.0, 1.0)
    samples = (np.clip(wave, -1.0, 1.0) * 32767).astype(np.int16)
    if channels <= 1:
        return samples
    return np.column_stack([samples] * channels)


class SoundController:
    """Tone-based sound effects on top of pygame.mixer."""

    def __init__(self, enabled: bool = True, sample_rate: int = 22050, volume: float = 0.1) -> None:
        self.sample_rate = clamp_int(int(sample_rate), 8000, 96000)
        self.volume = clamp_float(float(volume), 0.0, 1.0)
        self.channels = 1
        self._cache: Dict[Tuple[int, int, str], pygame.mixer.Sound] = {}
        self.available = self._init_mixer()
        self.enabled = enabled and self.available

    def _init_mixer(self) -> bool:
        """Initialize pygame mixer; return False if unavailable."""
        try:
            if pygame.mixer.get_init():
                pygame.mixer.quit()
            pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=1)
        except pygame.error as e:
            logger.warning("pygame mixer disabled: %s", e)
            return False
        init = pygame.mixer.get_init()
        if init:
            # the platform may pick different values
            self.sample_rate, _, self.channels = init
        return True

    def toggle(self) -> bool:
        self.enabled = self.available and not self.enabled
        logger.info("sound %s", "on" if self.enabled else "off")
        return self.enabled

    def _sound_for(self, frequency: int, duration_ms: int, waveform: str) -> pygame.mixer.Sound:
        key = (frequency, duration_ms, waveform)
        sound = self._cache.get(key)
        if sound is None:
            pcm = synth_tone(
                frequency,
                duration_ms,
                waveform,
                sample_rate=self.sample_rate,
                volume=self.volume,
                channels=self.channels,
            )
            sound = pygame.sndarray.make_sound(pcm)
            self._cache[key] = sound
        return sound

    def play_tone(self, frequency: int, duration_ms: int = 200, waveform: str = "sine") -> None:
        if not self.enabled:
            return
        if waveform not in WAVEFORMS:
            waveform = "sine"
        try:
            self._sound_for(frequency, duration_ms, waveform).play()
        except pygame.error as e:
            logger.warning("cannot play tone %sHz: %s", frequency, e)

    def play_cue(self, name: str) -> None:
        spec: Optional[Tuple[int, int, str]] = CUES.get(name)
        if spec is None:
            logger.debug("no sound for cue %r", name)
            return
        self.play_tone(*spec)
