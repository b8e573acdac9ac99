# note_detection/stabilizer.py
from collections import deque
from enum import Enum
from typing import Optional

from Core.config import (
    HISTORY_SIZE_LOW,
    HISTORY_SIZE_MID,
    HISTORY_SIZE_HIGH,
    STABILITY_FRAMES,
    SUSTAINED_PITCH_THRESHOLD,
    WHOLE_TONE_RATIO,
)


class StabilizerState(Enum):
    IDLE = "idle"
    GATHERING = "gathering"
    LOCKED = "locked"


def history_capacity(freq: float) -> int:
    """Low notes complete fewer periods per frame, so they get a longer median window."""
    if freq < 100:
        return HISTORY_SIZE_LOW
    if freq < 200:
        return HISTORY_SIZE_MID
    return HISTORY_SIZE_HIGH


def median(values) -> float:
    """sorted(values)[len // 2]; for even lengths that is the upper of the two middle members."""
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def pitch_ratio(a: float, b: float) -> float:
    return max(a, b) / min(a, b)


class PitchStabilizer:
    """
    Turns noisy per-frame estimates into a pitch a display can hold on to.

    Two stages:
      - moving median over a short history whose length depends on the band
      - sustain gate: a new pitch is accepted only once STABILITY_FRAMES
        consecutive medians agree to within a whole tone, and a jump of a
        whole tone or more away from the held pitch must stay stable for a
        further STABILITY_FRAMES cycles before it replaces it.

    A silent frame (None) clears the sustain buffer but keeps the held pitch.
    """

    def __init__(self):
        self.pitch_history = []
        self.sustain_buffer = deque(maxlen=STABILITY_FRAMES)
        self.stable_pitch = None
        self._stable_run = 0

    @property
    def state(self) -> StabilizerState:
        if len(self.sustain_buffer) >= SUSTAINED_PITCH_THRESHOLD:
            return StabilizerState.LOCKED
        if self.sustain_buffer or self.stable_pitch is not None:
            return StabilizerState.GATHERING
        return StabilizerState.IDLE

    def reset(self):
        self.pitch_history.clear()
        self.sustain_buffer.clear()
        self.stable_pitch = None
        self._stable_run = 0

    # ------------------------------------------------------------------
    def smooth(self, freq: float) -> float:
        """Push a raw estimate into the history and return its median."""
        self.pitch_history.append(freq)
        capacity = history_capacity(freq)
        while len(self.pitch_history) > capacity:
            self.pitch_history.pop(0)
        return median(self.pitch_history)

    def update(self, raw_freq: Optional[float]) -> Optional[float]:
        """Feed one cycle's raw estimate; returns the held pitch (None until the first lock)."""
        if raw_freq is None:
            self.sustain_buffer.clear()
            self._stable_run = 0
            return self.stable_pitch

        self.sustain_buffer.append(self.smooth(raw_freq))
        if len(self.sustain_buffer) < SUSTAINED_PITCH_THRESHOLD:
            return self.stable_pitch

        candidate = median(self.sustain_buffer)
        if any(pitch_ratio(f, candidate) >= WHOLE_TONE_RATIO for f in self.sustain_buffer):
            self._stable_run = 0
            return self.stable_pitch

        self._stable_run += 1
        if self.stable_pitch is not None and \
                pitch_ratio(self.stable_pitch, candidate) >= WHOLE_TONE_RATIO and \
                self._stable_run < STABILITY_FRAMES:
            return self.stable_pitch

        self.stable_pitch = candidate
        return self.stable_pitch
