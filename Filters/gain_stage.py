import numpy as np

from Core.config import GAIN_RAMP_TIME


class GainStage:
    """
    Input gain applied to every frame before analysis.

    Changes are not applied as steps: the gain follows an exponential ramp
    toward the requested target (like a Web Audio GainNode driven with
    setTargetAtTime), so consecutive frames join without audible clicks.
    """

    def __init__(self, gain: float = 1.0):
        self.gain = float(gain)      # value reached at the end of the last block
        self.target = float(gain)
        self.time_constant = GAIN_RAMP_TIME

    def set_target_at_time(self, target: float, time_constant: float = GAIN_RAMP_TIME):
        self.target = float(target)
        self.time_constant = max(0.0, float(time_constant))

    def gain_curve(self, n_samples: int, sample_rate: int) -> np.ndarray:
        """Per-sample gain for the next block of n_samples."""
        if self.time_constant == 0.0:
            return np.full(n_samples, self.target, dtype=np.float32)
        n = np.arange(1, n_samples + 1, dtype=np.float64)
        decay = np.exp(-n / (self.time_constant * sample_rate))
        return (self.target + (self.gain - self.target) * decay).astype(np.float32)

    def process(self, frame: np.ndarray, sample_rate: int) -> np.ndarray:
        """
        frame: (L,) float32 in [-1,1]
        returns: (L,) float32, gain applied and clipped to [-1,1]
        """
        frame = np.asarray(frame, dtype=np.float32)
        if frame.size == 0:
            return frame
        curve = self.gain_curve(frame.size, sample_rate)
        self.gain = float(curve[-1])
        return np.clip(frame * curve, -1.0, 1.0)
