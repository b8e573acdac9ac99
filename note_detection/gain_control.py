# note_detection/gain_control.py
from Core.config import MIN_GAIN, MAX_GAIN, TARGET_RMS, GAIN_SMOOTHING, GAIN_RAMP_TIME
from Filters.gain_stage import GainStage


class GainControl:
    """
    Adaptive input gain.

    Tracks the RMS of incoming frames and steers a GainStage toward the gain
    that would bring the signal to target_level, moving only a fraction
    (smoothing_factor) of the way on each update.
    """

    MIN_GAIN = MIN_GAIN
    MAX_GAIN = MAX_GAIN

    def __init__(self, gain_stage: GainStage = None):
        self.gain_stage = gain_stage if gain_stage is not None else GainStage()
        self.target_level = TARGET_RMS
        self.smoothing_factor = GAIN_SMOOTHING
        self.current_gain = 1.0

    def get_node(self) -> GainStage:
        return self.gain_stage

    def set_target_level(self, level: float):
        """Target RMS level, saturated into [0, 1]."""
        self.target_level = max(0.0, min(1.0, float(level)))

    def set_smoothing_factor(self, factor: float):
        """Fraction of the way toward the new gain per update, saturated into [0, 1]."""
        self.smoothing_factor = max(0.0, min(1.0, float(factor)))

    def update_gain(self, rms_level: float):
        if rms_level == 0:
            return

        target_gain = self.target_level / rms_level
        clamped_gain = max(self.MIN_GAIN, min(self.MAX_GAIN, target_gain))

        self.current_gain = (self.current_gain * (1 - self.smoothing_factor)
                             + clamped_gain * self.smoothing_factor)
        self.gain_stage.set_target_at_time(self.current_gain, GAIN_RAMP_TIME)
