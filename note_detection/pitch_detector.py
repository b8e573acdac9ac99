# note_detection/pitch_detector.py
import threading
from typing import Optional

import numpy as np

from Core.config import (
    CORRELATION_THRESHOLD,
    DEFAULT_INSTRUMENT,
    FRAME_SIZE,
    HOP_SIZE,
    INSTRUMENT_FREQ_RANGES,
    MIN_SIGNAL_STRENGTH,
    TUNING_THRESHOLD,
)
from Core.errors import DeviceUnavailableError
from Core.file_source import FileSource
from note_detection.gain_control import GainControl
from note_detection.note_mapper import read_note
from note_detection.pitch_estimator import compute_rms, estimate_pitch
from note_detection.stabilizer import PitchStabilizer


class PitchDetector:
    """
    One tuning session.

    Owns the gain normalizer, the stabilizer and the frame source, and runs
    one analysis cycle per detect_pitch() call:
        frame -> RMS -> gain update -> gain stage -> estimate -> stabilize

    All state belongs to this instance, so several detectors can run side
    by side. After cleanup() every call returns None and nothing changes.
    """

    def __init__(self, instrument: str = DEFAULT_INSTRUMENT, freq_range=None,
                 correlation_threshold: float = CORRELATION_THRESHOLD,
                 min_signal_strength: float = MIN_SIGNAL_STRENGTH,
                 tuning_threshold: float = TUNING_THRESHOLD):
        if instrument not in INSTRUMENT_FREQ_RANGES:
            raise ValueError(f"Unknown instrument: {instrument}")
        self.instrument = instrument
        self.freq_range = freq_range or INSTRUMENT_FREQ_RANGES[instrument]
        self.correlation_threshold = correlation_threshold
        self.min_signal_strength = min_signal_strength
        self.tuning_threshold = tuning_threshold

        self.source = None
        self.gain_control = GainControl()
        self.stabilizer = PitchStabilizer()

        # GUI / monitoring
        self.current_level = 0.0
        self.last_raw = None

        self.lock = threading.Lock()
        self._closed = False
        self.log_callback = None

    def set_log_callback(self, callback):
        self.log_callback = callback

    def _log(self, msg: str):
        if self.log_callback:
            try:
                self.log_callback(msg)
            except Exception:
                print("[PitchDetector] log callback failed.")
                print(msg)
        else:
            print(msg)

    @property
    def closed(self) -> bool:
        return self._closed

    # ----------------------------
    # Session lifecycle
    # ----------------------------
    def initialize(self, stream):
        """
        Attach and open a frame source (AudioEngine, FileSource, ...).
        DeviceUnavailableError from the source is logged and re-raised.
        """
        if self._closed:
            raise RuntimeError("[PitchDetector] initialize() after cleanup().")
        self.source = stream
        try:
            stream.open()
        except DeviceUnavailableError as e:
            self._log(f"[PitchDetector] Capture unavailable: {e}")
            raise
        self._log(f"[PitchDetector] Listening at {stream.sample_rate} Hz "
                  f"({self.freq_range.min:g}-{self.freq_range.max:g} Hz band).")

    def cleanup(self):
        with self.lock:
            if self._closed:
                return
            self._closed = True
        if self.source is not None:
            self.source.close()
        self.current_level = 0.0
        self._log("[PitchDetector] Session closed.")

    def set_instrument(self, instrument: str):
        if instrument not in INSTRUMENT_FREQ_RANGES:
            raise ValueError(f"Unknown instrument: {instrument}")
        with self.lock:
            self.instrument = instrument
            self.freq_range = INSTRUMENT_FREQ_RANGES[instrument]
        self._log(f"[PitchDetector] Mode -> {instrument}")

    # ----------------------------
    # Detection
    # ----------------------------
    def detect_pitch(self, freq_range=None) -> Optional[float]:
        """Pull one frame from the source and run a cycle on it."""
        if self._closed or self.source is None:
            return None
        try:
            frame = self.source.read_frame()
        except DeviceUnavailableError as e:
            if self._closed:
                return None
            self._log(f"[PitchDetector] Capture lost: {e}")
            raise
        except RuntimeError:
            # source closed underneath us by cleanup()
            if self._closed:
                return None
            raise
        return self.process_frame(frame, self.source.sample_rate, freq_range)

    def process_frame(self, frame: np.ndarray, sample_rate: int, freq_range=None) -> Optional[float]:
        """Run one cycle on a frame supplied by the caller."""
        with self.lock:
            if self._closed:
                return None
            band = freq_range or self.freq_range
            frame = np.asarray(frame, dtype=np.float32)

            rms = compute_rms(frame)
            self.current_level = min(100.0, rms * 100.0)
            self.gain_control.update_gain(rms)
            gained = self.gain_control.get_node().process(frame, sample_rate)

            raw = estimate_pitch(gained, band, sample_rate,
                                 correlation_threshold=self.correlation_threshold,
                                 min_signal_strength=self.min_signal_strength)
            self.last_raw = raw
            return self.stabilizer.update(raw)

    def read_note(self, freq_range=None):
        """detect_pitch() mapped to a TunerReading, or None while nothing is held."""
        freq = self.detect_pitch(freq_range)
        if freq is None:
            return None
        return read_note(freq, self.tuning_threshold)


def analyze_file(path: str, instrument: str = DEFAULT_INSTRUMENT, freq_range=None,
                 frame_size: int = FRAME_SIZE, hop_size: int = HOP_SIZE, target_rate=None):
    """
    Run a detector over a recording.

    Returns
    -------
    list[tuple[float, float | None, float | None]]
        (time in s, raw estimate, stabilized pitch) per frame.
    """
    source = FileSource(path, frame_size=frame_size, hop_size=hop_size, target_rate=target_rate)
    detector = PitchDetector(instrument=instrument, freq_range=freq_range)
    detector.set_log_callback(lambda msg: None)
    detector.initialize(source)

    track = []
    try:
        while not source.exhausted:
            t = source.time
            stable = detector.detect_pitch()
            track.append((t, detector.last_raw, stable))
    finally:
        detector.cleanup()
    return track
