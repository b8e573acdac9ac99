# Core/audio_engine.py
import threading

import numpy as np
import pyaudio

from Core.config import FRAME_SIZE, HOP_SIZE
from Core.errors import DeviceUnavailableError


class AudioEngine:
    """
    Microphone frame source.

    Pull-based: every read_frame() call blocks until HOP_SIZE new samples
    arrive from the input stream, slides them into a rolling window of
    FRAME_SIZE samples and returns a copy of that window. Nothing is read
    between calls, so the caller's schedule sets the analysis rate.

    Notes:
      - PCM is captured as int16 and converted to float32 in [-1, 1].
      - Stereo devices are mixed down to mono.
      - rate=None uses the device's default sample rate.
    """

    def __init__(self, device_index=None, rate=None, frame_size=FRAME_SIZE, hop_size=HOP_SIZE):
        self.device_index = device_index
        self.requested_rate = rate
        self.frame_size = int(frame_size)
        self.hop_size = int(hop_size)

        self.pa = None
        self.in_stream = None
        self.rate = None
        self.in_channels = 1
        self.window = np.zeros(self.frame_size, dtype=np.float32)
        self.lock = threading.Lock()

        # logging callback (set by GUI)
        self.log_callback = None

    def set_log_callback(self, callback):
        """Set a logging callback for GUI log output."""
        self.log_callback = callback

    def _log(self, msg: str):
        if self.log_callback:
            try:
                self.log_callback(msg)
            except Exception:
                print("[AudioEngine] log callback failed.")
                print(msg)
        else:
            print(msg)

    @property
    def sample_rate(self):
        return self.rate

    # ----------------------------
    # Stream control
    # ----------------------------
    def open(self):
        """Open the input stream. Raises DeviceUnavailableError if capture cannot start."""
        with self.lock:
            if self.in_stream is not None:
                return
            try:
                self._open_stream()
            except DeviceUnavailableError:
                self._release()
                raise
            except (OSError, ValueError) as e:
                self._release()
                self._log(f"[AudioEngine] Error starting stream: {e}")
                raise DeviceUnavailableError(f"Could not open input device: {e}") from e

    def _open_stream(self):
        self.pa = pyaudio.PyAudio()
        if self.device_index is None:
            info = self.pa.get_default_input_device_info()
        else:
            info = self.pa.get_device_info_by_index(self.device_index)

        max_in = int(info["maxInputChannels"])
        if max_in < 1:
            raise DeviceUnavailableError(f"Device '{info['name']}' has no input channels.")

        self.rate = int(self.requested_rate or info["defaultSampleRate"])
        self.in_channels = max(1, min(max_in, 2))
        self.window = np.zeros(self.frame_size, dtype=np.float32)

        self._log("[AudioEngine] Starting stream...")
        self._log(f"  Input Device  : {info['name']} [{info['index']}]")
        self._log(f"  Sample Rate   : {self.rate} Hz")
        self._log(f"  Frame / Hop   : {self.frame_size} / {self.hop_size}")

        self.in_stream = self.pa.open(format=pyaudio.paInt16,
                                      channels=self.in_channels,
                                      rate=self.rate,
                                      input=True,
                                      frames_per_buffer=self.hop_size,
                                      input_device_index=info["index"])
        self._log("[AudioEngine] Stream started successfully.")

    def read_frame(self) -> np.ndarray:
        """Block for the next hop of samples; return the latest frame_size samples as float32 mono."""
        with self.lock:
            if self.in_stream is None:
                raise RuntimeError("[AudioEngine] read_frame() called on a closed stream.")
            try:
                data = self.in_stream.read(self.hop_size, exception_on_overflow=False)
            except OSError as e:
                self._log(f"[AudioEngine] Input stream failed: {e}")
                raise DeviceUnavailableError(f"Input device stopped delivering audio: {e}") from e

        x = np.frombuffer(data, dtype=np.int16).astype(np.float32) / 32768.0
        if self.in_channels > 1:
            n_frames = len(x) // self.in_channels
            x = x[: n_frames * self.in_channels].reshape(n_frames, self.in_channels).mean(axis=1)

        self.window = np.concatenate([self.window, x])[-self.frame_size:]
        return self.window.copy()

    def close(self):
        """Stop and release the stream and PyAudio. Safe to call more than once."""
        with self.lock:
            if self.pa is None and self.in_stream is None:
                return
            self._log("[AudioEngine] Stopping stream...")
            self._release()
            self._log("[AudioEngine] Stream stopped.")

    def _release(self):
        if self.in_stream is not None:
            try:
                self.in_stream.stop_stream()
                self.in_stream.close()
            except OSError as e:
                self._log(f"[AudioEngine] Error stopping stream: {e}")
            self.in_stream = None
        if self.pa is not None:
            self.pa.terminate()
            self.pa = None
