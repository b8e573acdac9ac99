# Core/file_source.py
import os
import math

import numpy as np
import soundfile as sf
from scipy.signal import resample_poly

from Core.config import FRAME_SIZE, HOP_SIZE

SUPPORTED_EXTENSIONS = (".wav", ".flac", ".aiff", ".aif", ".ogg")


def load_mono(path: str) -> tuple[np.ndarray, int]:
    """
    Load a recording as mono float32.
    :param path: Path to an audio file soundfile can read.
    :return: samples in [-1, 1] and the sampling rate.
    """
    p = os.path.abspath(path)
    if not os.path.exists(p):
        raise FileNotFoundError(path)
    ext = os.path.splitext(p)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported file format: {ext}")

    x, fs = sf.read(p, always_2d=True, dtype="float32")
    return x.mean(axis=1).astype(np.float32), int(fs)


def resample_if_needed(x: np.ndarray, fs_in: int, fs_out: int) -> np.ndarray:
    if fs_in == fs_out:
        return x
    g = math.gcd(fs_out, fs_in)
    up, down = fs_out // g, fs_in // g
    return resample_poly(x, up, down).astype(np.float32)


class FileSource:
    """
    Frame source over a recorded file, for offline analysis and tests.

    read_frame() returns frame_size samples starting at the current position
    and advances by hop_size; the last frame is zero padded.
    """

    def __init__(self, path: str, frame_size=FRAME_SIZE, hop_size=HOP_SIZE, target_rate=None):
        self.path = path
        self.frame_size = int(frame_size)
        self.hop_size = int(hop_size)
        self.target_rate = target_rate
        self.samples = None
        self.rate = None
        self.position = 0

    @property
    def sample_rate(self):
        return self.rate

    @property
    def exhausted(self) -> bool:
        if self.samples is None:
            return True
        return self.position >= max(len(self.samples), 1)

    @property
    def time(self) -> float:
        """Start time in seconds of the next frame."""
        return self.position / self.rate if self.rate else 0.0

    def open(self):
        if self.samples is not None:
            return
        x, fs = load_mono(self.path)
        if self.target_rate:
            x = resample_if_needed(x, fs, int(self.target_rate))
            fs = int(self.target_rate)
        self.samples = x
        self.rate = fs
        self.position = 0

    def read_frame(self) -> np.ndarray:
        if self.samples is None:
            raise RuntimeError("[FileSource] read_frame() called before open().")
        if self.exhausted:
            raise EOFError(f"[FileSource] End of {self.path}")

        frame = self.samples[self.position:self.position + self.frame_size]
        if len(frame) < self.frame_size:
            frame = np.pad(frame, (0, self.frame_size - len(frame)))
        self.position += self.hop_size
        return frame.astype(np.float32)

    def close(self):
        self.samples = None
        self.position = 0
