# Core/config.py
from collections import namedtuple

FreqRange = namedtuple("FreqRange", ["min", "max"])

# ── Equal temperament ─────────────────────────────────────────────────
NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F",
              "F#", "G", "G#", "A", "A#", "B"]
A4_FREQ = 440.0
A4_NOTE_NUMBER = 69  # MIDI number of A4

# ── Frequency bands (Hz) ──────────────────────────────────────────────
FREQ_RANGE = FreqRange(min=20.0, max=2000.0)

INSTRUMENT_FREQ_RANGES = {
    "guitar": FreqRange(min=60.0, max=1000.0),  # E2 ~82.4 Hz plus headroom for overtones
    "bass": FreqRange(min=20.0, max=400.0),     # 5-string B0 ~31 Hz
}
DEFAULT_INSTRUMENT = "guitar"

# ── Capture ───────────────────────────────────────────────────────────
SAMPLE_RATE = 44100
FRAME_SIZE = 8192   # analysis window; covers guitar down to ~62 Hz at 44.1 kHz
HOP_SIZE = 1024     # samples pulled from the device per cycle

# ── Pitch estimation ──────────────────────────────────────────────────
CORRELATION_THRESHOLD = 0.8
MIN_SIGNAL_STRENGTH = 0.01
HARMONIC_MULTIPLES = (2, 3, 4)
HARMONIC_RATIO = 0.9

# ── Stabilizer ────────────────────────────────────────────────────────
HISTORY_SIZE_LOW = 8     # below 100 Hz
HISTORY_SIZE_MID = 6     # below 200 Hz
HISTORY_SIZE_HIGH = 4
STABILITY_FRAMES = 8
SUSTAINED_PITCH_THRESHOLD = 8
WHOLE_TONE_RATIO = 2 ** (1 / 6)  # ~1.122462

# ── Gain ──────────────────────────────────────────────────────────────
MIN_GAIN = 0.1
MAX_GAIN = 10.0
TARGET_RMS = 0.3
GAIN_SMOOTHING = 0.1
GAIN_RAMP_TIME = 0.1  # seconds

# ── Display ───────────────────────────────────────────────────────────
TUNING_THRESHOLD = 15  # cents either side counted as "in tune"
