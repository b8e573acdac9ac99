# gui/terminal_display.py
import sys
import time

from Core.config import FRAME_SIZE, HOP_SIZE
from note_detection.pitch_detector import PitchDetector

PRINT_HZ = 10  # max redraws per second


def format_cents(cents: int) -> str:
    return f"{cents:+d}" if cents else "0"


def needle(cents, width=25, span=50):
    """ASCII needle centred on 0 cents, covering +/- span."""
    c = max(-span, min(span, cents))
    mid = width // 2
    s = ["-"] * width
    s[mid] = "|"
    caret = mid + int(round((c / span) * mid))
    s[max(0, min(width - 1, caret))] = "^"
    return "|" + "".join(s) + "|"


def format_reading(reading) -> str:
    """One status line for a TunerReading, or the idle prompt for None."""
    if reading is None:
        return "(listening...)"
    if reading.in_tune:
        hint = "in tune"
    elif reading.cents > 0:
        hint = "tune DOWN"
    else:
        hint = "tune UP"
    return (f"{reading.note_name:<4} {reading.frequency:7.1f} Hz  "
            f"{format_cents(reading.cents):>4} cents  {hint:<9} {needle(reading.cents, width=27)}")


def run_terminal(device=None, instrument="guitar", frame_size=FRAME_SIZE, hop_size=HOP_SIZE):
    """Live readout on stdout until Ctrl+C."""
    from Core.audio_engine import AudioEngine

    detector = PitchDetector(instrument=instrument)
    detector.initialize(AudioEngine(device_index=device, frame_size=frame_size, hop_size=hop_size))
    last_print = 0.0
    print("Tuner started. Press Ctrl+C to quit.")
    try:
        while True:
            reading = detector.read_note()
            now = time.time()
            if now - last_print > 1.0 / PRINT_HZ:
                sys.stdout.write("\r" + format_reading(reading) + " " * 4)
                sys.stdout.flush()
                last_print = now
    finally:
        detector.cleanup()
