# note_detection/note_mapper.py
import math
from collections import namedtuple

from Core.config import A4_FREQ, A4_NOTE_NUMBER, NOTE_NAMES, TUNING_THRESHOLD

NoteResult = namedtuple("NoteResult", ["midi_note_number", "cents"])
TunerReading = namedtuple("TunerReading", ["frequency", "note_name", "cents", "in_tune"])


def midi_note_to_freq(note_number: int) -> float:
    """Frequency in Hz of an equal-tempered MIDI note (A4 = 69 -> 440 Hz)."""
    return A4_FREQ * 2 ** ((note_number - A4_NOTE_NUMBER) / 12)


def frequency_to_note(freq: float) -> NoteResult:
    """
    Nearest equal-tempered note and the deviation from it.

    Parameters
    ----------
    freq : float
        Frequency in Hz, finite and positive.

    Returns
    -------
    NoteResult
        (midi_note_number, cents) with cents in [-50, 50].
    """
    if not math.isfinite(freq) or freq <= 0:
        raise ValueError(f"Frequency must be finite and positive, got {freq}")

    midi_num = int(round(12 * math.log2(freq / A4_FREQ) + A4_NOTE_NUMBER))
    et_freq = midi_note_to_freq(midi_num)
    cents = int(round(1200 * math.log2(freq / et_freq)))
    return NoteResult(midi_num, cents)


def note_number_to_name(note_number: int) -> str:
    octave = (note_number - 12) // 12
    return f"{NOTE_NAMES[note_number % 12]}{octave}"


def read_note(freq: float, tolerance: float = TUNING_THRESHOLD) -> TunerReading:
    """Everything a display needs for one frequency: name, cents and the in-tune flag."""
    midi_num, cents = frequency_to_note(freq)
    return TunerReading(
        frequency=float(freq),
        note_name=note_number_to_name(midi_num),
        cents=cents,
        in_tune=abs(cents) <= tolerance,
    )
