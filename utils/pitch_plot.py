import numpy as np
from matplotlib import pyplot as plt

from note_detection.note_mapper import midi_note_to_freq, note_number_to_name, frequency_to_note


def track_arrays(track):
    """Split analyze_file() output into time / raw / stable arrays, NaN where nothing was detected."""
    t = np.array([row[0] for row in track], dtype=float)
    raw = np.array([np.nan if row[1] is None else row[1] for row in track], dtype=float)
    stable = np.array([np.nan if row[2] is None else row[2] for row in track], dtype=float)
    return t, raw, stable


def plot_track(track, title="Pitch track", show=True):
    t, raw, stable = track_arrays(track)
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(t, raw, ".", color="0.6", markersize=3, label="raw")
    ax.plot(t, stable, "-", linewidth=2, label="stable")

    # label the notes the stable line passes through
    held = stable[np.isfinite(stable)]
    if held.size:
        notes = sorted({frequency_to_note(f).midi_note_number for f in held})
        ax.set_yticks([midi_note_to_freq(n) for n in notes])
        ax.set_yticklabels([note_number_to_name(n) for n in notes])

    ax.set_xlabel("Time [s]")
    ax.set_ylabel("Note")
    ax.set_title(title)
    ax.legend(loc="upper right")
    fig.tight_layout()
    if show:
        plt.show()
    return fig
