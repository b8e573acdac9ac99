import tkinter as tk
from tkinter import ttk

PAD = 5
NOTE_FONT = ("Helvetica", 48, "bold")
METER_LENGTH = 300


def _place(widget, row, column, sticky="w", columnspan=1):
    widget.grid(row=row, column=column, padx=PAD, pady=PAD, sticky=sticky, columnspan=columnspan)
    return widget


def labelled_combobox(parent, caption, values, textvariable, row, width=30):
    """Caption in column 0, read-only combobox spanning the rest of the row."""
    _place(ttk.Label(parent, text=caption), row, 0, sticky="e")
    combo = ttk.Combobox(parent, textvariable=textvariable, values=values,
                         state="readonly", width=width)
    return _place(combo, row, 1, sticky="we", columnspan=2)


def labelled_meter(parent, caption, variable, row, maximum=100):
    """Horizontal bar for a 0..maximum value (mic level, cents offset)."""
    _place(ttk.Label(parent, text=caption), row, 0, sticky="e")
    bar = ttk.Progressbar(parent, variable=variable, maximum=maximum, length=METER_LENGTH)
    return _place(bar, row, 1, sticky="we", columnspan=2)


def note_readout(parent, textvariable, row):
    """Large note name centred across the window."""
    lbl = ttk.Label(parent, textvariable=textvariable, font=NOTE_FONT)
    return _place(lbl, row, 0, sticky="n", columnspan=3)


def detail_row(parent, variables, row):
    """One small label per variable: frequency, cents, tuning state."""
    stickies = ["e"] + ["w"] * (len(variables) - 1)
    return [_place(ttk.Label(parent, textvariable=var), row, col, sticky=sticky)
            for col, (var, sticky) in enumerate(zip(variables, stickies))]


def start_stop_buttons(parent, on_start, on_stop, row):
    start = _place(ttk.Button(parent, text="Start", command=on_start), row, 0, sticky="we")
    stop = _place(ttk.Button(parent, text="Stop", command=on_stop, state="disabled"),
                  row, 1, sticky="we")
    return start, stop


def set_running(start_btn, stop_btn, running: bool):
    start_btn.config(state="disabled" if running else "normal")
    stop_btn.config(state="normal" if running else "disabled")


def log_box(parent, row, height=6, width=70):
    box = tk.Text(parent, height=height, width=width, state="disabled", wrap="word")
    return _place(box, row, 0, sticky="nsew", columnspan=3)


def append_log(box, message: str):
    box.config(state="normal")
    box.insert("end", message + "\n")
    box.see("end")
    box.config(state="disabled")
