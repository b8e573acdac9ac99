# gui/tuner_app.py
"""
Tkinter window for the tuner.

The window only renders what the detector produces: a worker thread runs
detection cycles and stores the latest reading, and the Tk loop polls it
every 50 ms.
"""
import threading
import tkinter as tk
from tkinter import messagebox, ttk

import pyaudio

from Core.audio_engine import AudioEngine
from Core.config import INSTRUMENT_FREQ_RANGES, DEFAULT_INSTRUMENT, FRAME_SIZE
from Core.errors import DeviceUnavailableError
from Core.io_utils import describe_device, get_input_devices
from gui.terminal_display import format_cents
from gui.tuner_widgets import (
    append_log,
    detail_row,
    labelled_combobox,
    labelled_meter,
    log_box,
    note_readout,
    set_running,
    start_stop_buttons,
)
from note_detection.pitch_detector import PitchDetector

POLL_MS = 50


class TunerApp:
    def __init__(self, root: tk.Tk, frame_size=FRAME_SIZE):
        self.root = root
        self.root.title("minimal-tuner")
        self.frame_size = frame_size

        self.detector = None
        self.worker = None
        self.reading = None

        self.frame = ttk.Frame(root)
        self.frame.grid(row=0, column=0, sticky="nsew")
        for col in range(3):
            self.frame.columnconfigure(col, weight=1)

        # ----------------------------
        # Device / mode selection
        # ----------------------------
        pa = pyaudio.PyAudio()
        try:
            self.input_devices = get_input_devices(pa)
        finally:
            pa.terminate()

        self.in_var = tk.StringVar()
        self.in_combo = labelled_combobox(
            self.frame, "Input Device:", textvariable=self.in_var,
            values=[describe_device(d) for d in self.input_devices],
            row=0, width=50
        )
        if self.input_devices:
            defaults = [i for i, d in enumerate(self.input_devices) if d.is_default]
            self.in_combo.current(defaults[0] if defaults else 0)

        self.mode_var = tk.StringVar(value=DEFAULT_INSTRUMENT)
        self.mode_combo = labelled_combobox(
            self.frame, "Mode:", textvariable=self.mode_var,
            values=list(INSTRUMENT_FREQ_RANGES), row=1
        )
        self.mode_combo.bind("<<ComboboxSelected>>", self.on_mode_changed)

        # ----------------------------
        # Reading
        # ----------------------------
        self.note = tk.StringVar(value="-")
        self.freq = tk.StringVar(value="- Hz")
        self.cents = tk.StringVar(value="0 cents")
        self.tune_state = tk.StringVar(value="")
        note_readout(self.frame, self.note, row=2)
        detail_row(self.frame, [self.freq, self.cents, self.tune_state], row=3)

        # -50..+50 cents shown as 0..100
        self.cents_meter = tk.DoubleVar(value=50)
        labelled_meter(self.frame, "Flat / Sharp:", self.cents_meter, row=4)
        self.level = tk.DoubleVar()
        labelled_meter(self.frame, "Mic Level:", self.level, row=5)

        self.start_btn, self.stop_btn = start_stop_buttons(
            self.frame, self.start_audio, self.stop_audio, row=6
        )
        self.log_box = log_box(self.frame, row=7)

        root.protocol("WM_DELETE_WINDOW", self.on_close)

    # ----------------------------
    # Stream controls
    # ----------------------------
    def start_audio(self):
        i_idx = self.in_combo.current()
        if i_idx == -1:
            messagebox.showerror("Error", "Select an input device.")
            return

        detector = PitchDetector(instrument=self.mode_var.get())
        detector.set_log_callback(self.log)
        engine = AudioEngine(device_index=self.input_devices[i_idx].index, frame_size=self.frame_size)
        engine.set_log_callback(self.log)
        try:
            detector.initialize(engine)
        except DeviceUnavailableError as e:
            messagebox.showerror("Microphone unavailable",
                                 f"Could not open the microphone:\n{e}\n\n"
                                 "Check that the device is connected and that microphone access is allowed.")
            return

        self.detector = detector
        self.worker = threading.Thread(target=self._detect_loop, args=(detector,), daemon=True)
        self.worker.start()
        set_running(self.start_btn, self.stop_btn, True)
        self.update_display()

    def stop_audio(self):
        if self.detector is not None:
            self.detector.cleanup()
        if self.worker is not None:
            self.worker.join(timeout=0.5)
        self.detector = None
        self.worker = None
        self.reading = None
        self.level.set(0)
        self.note.set("-")
        self.freq.set("- Hz")
        self.cents.set("0 cents")
        self.tune_state.set("")
        self.cents_meter.set(50)
        set_running(self.start_btn, self.stop_btn, False)

    def _detect_loop(self, detector):
        while not detector.closed:
            try:
                reading = detector.read_note()
            except DeviceUnavailableError as e:
                self.root.after(0, self._on_device_lost, detector, e)
                return
            if reading is not None:
                self.reading = reading

    def _on_device_lost(self, detector, error):
        if self.detector is not detector:
            return
        self.stop_audio()
        messagebox.showerror("Microphone lost",
                             f"The microphone stopped delivering audio:\n{error}\n\n"
                             "Reconnect the device and press Start again.")

    def on_mode_changed(self, event=None):
        if self.detector is not None:
            self.detector.set_instrument(self.mode_var.get())

    # ----------------------------
    # UI updates
    # ----------------------------
    def update_display(self):
        if self.detector is None:
            return
        self.level.set(self.detector.current_level)
        reading = self.reading
        if reading is not None:
            self.note.set(reading.note_name)
            self.freq.set(f"{reading.frequency:.1f} Hz")
            self.cents.set(f"{format_cents(reading.cents)} cents")
            self.tune_state.set("In Tune" if reading.in_tune else "Out of Tune")
            self.cents_meter.set(reading.cents + 50)
        self.root.after(POLL_MS, self.update_display)

    def log(self, message: str):
        """Append a log message to the log box (safe from the worker thread)."""
        self.root.after(0, append_log, self.log_box, message)

    def on_close(self):
        self.stop_audio()
        self.root.destroy()


def main(frame_size=FRAME_SIZE):
    root = tk.Tk()
    TunerApp(root, frame_size=frame_size)
    root.mainloop()
