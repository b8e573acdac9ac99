"""
main.py
Entry point for the tuner: tkinter window by default, terminal readout
with --terminal, offline analysis with --file.
"""
import argparse

from Core.config import FRAME_SIZE, HOP_SIZE, INSTRUMENT_FREQ_RANGES, DEFAULT_INSTRUMENT
from Core.errors import DeviceUnavailableError


def analyze(path, instrument, frame_size, hop_size, plot):
    from note_detection.note_mapper import read_note
    from note_detection.pitch_detector import analyze_file

    track = analyze_file(path, instrument=instrument, frame_size=frame_size, hop_size=hop_size)
    last = None
    for t, _, stable in track:
        if stable is not None and stable != last:
            reading = read_note(stable)
            print(f"{t:7.2f}s  {reading.note_name:<4} {reading.frequency:7.1f} Hz  {reading.cents:+d} cents")
            last = stable
    if plot:
        from utils.pitch_plot import plot_track
        plot_track(track, title=path)


def main():
    ap = argparse.ArgumentParser(description="Chromatic tuner for guitar and bass")
    ap.add_argument("--device", type=int, default=None, help="Input device index (see --list-devices)")
    ap.add_argument("--list-devices", action="store_true", help="List input devices and exit")
    ap.add_argument("--mode", choices=list(INSTRUMENT_FREQ_RANGES), default=DEFAULT_INSTRUMENT,
                    help="Frequency band to search")
    ap.add_argument("--frame-size", type=int, default=FRAME_SIZE,
                    help="Analysis window in samples (larger = lower notes, slower response)")
    ap.add_argument("--terminal", action="store_true", help="Print readings in the terminal instead of a window")
    ap.add_argument("--file", default=None, help="Analyze a recording instead of the microphone")
    ap.add_argument("--plot", action="store_true", help="With --file: plot the pitch track")
    args = ap.parse_args()

    if args.list_devices:
        from Core.io_utils import list_devices
        list_devices()
        return

    if args.file:
        analyze(args.file, args.mode, args.frame_size, HOP_SIZE, args.plot)
        return

    if args.terminal:
        from gui.terminal_display import run_terminal
        try:
            run_terminal(device=args.device, instrument=args.mode, frame_size=args.frame_size)
        except KeyboardInterrupt:
            print("\nBye!")
        except DeviceUnavailableError as e:
            print("\nError:", e)
            print("Tip: try `python main.py --list-devices` and select a valid input index.")
            raise SystemExit(1)
        return

    from gui.tuner_app import main as run_gui
    run_gui(frame_size=args.frame_size)


if __name__ == "__main__":
    main()
