import os
from collections import namedtuple

import pyaudio

InputDevice = namedtuple("InputDevice", ["index", "name", "channels", "default_rate", "is_default"])


def _default_input_index(pa):
    try:
        return int(pa.get_default_input_device_info()["index"])
    except OSError:
        return None


def get_input_devices(pa):
    """Capture-capable devices. On Windows only WASAPI endpoints are listed."""
    default_idx = _default_input_index(pa)
    devices = []
    for idx in range(pa.get_device_count()):
        info = pa.get_device_info_by_index(idx)
        channels = int(info["maxInputChannels"])
        if channels < 1:
            continue
        if os.name == "nt":
            host = pa.get_host_api_info_by_index(info["hostApi"])["name"]
            if "WASAPI" not in host:
                continue
        devices.append(InputDevice(idx, info["name"], channels,
                                   int(info["defaultSampleRate"]), idx == default_idx))
    return devices


def describe_device(dev: InputDevice) -> str:
    marker = "*" if dev.is_default else " "
    return f"{marker}[{dev.index}] {dev.name}  ({dev.channels} ch, {dev.default_rate} Hz)"


def list_devices():
    """Print every input device; the system default is starred."""
    pa = pyaudio.PyAudio()
    try:
        devices = get_input_devices(pa)
    finally:
        pa.terminate()
    print("=== Input Devices ===")
    if not devices:
        print("  (none found)")
    for dev in devices:
        print(describe_device(dev))
