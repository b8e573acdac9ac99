class DeviceUnavailableError(RuntimeError):
    """Capture could not start: permission denied, no input hardware, or the device refused the format."""
