import os
import sys

from errors import RecorderError, NoDevicesSelected, InvalidDeviceIndex

def parse_device_selection(text, device_count):
    """Parses a comma-separated list of device numbers such as '1, 2'."""
    text = text.strip()
    if not text:
        raise NoDevicesSelected()
    selected = []
    for part in text.split(','):
        part = part.strip()
        try:
            idx = int(part)
        except ValueError:
            raise InvalidDeviceIndex(f"That's not a valid number: {part}")
        if not 0 <= idx < device_count:
            raise InvalidDeviceIndex(f"Invalid device! Please choose 0-{device_count - 1}")
        selected.append(idx)
    return selected

def list_audio_devices(session):
    """Prints the available capture devices and returns them."""
    devices = session.list_devices()
    print("\n=== Available Capture Devices ===")
    for device in devices:
        suffix = " (loopback)" if device.kind == 'loopback' else ""
        print(f"[{device.index}] {device.name}{suffix}")
    return devices

def run_cli(session, stdin=None):
    """Interactive terminal recording: pick devices, record until Enter, save."""
    stdin = stdin or sys.stdin
    try:
        devices = list_audio_devices(session)
        if not devices:
            print("No capture devices found.")
            return 1

        print("\nEnter device number(s) to capture from (comma-separated for multiple, e.g., 1,2):")
        selected = parse_device_selection(stdin.readline(), len(devices))

        channels = session.start(selected)
        for channel in channels:
            print(f"✓ {channel.name} → {os.path.basename(channel.path)}")
    except RecorderError as e:
        print(e)
        return 1

    print("\nPress Enter to stop recording...")
    try:
        stdin.readline()
    except KeyboardInterrupt:
        pass

    print("\nRecording stopped!")
    for channel in session.stop():
        print(f"✓ Saved {channel.name} ({channel.bytes_written} bytes of audio)")
    print("✓ All recordings saved!")
    return 0
