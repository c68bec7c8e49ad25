"""Shared pytest configuration and fixtures for the recorder test suite."""

import sys
from collections import namedtuple
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from errors import DeviceEnumerationFailed, StreamInitFailed, StreamStartFailed
from recorder import RecordingSession

FakeDevice = namedtuple('FakeDevice', 'index name device_id kind')


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring a physical audio device"
    )


def pytest_addoption(parser):
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require physical audio hardware",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--run-hardware"):
        return
    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


class FakeStream:
    """Stands in for a backend stream; tests push buffers with feed()."""

    def __init__(self, device, on_data, fail_start=False):
        self.device = device
        self.on_data = on_data
        self.fail_start = fail_start
        self.fail_stop = False
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self):
        if self.fail_start:
            raise StreamStartFailed(f"Failed to start device {self.device.name}: boom")
        self.started = True

    def stop(self):
        if self.fail_stop:
            raise RuntimeError("device unplugged")
        self.stopped = True

    def close(self):
        self.closed = True

    def feed(self, data):
        self.on_data(data)


class FakeBackend:
    def __init__(self, names=("Built-in Microphone", "BlackHole 2ch!", "USB Audio")):
        self.devices = [FakeDevice(i, name, 100 + i, 'capture') for i, name in enumerate(names)]
        self.streams = []
        self.fail_open = set()
        self.fail_start = set()
        self.fail_enumeration = False
        self.closed = False

    def list_devices(self):
        if self.fail_enumeration:
            raise DeviceEnumerationFailed("Failed to get capture devices: backend gone")
        return list(self.devices)

    def open_stream(self, device, descriptor, on_data):
        if device.index in self.fail_open:
            raise StreamInitFailed(f"Failed to initialize device {device.name}: boom")
        stream = FakeStream(device, on_data, fail_start=device.index in self.fail_start)
        self.streams.append(stream)
        return stream

    def stream_for(self, name):
        return next(s for s in self.streams if s.device.name == name)

    def close(self):
        self.closed = True


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def recordings_dir(tmp_path):
    return str(tmp_path / "recordings")


@pytest.fixture
def session(backend, recordings_dir):
    session = RecordingSession(backend, recordings_dir)
    yield session
    if session.is_recording:
        session.stop()
