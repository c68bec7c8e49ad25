import pytest

import record_server
from wav_header import read_header


def test_parse_args_defaults():
    args = record_server.parse_args([])
    assert args.cli is False
    assert args.port is None
    assert args.recordings_dir is None


def test_parse_args_overrides():
    args = record_server.parse_args(['--cli', '--port', '9001', '--recordings-dir', '/tmp/rec'])
    assert args.cli is True
    assert args.port == 9001
    assert args.recordings_dir == '/tmp/rec'


def test_finalize_session_patches_headers_on_exit(session, backend):
    channel, = session.start([0])
    backend.stream_for("Built-in Microphone").feed(b'\x01\x02' * 64)
    record_server.finalize_session(session)
    assert not session.is_recording
    assert read_header(channel.path).payload_size == 128


def test_finalize_session_when_idle_is_noop(session):
    record_server.finalize_session(session)
    assert session.status() == {"is_recording": False, "devices": []}


@pytest.mark.hardware
def test_sound_device_backend_lists_input_devices():
    from audio_backend import SoundDeviceBackend

    backend = SoundDeviceBackend()
    try:
        devices = backend.list_devices()
        assert [d.index for d in devices] == list(range(len(devices)))
        assert all(d.kind in ('capture', 'loopback') for d in devices)
    finally:
        backend.close()
