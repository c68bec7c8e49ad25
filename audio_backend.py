import sys
import logging
import platform
from collections import namedtuple

import numpy as np
import sounddevice as sd
try:
    import pyaudiowpatch as pyaudio
except ImportError:
    pyaudio = None

from errors import BackendInitFailed, DeviceEnumerationFailed, StreamInitFailed, StreamStartFailed

DeviceInfo = namedtuple('DeviceInfo', 'index name device_id kind')


class SoundDeviceStream:
    """Input stream opened through PortAudio (sounddevice)."""

    def __init__(self, device, descriptor, on_data):
        self.name = device.name

        def callback(indata, frames, time, status):
            if status: print(f"{self.name}: {status}", file=sys.stderr)
            on_data(indata.tobytes())

        try:
            self._stream = sd.InputStream(samplerate=descriptor.sample_rate, device=device.device_id,
                                          channels=descriptor.channels, dtype='int16', callback=callback)
        except (sd.PortAudioError, ValueError) as e:
            raise StreamInitFailed(f"Failed to initialize device {device.name}: {e}") from e

    def start(self):
        try:
            self._stream.start()
        except sd.PortAudioError as e:
            raise StreamStartFailed(f"Failed to start device {self.name}: {e}") from e

    def stop(self):
        self._stream.stop()

    def close(self):
        self._stream.close()


class LoopbackStream:
    """WASAPI loopback capture of a playback device (Windows only, pyaudiowpatch)."""

    def __init__(self, p, device, descriptor, on_data):
        self.name = device.name
        default_rate = None
        try:
            info = p.get_device_info_by_index(device.device_id)
            channels = max(1, int(info["maxInputChannels"]))
            default_rate = int(info.get("defaultSampleRate", 0)) or None

            def callback(in_data, frame_count, time_info, status):
                # The recording is mono: keep only the first channel of the loopback mix.
                samples = np.frombuffer(in_data, dtype=np.int16).reshape(-1, channels)
                on_data(samples[:, 0].tobytes())
                return (None, pyaudio.paContinue)

            self._stream = p.open(format=pyaudio.paInt16, channels=channels, rate=descriptor.sample_rate,
                                  input=True, input_device_index=device.device_id,
                                  stream_callback=callback, start=False)
        except (OSError, ValueError) as e:
            message = f"Failed to initialize loopback device {device.name} at {descriptor.sample_rate} Hz"
            if default_rate and default_rate != descriptor.sample_rate:
                message += f" (device runs at {default_rate} Hz)"
            raise StreamInitFailed(f"{message}: {e}") from e

    def start(self):
        try:
            self._stream.start_stream()
        except OSError as e:
            raise StreamStartFailed(f"Failed to start loopback device {self.name}: {e}") from e

    def stop(self):
        self._stream.stop_stream()

    def close(self):
        self._stream.close()


class SoundDeviceBackend:
    """Device enumeration and streaming on top of the host audio APIs."""

    def __init__(self, include_loopback=None):
        try:
            sd.query_hostapis()
        except sd.PortAudioError as e:
            raise BackendInitFailed(f"Failed to initialize audio context: {e}") from e
        if include_loopback is None:
            include_loopback = platform.system() == "Windows"
        self._pyaudio = None
        if include_loopback and pyaudio is not None:
            try:
                self._pyaudio = pyaudio.PyAudio()
            except OSError as e:
                logging.warning(f"WASAPI loopback capture unavailable: {e}")

    def list_devices(self):
        devices = []
        try:
            for info in sd.query_devices():
                if info['max_input_channels'] > 0:
                    devices.append(DeviceInfo(len(devices), info['name'], info['index'], 'capture'))
        except sd.PortAudioError as e:
            raise DeviceEnumerationFailed(f"Failed to get capture devices: {e}") from e

        if self._pyaudio is not None:
            try:
                for info in self._pyaudio.get_loopback_device_info_generator():
                    devices.append(DeviceInfo(len(devices), info['name'], info['index'], 'loopback'))
            except OSError as e:
                raise DeviceEnumerationFailed(f"Failed to get loopback devices: {e}") from e
        return devices

    def open_stream(self, device, descriptor, on_data):
        if device.kind == 'loopback':
            return LoopbackStream(self._pyaudio, device, descriptor, on_data)
        return SoundDeviceStream(device, descriptor, on_data)

    def close(self):
        if self._pyaudio is not None:
            self._pyaudio.terminate()
            self._pyaudio = None
