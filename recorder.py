import os
import queue
import logging
from datetime import datetime
from threading import Thread, Lock

from wav_header import DEFAULT_DESCRIPTOR, write_header, patch_payload_size
from errors import (
    AlreadyRecording, NotRecording, NoDevicesSelected, InvalidDeviceIndex, FileCreateFailed
)
from utils import build_output_path

DEFAULT_QUEUE_SIZE = 256


class CaptureChannel:
    """One device's recording: the output file, its writer thread and the hardware stream."""

    def __init__(self, device, path, sink, descriptor=DEFAULT_DESCRIPTOR, queue_size=DEFAULT_QUEUE_SIZE):
        self.device = device
        self.name = device.name
        self.path = path
        self.sink = sink
        self.descriptor = descriptor
        self.stream = None
        self.bytes_written = 0
        self.dropped_buffers = 0
        self.write_errors = 0
        self._queue = queue.Queue(maxsize=queue_size)
        self._writer = Thread(target=self._writer_loop, name=f"WavWriter-{device.index}", daemon=True)

    def on_data(self, data):
        # Runs on the backend's audio thread: never block here.
        try:
            self._queue.put_nowait(data)
        except queue.Full:
            self.dropped_buffers += 1

    def _writer_loop(self):
        while True:
            chunk = self._queue.get()
            if chunk is None:
                break
            try:
                written = self.sink.write(chunk)
                self.bytes_written += written if written is not None else len(chunk)
            except (OSError, ValueError) as e:
                self.write_errors += 1
                logging.error(f"Error writing audio data for {self.name}: {e}")

    def start(self):
        self._writer.start()
        self.stream.start()

    def _stop_stream(self):
        if self.stream is not None:
            try:
                self.stream.stop()
            finally:
                self.stream.close()
                self.stream = None

    def _stop_writer(self):
        if self._writer.is_alive():
            self._queue.put(None)
            self._writer.join()

    def finalize(self):
        """Stops capture and writes the final payload size into the header."""
        # The header is patched and the sink closed even when the device fails to stop.
        try:
            try:
                self._stop_stream()
            finally:
                self._stop_writer()
        finally:
            try:
                patch_payload_size(self.sink, self.bytes_written, self.descriptor)
            finally:
                self.sink.close()
        if self.dropped_buffers:
            logging.warning(f"{self.name}: {self.dropped_buffers} audio buffers dropped (disk too slow).")

    def discard(self):
        """Tears down a channel whose session never fully started and removes its file."""
        try:
            self._stop_stream()
        except Exception as e:
            logging.error(f"Error closing stream for {self.name} during rollback: {e}")
        self._stop_writer()
        self.sink.close()
        try:
            os.remove(self.path)
        except OSError as e:
            logging.warning(f"Could not remove partial recording {self.path}: {e}")


class RecordingSession:
    """The set of channels recording together. At most one start/stop cycle is active at a time."""

    def __init__(self, backend, output_dir, descriptor=DEFAULT_DESCRIPTOR, queue_size=DEFAULT_QUEUE_SIZE):
        self.backend = backend
        self.output_dir = output_dir
        self.descriptor = descriptor
        self.queue_size = queue_size
        self.is_recording = False
        self.channels = []
        self.started_at = None
        self._lock = Lock()

    def list_devices(self):
        return self.backend.list_devices()

    def start(self, device_indices, output_dir=None):
        with self._lock:
            if self.is_recording:
                raise AlreadyRecording()
            if not device_indices:
                raise NoDevicesSelected()
            for idx in device_indices:
                if isinstance(idx, bool) or not isinstance(idx, int):
                    raise InvalidDeviceIndex(f"Invalid device index: {idx}")
            selected = []
            for idx in device_indices:
                if idx not in selected:
                    selected.append(idx)

            devices = self.backend.list_devices()
            for idx in selected:
                if not 0 <= idx < len(devices):
                    raise InvalidDeviceIndex(f"Invalid device index: {idx}")

            output_dir = output_dir or self.output_dir
            try:
                os.makedirs(output_dir, exist_ok=True)
            except OSError as e:
                raise FileCreateFailed(f"Failed to create recordings directory {output_dir}: {e}") from e

            started_at = datetime.now()
            channels = []
            try:
                for idx in selected:
                    channels.append(self._open_channel(devices[idx], output_dir, started_at))
            except Exception:
                logging.error("Recording start failed, rolling back already opened devices.")
                for channel in channels:
                    channel.discard()
                raise

            self.channels = channels
            self.started_at = started_at
            self.is_recording = True
            logging.info(f"Recording started on {len(channels)} device(s): {', '.join(c.name for c in channels)}")
            return list(channels)

    def _open_channel(self, device, output_dir, started_at):
        path = build_output_path(output_dir, device.name, started_at)
        try:
            sink = open(path, 'wb')
        except OSError as e:
            raise FileCreateFailed(f"Failed to create file {path}: {e}") from e
        try:
            write_header(sink, self.descriptor, 0)
        except OSError as e:
            sink.close()
            os.remove(path)
            raise FileCreateFailed(f"Failed to write WAV header for {device.name}: {e}") from e
        channel = CaptureChannel(device, path, sink, self.descriptor, self.queue_size)
        try:
            channel.stream = self.backend.open_stream(device, self.descriptor, channel.on_data)
            channel.start()
        except Exception:
            channel.discard()
            raise
        logging.info(f"{device.name} -> {path}")
        return channel

    def stop(self):
        with self._lock:
            if not self.is_recording:
                raise NotRecording()
            channels = self.channels
            for channel in channels:
                try:
                    channel.finalize()
                    logging.info(f"Saved {channel.path} ({channel.bytes_written} bytes of audio)")
                except Exception as e:
                    logging.error(f"Failed to finalize recording for {channel.name}: {e}", exc_info=True)
            self.channels = []
            self.is_recording = False
            self.started_at = None
            return channels

    def status(self):
        with self._lock:
            return {"is_recording": self.is_recording, "devices": [c.name for c in self.channels]}
