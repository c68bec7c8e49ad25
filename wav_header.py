import struct
import logging
from collections import namedtuple
from dataclasses import dataclass

HEADER_SIZE = 44
MAX_PAYLOAD_SIZE = 0xFFFFFFFF - 36

# RIFF/WAVE header with a single "fmt " block and a "data" block, little-endian.
_HEADER_STRUCT = struct.Struct('<4sI4s4sIHHIIHH4sI')

WavHeader = namedtuple('WavHeader', 'riff_size sample_rate channels bits_per_sample payload_size')


@dataclass(frozen=True)
class AudioStreamDescriptor:
    sample_rate: int = 44100
    channels: int = 1
    bits_per_sample: int = 16

    @property
    def block_align(self):
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self):
        return self.sample_rate * self.block_align


DEFAULT_DESCRIPTOR = AudioStreamDescriptor()


def encode_header(sample_rate, channels, bits_per_sample, payload_size):
    """Builds the 44-byte header for a linear PCM stream of payload_size bytes."""
    block_align = channels * bits_per_sample // 8
    return _HEADER_STRUCT.pack(
        b'RIFF', 36 + payload_size, b'WAVE',
        b'fmt ', 16, 1, channels, sample_rate, sample_rate * block_align, block_align, bits_per_sample,
        b'data', payload_size
    )


def decode_header(data):
    """Parses the first 44 bytes of a file written by encode_header."""
    if len(data) < HEADER_SIZE:
        raise ValueError(f"WAV header needs {HEADER_SIZE} bytes, got {len(data)}")
    (riff, riff_size, wave, fmt, fmt_size, codec, channels, sample_rate,
     _byte_rate, _block_align, bits, data_marker, payload_size) = _HEADER_STRUCT.unpack(data[:HEADER_SIZE])
    if riff != b'RIFF' or wave != b'WAVE' or fmt != b'fmt ' or data_marker != b'data':
        raise ValueError("Not a canonical RIFF/WAVE header")
    if fmt_size != 16 or codec != 1:
        raise ValueError(f"Unsupported format block (size={fmt_size}, codec={codec})")
    return WavHeader(riff_size, sample_rate, channels, bits, payload_size)


def read_header(path):
    with open(path, 'rb') as f:
        return decode_header(f.read(HEADER_SIZE))


def write_header(sink, descriptor=DEFAULT_DESCRIPTOR, payload_size=0):
    sink.write(encode_header(descriptor.sample_rate, descriptor.channels,
                             descriptor.bits_per_sample, payload_size))


def patch_payload_size(sink, payload_size, descriptor=DEFAULT_DESCRIPTOR):
    """Rewrites the header in place once the final payload size is known.

    Must run after the last payload byte was written. The sink is left positioned
    at the end of the header, so the samples that follow it stay untouched.
    """
    if payload_size > MAX_PAYLOAD_SIZE:
        logging.warning(f"Payload of {payload_size} bytes exceeds the WAV size limit, header clamped to {MAX_PAYLOAD_SIZE}.")
        payload_size = MAX_PAYLOAD_SIZE
    sink.seek(0)
    write_header(sink, descriptor, payload_size)
