import io
import struct

import pytest

from wav_header import (
    AudioStreamDescriptor, HEADER_SIZE, MAX_PAYLOAD_SIZE, decode_header, encode_header,
    patch_payload_size, write_header
)


def test_encode_header_layout():
    header = encode_header(44100, 1, 16, 0)
    assert len(header) == HEADER_SIZE
    assert header[0:4] == b'RIFF'
    assert struct.unpack('<I', header[4:8])[0] == 36
    assert header[8:16] == b'WAVEfmt '
    assert struct.unpack('<IHHIIHH', header[16:36]) == (16, 1, 1, 44100, 88200, 2, 16)
    assert header[36:40] == b'data'
    assert struct.unpack('<I', header[40:44])[0] == 0


@pytest.mark.parametrize("sample_rate,payload", [(44100, 0), (8000, 1), (48000, 123456), (96000, MAX_PAYLOAD_SIZE)])
def test_decode_recovers_encoded_values(sample_rate, payload):
    header = decode_header(encode_header(sample_rate, 1, 16, payload))
    assert (header.sample_rate, header.channels, header.bits_per_sample, header.payload_size) == \
        (sample_rate, 1, 16, payload)
    assert header.riff_size == 36 + payload


def test_patch_payload_size_updates_only_size_fields():
    sink = io.BytesIO()
    write_header(sink)
    sink.write(b'\x01\x00' * 500)
    original = sink.getvalue()

    patch_payload_size(sink, 1000)

    assert sink.tell() == HEADER_SIZE
    patched = sink.getvalue()
    assert struct.unpack('<I', patched[4:8])[0] == 1036
    assert struct.unpack('<I', patched[40:44])[0] == 1000
    assert patched[8:40] == original[8:40]
    assert patched[HEADER_SIZE:] == original[HEADER_SIZE:]


def test_patch_payload_size_clamps_oversized_payload():
    sink = io.BytesIO()
    write_header(sink)
    patch_payload_size(sink, MAX_PAYLOAD_SIZE + 10)
    assert decode_header(sink.getvalue()).payload_size == MAX_PAYLOAD_SIZE


def test_descriptor_derived_rates():
    descriptor = AudioStreamDescriptor(sample_rate=48000, channels=2, bits_per_sample=24)
    assert descriptor.block_align == 6
    assert descriptor.byte_rate == 288000
    header = decode_header(encode_header(48000, 2, 24, 0))
    assert header.channels == 2 and header.bits_per_sample == 24


def test_decode_rejects_short_or_foreign_data():
    with pytest.raises(ValueError):
        decode_header(b'RIFF')
    with pytest.raises(ValueError):
        decode_header(b'X' * HEADER_SIZE)
