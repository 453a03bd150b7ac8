"""
PCM conversion utilities.

Runtime-safe, adapter-agnostic helpers for PCM16 mono audio:
- JSON sample list -> int16 array (validated)
- Peak amplitude for barge-in detection
- PCM16 little-endian bytes and the canonical 44-byte WAV container
"""

from __future__ import annotations

import struct
from typing import Any

import numpy as np

from constants import (
    AUDIO_CHANNELS,
    AUDIO_SAMPLE_WIDTH_BYTES,
    PCM16_MAX,
    PCM16_MIN,
    WAV_HEADER_BYTES,
)

_WAV_FORMAT_PCM = 1
_BITS_PER_SAMPLE = AUDIO_SAMPLE_WIDTH_BYTES * 8


def samples_from_json(data: Any) -> np.ndarray:
    """
    Validate a JSON sample list and convert it to int16.

    Accepts a flat list of integers in [-32768, 32767].

    Raises:
        ValueError on anything else (non-list, nested lists, booleans,
        fractional floats, out-of-range values).
    """
    if not isinstance(data, list):
        raise ValueError(f"audio data must be a list, got {type(data).__name__}")

    if not data:
        return np.zeros((0,), dtype=np.int16)

    for value in data:
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"audio sample must be an integer, got {value!r}")
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"audio sample must be an integer, got {value!r}")
        # Range-check before numpy sees it: huge JSON ints overflow int64
        if value < PCM16_MIN or value > PCM16_MAX:
            raise ValueError(f"audio sample out of int16 range: {value!r}")

    return np.asarray(data, dtype=np.int16)


def peak_amplitude(samples: np.ndarray) -> int:
    """
    Largest absolute sample value.

    Computed in int32 so that -32768 maps to 32768 instead of wrapping.
    Empty input returns 0.
    """
    if samples.size == 0:
        return 0
    return int(np.max(np.abs(samples.astype(np.int32))))


def pcm16le_bytes(samples: np.ndarray) -> bytes:
    """Serialize int16 samples as little-endian PCM16 bytes."""
    return samples.astype("<i2", copy=False).tobytes()


def wav_header(num_samples: int, sample_rate_hz: int) -> bytes:
    """
    Canonical 44-byte RIFF/WAVE header for mono PCM16.

    Layout (little-endian):
        "RIFF" <36 + data_len> "WAVE"
        "fmt " <16> <1=PCM> <channels> <rate> <byte_rate> <block_align> <bits>
        "data" <data_len>
    """
    if num_samples < 0:
        raise ValueError("num_samples must be >= 0")
    if sample_rate_hz <= 0:
        raise ValueError("sample_rate_hz must be > 0")

    block_align = AUDIO_CHANNELS * AUDIO_SAMPLE_WIDTH_BYTES
    byte_rate = sample_rate_hz * block_align
    data_len = num_samples * block_align

    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_len,
        b"WAVE",
        b"fmt ",
        16,
        _WAV_FORMAT_PCM,
        AUDIO_CHANNELS,
        sample_rate_hz,
        byte_rate,
        block_align,
        _BITS_PER_SAMPLE,
        b"data",
        data_len,
    )
    assert len(header) == WAV_HEADER_BYTES
    return header


def encode_wav(samples: np.ndarray, sample_rate_hz: int) -> bytes:
    """Wrap int16 samples in a WAV container (header + PCM16LE payload)."""
    return wav_header(int(samples.size), sample_rate_hz) + pcm16le_bytes(samples)
