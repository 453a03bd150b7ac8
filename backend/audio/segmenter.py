"""
Audio segmentation for a single session.

Pure buffering mechanism:
- Accumulates int16 samples in arrival order
- Cuts fixed-size segments when the hard cap is reached
- Cuts the whole remaining buffer when told the silence timer fired

Must NOT:
- Own timers (the runtime schedules the debounce timer)
- Know about session state (the reducer decides when to feed/flush/clear)
- Perform any I/O
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from audio.pcm import encode_wav


@dataclass(frozen=True)
class AudioSegment:
    """
    One complete span of captured audio, handed to the pipeline as a unit.

    samples:
        int16 mono samples, read-only after construction.

    sample_rate_hz:
        Capture rate of the session that produced the segment.
    """
    samples: np.ndarray
    sample_rate_hz: int

    def __post_init__(self) -> None:
        if self.samples.size == 0:
            raise ValueError("AudioSegment must contain at least one sample")
        frozen = np.array(self.samples, dtype=np.int16, copy=True)
        frozen.setflags(write=False)
        object.__setattr__(self, "samples", frozen)

    def __len__(self) -> int:
        return int(self.samples.size)

    @property
    def duration_s(self) -> float:
        return self.samples.size / float(self.sample_rate_hz)

    def to_wav_bytes(self) -> bytes:
        """Standard mono PCM16 WAV file for transcription backends."""
        return encode_wav(self.samples, self.sample_rate_hz)


class AudioSegmenter:
    """
    Append-only sample buffer with two cut triggers.

    Size trigger:
        Once buffered length >= max_segment_samples, exactly that many
        samples are cut from the front. Repeats while the buffer is still
        over the cap; the remainder stays buffered.

    Silence trigger:
        on_timeout() cuts everything that is buffered (if anything).

    Invariant:
        concat(all segments emitted) + buffered residue
            == concat(all samples appended), in order.
    """

    def __init__(self, *, max_segment_samples: int, sample_rate_hz: int) -> None:
        if max_segment_samples <= 0:
            raise ValueError("max_segment_samples must be > 0")
        if sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be > 0")

        self._max_segment_samples = max_segment_samples
        self._sample_rate_hz = sample_rate_hz
        self._chunks: list[np.ndarray] = []
        self._buffered = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def max_segment_samples(self) -> int:
        return self._max_segment_samples

    @property
    def buffered_samples(self) -> int:
        return self._buffered

    @property
    def is_empty(self) -> bool:
        return self._buffered == 0

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def on_samples(self, samples: np.ndarray) -> list[AudioSegment]:
        """
        Append samples; return any segments cut by the size trigger.

        Returns an empty list when the cap has not been reached.
        """
        if samples.size == 0:
            return []

        self._chunks.append(np.asarray(samples, dtype=np.int16))
        self._buffered += int(samples.size)

        segments: list[AudioSegment] = []
        if self._buffered < self._max_segment_samples:
            return segments

        audio = self._concat()
        offset = 0
        while audio.size - offset >= self._max_segment_samples:
            end = offset + self._max_segment_samples
            segments.append(
                AudioSegment(samples=audio[offset:end], sample_rate_hz=self._sample_rate_hz)
            )
            offset = end

        remainder = audio[offset:]
        self._chunks = [remainder] if remainder.size else []
        self._buffered = int(remainder.size)
        return segments

    def on_timeout(self) -> AudioSegment | None:
        """Cut the entire buffer. Returns None if nothing is buffered."""
        if self._buffered == 0:
            return None

        segment = AudioSegment(samples=self._concat(), sample_rate_hz=self._sample_rate_hz)
        self.clear()
        return segment

    def clear(self) -> int:
        """Drop all buffered samples. Returns how many were dropped."""
        dropped = self._buffered
        self._chunks = []
        self._buffered = 0
        return dropped

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _concat(self) -> np.ndarray:
        if not self._chunks:
            return np.zeros((0,), dtype=np.int16)
        if len(self._chunks) == 1:
            return self._chunks[0]
        return np.concatenate(self._chunks, axis=0)
