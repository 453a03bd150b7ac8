"""
Unified event definitions for the session reducer.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no timers, no async, no side effects.

Pipeline events carry the generation captured when their segment was cut;
the reducer drops any whose generation is no longer current.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

import numpy as np

from audio.segmenter import AudioSegment


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every (state, event_type) pair must be explicitly handled
    or explicitly ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # Client control
    # ------------------------------------------------------------------
    START = "START"
    STOP = "STOP"
    AUDIO_CHUNK = "AUDIO_CHUNK"
    SET_TTS = "SET_TTS"

    # ------------------------------------------------------------------
    # Segmentation
    # ------------------------------------------------------------------
    SILENCE_TIMEOUT = "SILENCE_TIMEOUT"
    SEGMENT_READY = "SEGMENT_READY"

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    TRANSCRIPT_READY = "TRANSCRIPT_READY"
    REPLY_READY = "REPLY_READY"
    AUDIO_READY = "AUDIO_READY"
    PIPELINE_FINISHED = "PIPELINE_FINISHED"
    PIPELINE_FAILED = "PIPELINE_FAILED"

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------
    CONNECTION_CLOSED = "CONNECTION_CLOSED"


# =============================================================================
# Base Events
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


@dataclass(frozen=True)
class PipelineEvent(Event):
    """
    Base class for events produced by a SpeechPipeline run.

    The reducer MUST ignore events whose generation does not match the
    session's current generation.
    """

    generation: int


# =============================================================================
# Client Control Events
# =============================================================================

@dataclass(frozen=True)
class Start(Event):
    """Client asked to begin capture."""


@dataclass(frozen=True)
class Stop(Event):
    """Client asked to end capture / reset to idle."""


@dataclass(frozen=True)
class AudioChunk(Event):
    """
    One inbound chunk of PCM16 samples.

    peak is precomputed at the boundary so the reducer can apply the
    barge-in rule without touching sample data.
    """
    samples: np.ndarray = field(compare=False, repr=False)
    peak: int = 0

    @property
    def sample_count(self) -> int:
        return int(self.samples.size)


@dataclass(frozen=True)
class SetTTS(Event):
    """Client asked to change the synthesis provider / voice / model."""
    update: Mapping[str, Any] = field(default_factory=dict)


# =============================================================================
# Segmentation Events
# =============================================================================

@dataclass(frozen=True)
class SilenceTimeout(Event):
    """The debounce timer elapsed with no new audio."""


@dataclass(frozen=True)
class SegmentReady(Event):
    """The segmenter cut a segment (size cap or silence flush)."""
    segment: AudioSegment = field(compare=False, repr=False)
    trigger: str = "silence"


# =============================================================================
# Pipeline Events
# =============================================================================

@dataclass(frozen=True)
class TranscriptReady(PipelineEvent):
    """Transcription produced usable text."""
    text: str


@dataclass(frozen=True)
class ReplyReady(PipelineEvent):
    """Reply text is available (generated or fallback apology)."""
    text: str


@dataclass(frozen=True)
class AudioReady(PipelineEvent):
    """Synthesized reply audio is available."""
    audio: bytes = field(repr=False)
    audio_format: str = "mp3"


@dataclass(frozen=True)
class PipelineFinished(PipelineEvent):
    """
    The pipeline run produced its last result.

    replied is False when the run aborted before producing a reply
    (transcription failure or a noise transcript).
    """
    replied: bool


@dataclass(frozen=True)
class PipelineFailed(PipelineEvent):
    """The pipeline run raised an unexpected internal error."""
    reason: str


# =============================================================================
# Connection Events
# =============================================================================

@dataclass(frozen=True)
class ConnectionClosed(Event):
    """Transport is gone; the session becomes terminal."""
    reason: str | None = None
