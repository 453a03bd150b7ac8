"""
Side-effect command definitions for the session reducer.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the runtime.
- No behavior, no async, no I/O, no clocks.
- Reducer logic remains pure and deterministic.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
    - Commands are immutable value objects emitted by the reducer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from audio.segmenter import AudioSegment
from orchestrator.events import EventType

# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.

    These are stable discriminants used for logging and runtime dispatch.
    """

    # Audio buffer
    APPEND_SAMPLES = "APPEND_SAMPLES"
    FLUSH_SEGMENT = "FLUSH_SEGMENT"
    CLEAR_AUDIO_BUFFER = "CLEAR_AUDIO_BUFFER"

    # Pipeline
    START_PIPELINE = "START_PIPELINE"

    # Client / transport
    SEND_JSON_TO_CLIENT = "SEND_JSON_TO_CLIENT"
    SEND_AUDIO_TO_CLIENT = "SEND_AUDIO_TO_CLIENT"

    # Timers
    START_TIMER = "START_TIMER"
    CANCEL_TIMER = "CANCEL_TIMER"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Audio Buffer Commands
# =============================================================================

@dataclass(frozen=True)
class AppendSamples(Command):
    """
    Append samples to the session's segmenter.

    The runtime feeds any size-triggered segment back as SegmentReady.
    """
    samples: np.ndarray = field(compare=False, repr=False)
    command_type: CommandType = CommandType.APPEND_SAMPLES


@dataclass(frozen=True)
class FlushSegment(Command):
    """Cut the whole buffer (silence trigger) and feed it back as SegmentReady."""
    command_type: CommandType = CommandType.FLUSH_SEGMENT


@dataclass(frozen=True)
class ClearAudioBuffer(Command):
    """Drop every buffered sample."""
    reason: str
    command_type: CommandType = CommandType.CLEAR_AUDIO_BUFFER


# =============================================================================
# Pipeline Commands
# =============================================================================

@dataclass(frozen=True)
class StartPipeline(Command):
    """
    Run transcribe -> retrieve -> respond -> synthesize for one segment.

    Every result of the run is tagged with `generation`.
    """
    generation: int
    segment: AudioSegment = field(compare=False, repr=False)
    command_type: CommandType = CommandType.START_PIPELINE


# =============================================================================
# Client / Transport Commands
# =============================================================================

@dataclass(frozen=True)
class SendJSONToClient(Command):
    """
    Send a JSON control or UI message to the client.

    `message` is the complete wire object, built by protocol.messages.
    """
    message: dict[str, Any]
    command_type: CommandType = CommandType.SEND_JSON_TO_CLIENT


@dataclass(frozen=True)
class SendAudioToClient(Command):
    """Send synthesized reply audio to the client (base64 on the wire)."""
    audio: bytes = field(repr=False)
    audio_format: str = "mp3"
    command_type: CommandType = CommandType.SEND_AUDIO_TO_CLIENT


# =============================================================================
# Timer Commands
# =============================================================================

@dataclass(frozen=True)
class StartTimer(Command):
    """
    Request to start (or replace) a named timer.

    On expiration, the runtime must inject the specified timeout event.
    """
    timer_id: str
    duration_ms: int
    timeout_event_type: EventType
    command_type: CommandType = CommandType.START_TIMER


@dataclass(frozen=True)
class CancelTimer(Command):
    """Request to cancel a previously scheduled timer."""
    timer_id: str
    command_type: CommandType = CommandType.CANCEL_TIMER


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured observability event."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT
