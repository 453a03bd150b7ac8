"""
Authoritative session state container.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need.
- Audio samples are NOT here: the buffer is owned by the runtime's
  AudioSegmenter and mutated only through reducer-emitted commands.
"""
from __future__ import annotations

from dataclasses import dataclass

from orchestrator.enums.state import State
from orchestrator.synthesis_config import SynthesisConfig, VoiceCatalog


@dataclass(frozen=True)
class SegmentationPolicy:
    """
    Tunable endpointing / barge-in values for one session.

    silence_timeout_ms:
        Debounce delay after the last audio chunk before the buffer is cut.

    max_segment_samples:
        Hard cap on a single segment (size trigger).

    interruption_threshold:
        Absolute int16 amplitude a sample must exceed while speaking to
        count as barge-in.
    """
    silence_timeout_ms: int
    max_segment_samples: int
    interruption_threshold: int


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of all state-machine-owned session state."""

    policy: SegmentationPolicy
    synthesis_config: SynthesisConfig
    voice_catalog: VoiceCatalog

    # ------------------------------------------------------------------
    # Control state
    # ------------------------------------------------------------------
    state: State = State.IDLE

    # Bumped on every segment cut, stop, barge-in and close.
    # Pipeline results carrying any other value are stale.
    generation: int = 0

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------
    turns_completed: int = 0
    last_error: str | None = None

    @property
    def speaking(self) -> bool:
        return self.state is State.SPEAKING

    @property
    def capturing(self) -> bool:
        return self.state is State.LISTENING
