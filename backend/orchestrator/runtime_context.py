"""
Runtime execution context.

Provides Runtime with live access to session-owned imperative resources
needed for command execution and side effects (segmenter, pipeline,
outbound queue, status).

This module contains:
- Narrow Protocols (capabilities, not implementations)
- Zero orchestration logic
- Zero state mutation
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Protocol, runtime_checkable

from session.connection_status import ConnectionStatus

if TYPE_CHECKING:
    import numpy as np

    from audio.segmenter import AudioSegment
    from orchestrator.synthesis_config import SynthesisConfig
    from session.voice_session import VoiceSession


# ---------------------------------------------------------------------
# Capability Protocols
# ---------------------------------------------------------------------

@runtime_checkable
class SegmenterProtocol(Protocol):
    def on_samples(self, samples: np.ndarray) -> list[AudioSegment]: ...
    def on_timeout(self) -> AudioSegment | None: ...
    def clear(self) -> int: ...


@runtime_checkable
class PipelineProtocol(Protocol):
    """
    Segment -> incremental results.

    Contract:
    - run() is an async generator yielding Transcript / Reply / AudioOut
    - Every yielded result carries the generation it was started with
    - Service failures are absorbed; only internal faults propagate
    """

    def run(
        self,
        segment: AudioSegment,
        *,
        generation: int,
        get_synthesis_config: Callable[[], SynthesisConfig],
        session_id: str | None = None,
    ) -> AsyncIterator[Any]: ...


# ---------------------------------------------------------------------
# Runtime Execution Context
# ---------------------------------------------------------------------

class RuntimeExecutionContext:
    """
    Imperative execution context for Runtime.

    This object provides *live views* into session-owned resources
    so Runtime does not need to synchronize or cache anything.

    Runtime is allowed to:
    - Feed / flush / clear the segmenter
    - Start pipeline runs
    - Enqueue outbound messages
    - Observe connection state

    Runtime is NOT allowed to:
    - Mutate session fields directly
    - Perform orchestration decisions
    """

    def __init__(self, session: VoiceSession) -> None:
        self.session = session

    # ----------------------------
    # Session metadata
    # ----------------------------

    @property
    def session_id(self) -> str:
        return self.session.session_id

    @property
    def connection_status(self) -> ConnectionStatus:
        return self.session.connection_status

    # ----------------------------
    # Audio / pipeline
    # ----------------------------

    @property
    def segmenter(self) -> SegmenterProtocol:
        return self.session.segmenter

    @property
    def pipeline(self) -> PipelineProtocol | None:
        return self.session.pipeline

    # ----------------------------
    # Egress
    # ----------------------------

    def send(self, message: dict[str, Any]) -> None:
        self.session.enqueue_control(message)
