"""
Voice session container.

- Owns the runtime (which owns the authoritative session state)
- Owns connection status (mutable, gateway-controlled)
- Owns the session's audio segmenter and outbound message queue
- Owned and mutated by SessionGateway
- NOT a state machine
- Contains no orchestration logic
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from session.connection_status import ConnectionStatus

if TYPE_CHECKING:
    from audio.segmenter import AudioSegmenter
    from orchestrator.pipeline import SpeechPipeline
    from orchestrator.runtime import Runtime


# ---------------------------------------------------------------------
# VoiceSession
# ---------------------------------------------------------------------


@dataclass
class VoiceSession:
    """Mutable runtime container for a single voice session."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    segmenter: AudioSegmenter
    pipeline: SpeechPipeline | None = None
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Connection / gateway-controlled state
    # ------------------------------------------------------------------

    connection_status: ConnectionStatus = ConnectionStatus.DOWN

    # ------------------------------------------------------------------
    # Runtime (executes commands + owns authoritative state)
    # ------------------------------------------------------------------

    runtime: Runtime | None = None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def __post_init__(self) -> None:
        # None is the end-of-stream marker for next_outbound()
        self._outbound: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()

    # ------------------------------------------------------------------
    # Wiring helpers (called by SessionGateway)
    # ------------------------------------------------------------------

    def attach_runtime(self, runtime: Runtime) -> None:
        """
        Attach the runtime executor.

        Called by SessionGateway during session bootstrap.
        """
        self.runtime = runtime

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def log_context(self) -> dict[str, Any]:
        """Return standard logging context for this session."""
        return {
            "session_id": self.session_id,
            "connection_status": self.connection_status.value,
        }

    # ------------------------------------------------------------------
    # Outbound messages
    # ------------------------------------------------------------------

    def enqueue_control(self, msg: dict[str, Any]) -> None:
        """
        Enqueue a message for delivery to the client.

        Messages are delivered in FIFO order, either by the connection's
        sender task (next_outbound) or by drain_control().
        """
        self._outbound.put_nowait(msg)

    def drain_control(self) -> tuple[dict[str, Any], ...]:
        """
        Drain all pending outbound messages without waiting.

        Returns:
            A FIFO-ordered tuple of messages. Returns an empty tuple if
            no messages are pending. The end-of-stream marker is kept.
        """
        out: list[dict[str, Any]] = []
        while True:
            try:
                msg = self._outbound.get_nowait()
            except asyncio.QueueEmpty:
                break
            if msg is None:
                # Keep the marker for the sender task
                self._outbound.put_nowait(None)
                break
            out.append(msg)
        return tuple(out)

    async def next_outbound(self) -> dict[str, Any] | None:
        """
        Wait for the next outbound message.

        Returns None once close_outbound() has been called and every
        message queued before it has been delivered.
        """
        return await self._outbound.get()

    def close_outbound(self) -> None:
        """Signal the sender task that no further messages will follow."""
        self._outbound.put_nowait(None)

    @property
    def pending_outbound(self) -> int:
        return self._outbound.qsize()
