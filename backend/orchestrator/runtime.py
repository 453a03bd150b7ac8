"""
Runtime execution shell for a single voice session.

Responsibilities:
- Own orchestrator state
- Call pure reducer
- Execute commands with side effects (segmenter, pipeline, outbound)
- Schedule and cancel timers
- Convert timer expiry and pipeline results into events
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import TYPE_CHECKING

from observability.logger import log_event
from orchestrator.commands import (
    AppendSamples,
    CancelTimer,
    ClearAudioBuffer,
    Command,
    FlushSegment,
    LogEvent,
    SendAudioToClient,
    SendJSONToClient,
    StartPipeline,
    StartTimer,
)
from orchestrator.events import (
    AudioReady,
    ConnectionClosed,
    Event,
    EventType,
    PipelineFailed,
    PipelineFinished,
    ReplyReady,
    SegmentReady,
    SilenceTimeout,
    TranscriptReady,
)
from orchestrator.pipeline import AudioOut, PipelineResult, Reply, Transcript
from orchestrator.state_dataclass import SessionState
from orchestrator.reducer import reduce
from orchestrator.synthesis_config import SynthesisConfig
from protocol.messages import audio_message

if TYPE_CHECKING:
    from audio.segmenter import AudioSegment
    from orchestrator.runtime_context import RuntimeExecutionContext


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class Runtime:
    """
    Runtime execution boundary for a single voice session.

    Responsibilities:
    - Own the authoritative session state
    - Act as the universal event sink for the session
      (gateway events, timer events, pipeline results)
    - Invoke the pure reducer deterministically
    - Execute emitted commands with side effects
    - Schedule and cancel timers

    Architectural role:
    Runtime is the bridge between the pure orchestration layer
    (reducer + immutable state) and the imperative world
    (segmenter, pipeline, logging, outbound queue, time).

    Guarantees:
    - Reducer is always called exactly once per incoming event
    - State transitions are serialized: one event at a time under a lock
    - All side effects occur *after* state has been updated
    - Events produced by command execution (segment cuts) are reduced
      after the current event's commands, under the same lock
    - Timers and pipeline tasks emit events back into handle_event
      (single entry point)
    """

    def __init__(
        self,
        *,
        initial_state: SessionState,
        context: RuntimeExecutionContext,
    ) -> None:
        self._state = initial_state
        self._ctx = context
        self._timers: dict[str, asyncio.Task[None]] = {}
        self._pipelines: set[asyncio.Task[None]] = set()
        self._lock = asyncio.Lock()
        self._pending: deque[Event] = deque()

    @property
    def state(self) -> SessionState:
        """
        Return the current immutable session state.

        The returned object must be treated as read-only; it is only
        replaced internally by Runtime via the reducer.
        """
        return self._state

    @property
    def active_pipelines(self) -> int:
        return len(self._pipelines)

    def current_synthesis_config(self) -> SynthesisConfig:
        """Snapshot read by the pipeline at the moment synthesis starts."""
        return self._state.synthesis_config

    async def handle_event(self, event: Event) -> None:
        """
        Process a single event through the orchestration pipeline.

        Processing steps:
        1. Pass the current state and event to the pure reducer
        2. Swap in the new state
        3. Execute all emitted commands sequentially
        4. Reduce any follow-up events those commands produced

        Invariants:
        - State is updated before any side effects execute
        - Commands are executed in reducer-emitted order
        - Never called re-entrantly from command execution; follow-up
          events go through the pending queue instead
        """
        async with self._lock:
            self._pending.append(event)
            while self._pending:
                current = self._pending.popleft()
                new_state, commands = reduce(self._state, current)
                self._state = new_state

                for cmd in commands:
                    await self._execute_command(cmd)

    async def shutdown(self, reason: str | None = None) -> None:
        """
        Clean shutdown of runtime.

        Marks the session closed (which bumps the generation so in-flight
        pipeline results are dropped on arrival), then cancels all timers
        and waits for them. Pipeline tasks are left to finish on their own.
        Called by gateway on session disconnect.
        """
        await self.handle_event(
            ConnectionClosed(
                event_type=EventType.CONNECTION_CLOSED,
                ts_ms=_now_ms(),
                reason=reason,
            )
        )

        timers = list(self._timers.values())
        for timer_id in list(self._timers.keys()):
            self._cancel_timer(timer_id)

        if timers:
            await asyncio.gather(*timers, return_exceptions=True)

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    async def _execute_command(self, cmd: Command) -> None:
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "session_id": self._ctx.session_id,
                "connection_status": self._ctx.connection_status.value,
            })

        elif isinstance(cmd, AppendSamples):
            for segment in self._ctx.segmenter.on_samples(cmd.samples):
                self._queue_segment(segment, trigger="size")

        elif isinstance(cmd, FlushSegment):
            segment = self._ctx.segmenter.on_timeout()
            if segment is not None:
                self._queue_segment(segment, trigger="silence")

        elif isinstance(cmd, ClearAudioBuffer):
            dropped = self._ctx.segmenter.clear()
            if dropped:
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "AUDIO_BUFFER_CLEARED",
                    "session_id": self._ctx.session_id,
                    "reason": cmd.reason,
                    "dropped_samples": dropped,
                })

        elif isinstance(cmd, StartPipeline):
            self._start_pipeline(generation=cmd.generation, segment=cmd.segment)

        elif isinstance(cmd, SendJSONToClient):
            self._ctx.send(dict(cmd.message))

        elif isinstance(cmd, SendAudioToClient):
            self._ctx.send(audio_message(cmd.audio, cmd.audio_format))

        elif isinstance(cmd, StartTimer):
            self._start_timer(
                timer_id=cmd.timer_id,
                duration_ms=cmd.duration_ms,
                timeout_event_type=cmd.timeout_event_type,
            )

        elif isinstance(cmd, CancelTimer):
            self._cancel_timer(cmd.timer_id)

        else:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "UNKNOWN_COMMAND",
                "session_id": self._ctx.session_id,
                "command_type": type(cmd).__name__,
            })

    def _queue_segment(self, segment: AudioSegment, *, trigger: str) -> None:
        self._pending.append(
            SegmentReady(
                event_type=EventType.SEGMENT_READY,
                ts_ms=_now_ms(),
                segment=segment,
                trigger=trigger,
            )
        )

    # ------------------------------------------------------------------
    # Pipeline runs
    # ------------------------------------------------------------------

    def _start_pipeline(self, *, generation: int, segment: AudioSegment) -> None:
        """
        Spawn one pipeline run.

        Runs are never cancelled; a superseded run's results carry an old
        generation and are dropped by the reducer.
        """
        if self._ctx.pipeline is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "PIPELINE_MISSING",
                "session_id": self._ctx.session_id,
                "generation": generation,
            })
            return

        task = asyncio.create_task(self._run_pipeline(generation, segment))
        self._pipelines.add(task)
        task.add_done_callback(self._pipelines.discard)

    async def _run_pipeline(self, generation: int, segment: AudioSegment) -> None:
        assert self._ctx.pipeline is not None
        results = self._ctx.pipeline.run(
            segment,
            generation=generation,
            get_synthesis_config=self.current_synthesis_config,
            session_id=self._ctx.session_id,
        )
        replied = False

        try:
            async for result in results:
                if isinstance(result, Reply):
                    replied = True
                await self.handle_event(self._result_to_event(result))

                if self._state.generation != generation:
                    # Superseded: stop calling services for this segment
                    log_event({
                        "ts_ms": _now_ms(),
                        "event_type": "PIPELINE_ABANDONED",
                        "session_id": self._ctx.session_id,
                        "generation": generation,
                        "current_generation": self._state.generation,
                    })
                    return

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "PIPELINE_INTERNAL_ERROR",
                "session_id": self._ctx.session_id,
                "generation": generation,
                "error": f"{type(exc).__name__}: {exc}",
            })
            await self.handle_event(
                PipelineFailed(
                    event_type=EventType.PIPELINE_FAILED,
                    ts_ms=_now_ms(),
                    generation=generation,
                    reason=f"{type(exc).__name__}: {exc}",
                )
            )
            return

        finally:
            await results.aclose()

        await self.handle_event(
            PipelineFinished(
                event_type=EventType.PIPELINE_FINISHED,
                ts_ms=_now_ms(),
                generation=generation,
                replied=replied,
            )
        )

    @staticmethod
    def _result_to_event(result: PipelineResult) -> Event:
        ts = _now_ms()

        if isinstance(result, Transcript):
            return TranscriptReady(
                event_type=EventType.TRANSCRIPT_READY,
                ts_ms=ts,
                generation=result.generation,
                text=result.text,
            )

        if isinstance(result, Reply):
            return ReplyReady(
                event_type=EventType.REPLY_READY,
                ts_ms=ts,
                generation=result.generation,
                text=result.text,
            )

        if isinstance(result, AudioOut):
            return AudioReady(
                event_type=EventType.AUDIO_READY,
                ts_ms=ts,
                generation=result.generation,
                audio=result.audio,
                audio_format=result.audio_format,
            )

        raise TypeError(f"Unknown pipeline result: {type(result).__name__}")

    # ------------------------------------------------------------------
    # Timer management
    # ------------------------------------------------------------------

    def _start_timer(
        self,
        *,
        timer_id: str,
        duration_ms: int,
        timeout_event_type: EventType,
    ) -> None:
        """
        Start or replace a timer that emits a timeout event.

        Timer tasks re-enter handle_event() when they expire,
        maintaining the single event entry point invariant.
        """
        # Cancel existing timer if present (idempotent)
        self._cancel_timer(timer_id)

        async def _timer_task() -> None:
            try:
                await asyncio.sleep(duration_ms / 1000.0)

                event = self._construct_timeout_event(timeout_event_type)

                # Re-enter runtime with timeout event
                await self.handle_event(event)

            except asyncio.CancelledError:
                # Timer was cancelled - this is normal
                return

            finally:
                if self._timers.get(timer_id) is asyncio.current_task():
                    del self._timers[timer_id]

        self._timers[timer_id] = asyncio.create_task(_timer_task())

    def _cancel_timer(self, timer_id: str) -> None:
        """
        Cancel an in-flight timer if it exists.

        Idempotent: safe to call even if timer doesn't exist.
        A timer delivering its own timeout event is only unregistered.
        """
        task = self._timers.pop(timer_id, None)
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            return
        task.cancel()

    def _construct_timeout_event(self, timeout_event_type: EventType) -> Event:
        """
        Construct the timeout event for an expired timer.

        The reducer emits timer commands with just EventType; runtime
        constructs the full event.
        """
        if timeout_event_type is EventType.SILENCE_TIMEOUT:
            return SilenceTimeout(
                event_type=EventType.SILENCE_TIMEOUT,
                ts_ms=_now_ms(),
            )

        # This should never happen if reducer is correct
        raise ValueError(f"Unknown timeout event type: {timeout_event_type}")
