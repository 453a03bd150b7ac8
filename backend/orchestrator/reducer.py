"""
Pure session reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (state, event) pair is handled or explicitly ignored (logged).

Transition table:

    IDLE        start              -> LISTENING   (clear buffer, state=listening)
    LISTENING   audio              -> LISTENING   (append, reset silence timer)
    LISTENING   silence timeout    -> LISTENING   (flush buffer as a segment)
    LISTENING   segment ready      -> PROCESSING  (generation+1, state=processing, run pipeline)
    PROCESSING  transcript         -> PROCESSING  (forward)
    PROCESSING  reply              -> SPEAKING    (forward, state=speaking)
    PROCESSING  finished (aborted) -> LISTENING   (state=listening)
    SPEAKING    audio out          -> SPEAKING    (forward)
    SPEAKING    finished           -> LISTENING   (state=listening)
    SPEAKING    loud audio         -> LISTENING   (stopAudio, clear, generation+1, state=listening)
    any         stop               -> IDLE        (cancel timer, clear, generation+1, state=idle)
    any         connection closed  -> CLOSED      (cancel timer, clear, generation+1)
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

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
from orchestrator.enums.state import State
from orchestrator.errors import StaleResultError
from orchestrator.events import (
    AudioChunk,
    AudioReady,
    ConnectionClosed,
    Event,
    EventType,
    PipelineEvent,
    PipelineFailed,
    PipelineFinished,
    ReplyReady,
    SegmentReady,
    SetTTS,
    SilenceTimeout,
    Start,
    Stop,
    TranscriptReady,
)
from orchestrator.state_dataclass import SessionState
from orchestrator.synthesis_config import apply_tts_update
from protocol.messages import (
    error_message,
    response_message,
    state_message,
    stop_audio_command,
    transcript_message,
    tts_config_message,
)


# =============================================================================
# Timer IDs
# =============================================================================

TIMER_SILENCE = "silence_timeout"

GENERIC_ERROR_MESSAGE = "Something went wrong while answering. Please try again."


# =============================================================================
# Small helpers
# =============================================================================

def _log(
    state: SessionState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "state": state.state.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "generation": state.generation,
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []
    state_change_logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            if command.event.get("decision") == "state_changed":
                state_change_logs.append(command)
            else:
                logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs + state_change_logs)


def _ignore(
    state: SessionState, event: Event, reason: str
) -> tuple[SessionState, tuple[Command, ...]]:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _send_state(state: State) -> SendJSONToClient:
    return SendJSONToClient(message=state_message(state.value))


def _transition(
    state: SessionState,
    event: Event,
    new_state: SessionState,
    source: str,
    commands: tuple[Command, ...],
) -> tuple[SessionState, tuple[Command, ...]]:
    """
    Finish a state change: the caller's commands, then the state_changed log.

    The state message to the client is part of `commands` so that its
    position relative to other client messages is explicit at each call site.
    """
    return new_state, _logs_last(commands + (
        _log(
            new_state,
            event,
            "state_changed",
            {
                "from_state": state.state.value,
                "to_state": new_state.state.value,
                "source": source,
            },
        ),
    ))


def _require_current_generation(state: SessionState, event: PipelineEvent) -> None:
    if event.generation != state.generation:
        raise StaleResultError(
            result_generation=event.generation,
            current_generation=state.generation,
        )


# =============================================================================
# Reducer entrypoint
# =============================================================================

def reduce(
    state: SessionState, event: Event
) -> tuple[SessionState, tuple[Command, ...]]:
    """
    Pure reducer for the voice session state machine.

    Given the current session state and a single event, returns:
    - the next state
    - a tuple of commands describing required side effects

    Properties:
    - Deterministic: no IO, clocks, or randomness
    - Total: every (state, event) pair is handled or explicitly ignored
    - Version-safe: drops pipeline events with a stale generation
    """
    if state.state is State.CLOSED:
        return _ignore(state, event, "session_closed")

    # ------------------------------------------------------------------
    # Connection lifecycle (any state)
    # ------------------------------------------------------------------
    if isinstance(event, ConnectionClosed):
        new_state = replace(state, state=State.CLOSED, generation=state.generation + 1)
        return _transition(state, event, new_state, "connection_closed", (
            CancelTimer(timer_id=TIMER_SILENCE),
            ClearAudioBuffer(reason="connection_closed"),
            _log(new_state, event, "connection_closed", {"reason": event.reason}),
        ))

    # ------------------------------------------------------------------
    # Client control valid in any state
    # ------------------------------------------------------------------
    if isinstance(event, Stop):
        new_state = replace(state, state=State.IDLE, generation=state.generation + 1)
        return _transition(state, event, new_state, "stop", (
            CancelTimer(timer_id=TIMER_SILENCE),
            ClearAudioBuffer(reason="stop"),
            _send_state(State.IDLE),
        ))

    if isinstance(event, SetTTS):
        return _reduce_set_tts(state, event)

    # ------------------------------------------------------------------
    # Pipeline results: generation gate first
    # ------------------------------------------------------------------
    if isinstance(event, PipelineEvent):
        try:
            _require_current_generation(state, event)
        except StaleResultError as exc:
            return state, (
                _log(
                    state,
                    event,
                    "stale_result_dropped",
                    {
                        "result_generation": exc.result_generation,
                        "current_generation": exc.current_generation,
                    },
                ),
            )
        return _reduce_pipeline_event(state, event)

    # ------------------------------------------------------------------
    # Per-state handling of capture events
    # ------------------------------------------------------------------
    if state.state is State.IDLE:
        return _reduce_idle(state, event)

    if state.state is State.LISTENING:
        return _reduce_listening(state, event)

    if state.state is State.PROCESSING:
        if isinstance(event, AudioChunk):
            return _ignore(state, event, "audio_while_processing")
        if isinstance(event, SegmentReady):
            return _ignore(state, event, "segment_outside_listening")
        if isinstance(event, SilenceTimeout):
            return _ignore(state, event, "silence_timeout_outside_listening")
        if isinstance(event, Start):
            return _ignore(state, event, "start_while_processing")
        return _ignore(state, event, "processing_unhandled")

    if state.state is State.SPEAKING:
        return _reduce_speaking(state, event)

    return _ignore(state, event, "unknown_state")


# =============================================================================
# State handlers
# =============================================================================

def _reduce_idle(
    state: SessionState, event: Event
) -> tuple[SessionState, tuple[Command, ...]]:
    if isinstance(event, Start):
        new_state = replace(state, state=State.LISTENING)
        return _transition(state, event, new_state, "start", (
            ClearAudioBuffer(reason="start"),
            _send_state(State.LISTENING),
        ))

    if isinstance(event, AudioChunk):
        return _ignore(state, event, "audio_while_idle")

    if isinstance(event, SegmentReady):
        return _ignore(state, event, "segment_outside_listening")

    if isinstance(event, SilenceTimeout):
        return _ignore(state, event, "silence_timeout_outside_listening")

    return _ignore(state, event, "idle_unhandled")


def _reduce_listening(
    state: SessionState, event: Event
) -> tuple[SessionState, tuple[Command, ...]]:
    if isinstance(event, AudioChunk):
        if event.sample_count == 0:
            return _ignore(state, event, "empty_audio_chunk")
        # Append first: a size cut queued by the append is reduced after
        # this timer reset and cancels it.
        return state, (
            AppendSamples(samples=event.samples),
            StartTimer(
                timer_id=TIMER_SILENCE,
                duration_ms=state.policy.silence_timeout_ms,
                timeout_event_type=EventType.SILENCE_TIMEOUT,
            ),
        )

    if isinstance(event, SilenceTimeout):
        return state, (
            FlushSegment(),
            _log(state, event, "flush_on_silence"),
        )

    if isinstance(event, SegmentReady):
        generation = state.generation + 1
        new_state = replace(state, state=State.PROCESSING, generation=generation)
        return _transition(state, event, new_state, "segment_ready", (
            CancelTimer(timer_id=TIMER_SILENCE),
            ClearAudioBuffer(reason="segment_cut"),
            _send_state(State.PROCESSING),
            StartPipeline(generation=generation, segment=event.segment),
            _log(
                new_state,
                event,
                "start_pipeline",
                {
                    "samples": len(event.segment),
                    "duration_s": round(event.segment.duration_s, 3),
                    "trigger": event.trigger,
                },
            ),
        ))

    if isinstance(event, Start):
        return _ignore(state, event, "already_listening")

    return _ignore(state, event, "listening_unhandled")


def _reduce_speaking(
    state: SessionState, event: Event
) -> tuple[SessionState, tuple[Command, ...]]:
    if isinstance(event, AudioChunk):
        if event.peak <= state.policy.interruption_threshold:
            return _ignore(state, event, "below_interruption_threshold")

        # Barge-in: the chunk itself is discarded, playback stops, and the
        # generation bump turns any remaining pipeline output stale.
        new_state = replace(state, state=State.LISTENING, generation=state.generation + 1)
        return _transition(state, event, new_state, "barge_in", (
            SendJSONToClient(message=stop_audio_command()),
            ClearAudioBuffer(reason="barge_in"),
            CancelTimer(timer_id=TIMER_SILENCE),
            _send_state(State.LISTENING),
            _log(
                new_state,
                event,
                "barge_in",
                {
                    "peak": event.peak,
                    "threshold": state.policy.interruption_threshold,
                },
            ),
        ))

    if isinstance(event, SegmentReady):
        return _ignore(state, event, "segment_outside_listening")

    if isinstance(event, SilenceTimeout):
        return _ignore(state, event, "silence_timeout_outside_listening")

    if isinstance(event, Start):
        return _ignore(state, event, "start_while_speaking")

    return _ignore(state, event, "speaking_unhandled")


def _reduce_pipeline_event(
    state: SessionState, event: PipelineEvent
) -> tuple[SessionState, tuple[Command, ...]]:
    """Pipeline results for the current generation."""
    if isinstance(event, TranscriptReady):
        if state.state is not State.PROCESSING:
            return _ignore(state, event, "transcript_outside_processing")
        return state, (
            SendJSONToClient(message=transcript_message(event.text)),
            _log(state, event, "forward_transcript", {"chars": len(event.text)}),
        )

    if isinstance(event, ReplyReady):
        if state.state is not State.PROCESSING:
            return _ignore(state, event, "reply_outside_processing")
        new_state = replace(state, state=State.SPEAKING)
        return _transition(state, event, new_state, "reply_ready", (
            SendJSONToClient(message=response_message(event.text)),
            _send_state(State.SPEAKING),
        ))

    if isinstance(event, AudioReady):
        if state.state is not State.SPEAKING:
            return _ignore(state, event, "audio_outside_speaking")
        return state, (
            SendAudioToClient(audio=event.audio, audio_format=event.audio_format),
            _log(
                state,
                event,
                "forward_audio",
                {"bytes": len(event.audio), "format": event.audio_format},
            ),
        )

    if isinstance(event, PipelineFinished):
        if state.state is State.PROCESSING:
            new_state = replace(state, state=State.LISTENING)
            return _transition(state, event, new_state, "pipeline_aborted", (
                _send_state(State.LISTENING),
            ))
        if state.state is State.SPEAKING:
            new_state = replace(
                state,
                state=State.LISTENING,
                turns_completed=state.turns_completed + 1,
            )
            return _transition(state, event, new_state, "turn_complete", (
                _send_state(State.LISTENING),
            ))
        return _ignore(state, event, "finished_outside_turn")

    if isinstance(event, PipelineFailed):
        if state.state not in (State.PROCESSING, State.SPEAKING):
            return _ignore(state, event, "failure_outside_turn")
        new_state = replace(state, state=State.LISTENING, last_error=event.reason)
        return _transition(state, event, new_state, "pipeline_failed", (
            SendJSONToClient(message=error_message(GENERIC_ERROR_MESSAGE)),
            _send_state(State.LISTENING),
            _log(new_state, event, "pipeline_failed", {"reason": event.reason}),
        ))

    return _ignore(state, event, "pipeline_unhandled")


def _reduce_set_tts(
    state: SessionState, event: SetTTS
) -> tuple[SessionState, tuple[Command, ...]]:
    new_config, ignored = apply_tts_update(
        state.synthesis_config,
        event.update,
        state.voice_catalog,
    )
    new_state = replace(state, synthesis_config=new_config)
    return new_state, (
        SendJSONToClient(message=tts_config_message(new_config.to_message())),
        _log(
            new_state,
            event,
            "tts_config_updated",
            {
                "config": new_config.to_message(),
                "ignored_fields": list(ignored),
            },
        ),
    )
