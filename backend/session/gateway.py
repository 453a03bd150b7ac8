"""
Session gateway.

Responsibilities:
- Owns VoiceSession lifecycle
- Tracks connection_status independently of session state
- Builds each session's segmenter + runtime from server-wide defaults
- Routes inbound JSON messages -> session events
- Registers / unregisters the session with the ConnectionRegistry

NOT responsible for:
- Executing commands
- Calling external services
- Any state machine logic
- Writing to the socket (the route's sender task drains the session)
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING
from uuid import uuid4

from audio.pcm import peak_amplitude
from audio.segmenter import AudioSegmenter
from constants import AUDIO_SAMPLE_RATE_HZ, LOG_PREVIEW_CHARS
from observability.logger import log_event, preview
from orchestrator.events import (
    AudioChunk,
    Event,
    EventType,
    SetTTS,
    Start,
    Stop,
)
from orchestrator.reducer import GENERIC_ERROR_MESSAGE
from orchestrator.runtime import Runtime
from orchestrator.runtime_context import RuntimeExecutionContext
from orchestrator.state_dataclass import SessionState
from orchestrator.synthesis_config import VoiceCatalog
from protocol.messages import (
    AudioMessage,
    ClientMessage,
    ProtocolError,
    SetTTSMessage,
    StartMessage,
    StopMessage,
    UnknownMessage,
    error_message,
    parse_client_message,
)
from session.connection_status import ConnectionStatus
from session.voice_session import VoiceSession

if TYPE_CHECKING:
    from config import AppConfig
    from orchestrator.pipeline import SpeechPipeline
    from session.registry import ConnectionRegistry

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# SessionGateway
# ------------------------------------------------------------------

class SessionGateway:
    """
    One gateway == one voice session.

    Shared, read-only collaborators (pipeline, voice catalog, registry)
    are injected; everything mutable is created per connection.
    """

    def __init__(
        self,
        *,
        config: AppConfig,
        voice_catalog: VoiceCatalog,
        pipeline: SpeechPipeline | None = None,
        registry: ConnectionRegistry | None = None,
        sample_rate_hz: int = AUDIO_SAMPLE_RATE_HZ,
    ) -> None:
        self._config = config
        self._voice_catalog = voice_catalog
        self._pipeline = pipeline
        self._registry = registry
        self._sample_rate_hz = sample_rate_hz
        self.session: VoiceSession | None = None

    async def on_ws_connect(self) -> VoiceSession:
        """Called when a WebSocket connection is established."""
        session_id = _new_session_id()
        policy = self._config.segmentation_policy()

        segmenter = AudioSegmenter(
            max_segment_samples=policy.max_segment_samples,
            sample_rate_hz=self._sample_rate_hz,
        )
        self.session = VoiceSession(
            session_id=session_id,
            segmenter=segmenter,
            pipeline=self._pipeline,
        )
        self.session.connection_status = ConnectionStatus.UP

        # Per-session copy of the server default; setTTS only touches this one
        synthesis_config = self._voice_catalog.resolve(
            self._config.default_synthesis_config()
        )

        runtime = Runtime(
            initial_state=SessionState(
                policy=policy,
                synthesis_config=synthesis_config,
                voice_catalog=self._voice_catalog,
            ),
            context=RuntimeExecutionContext(session=self.session),
        )
        self.session.attach_runtime(runtime)

        if self._registry is not None:
            self._registry.register(self.session)

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "SESSION_STARTED",
            **self.session.log_context(),
            "silence_timeout_ms": policy.silence_timeout_ms,
            "max_segment_samples": policy.max_segment_samples,
            "interruption_threshold": policy.interruption_threshold,
            "tts_config": synthesis_config.to_message(),
        })

        return self.session

    async def on_ws_disconnect(self, reason: str | None = None) -> None:
        """Called when the WebSocket disconnects."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return

        session = self.session
        if session.connection_status is ConnectionStatus.DOWN:
            return

        runtime = session.runtime
        if runtime is not None:
            await runtime.shutdown(reason)

        session.connection_status = ConnectionStatus.DOWN
        session.close_outbound()

        if self._registry is not None:
            self._registry.unregister(session.session_id)

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "SESSION_ENDED",
            **session.log_context(),
            "reason": reason,
            "turns_completed": runtime.state.turns_completed if runtime is not None else 0,
        })

    async def on_json_message(self, payload: str) -> None:
        """
        Route one inbound text frame to the runtime.

        Never raises: malformed input is logged and dropped, and an
        unexpected fault is reported to the client as a generic error
        while the session stays usable.
        """
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": preview(str(payload), LOG_PREVIEW_CHARS),
            })
            return

        try:
            message = parse_client_message(payload)
            event = self._to_event(message)
            if event is None:
                return
            await self._dispatch(event)
        except ProtocolError as e:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "PROTOCOL_ERROR",
                **self.session.log_context(),
                "error": str(e),
                "payload_preview": preview(str(payload), LOG_PREVIEW_CHARS),
            })
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "GATEWAY_INTERNAL_ERROR",
                **self.session.log_context(),
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            self.session.enqueue_control(error_message(GENERIC_ERROR_MESSAGE))

    # ------------------------------------------------------------------
    # Message -> event
    # ------------------------------------------------------------------

    def _to_event(self, message: ClientMessage) -> Event | None:
        ts_ms = _now_ms()

        if isinstance(message, StartMessage):
            return Start(event_type=EventType.START, ts_ms=ts_ms)

        if isinstance(message, StopMessage):
            return Stop(event_type=EventType.STOP, ts_ms=ts_ms)

        if isinstance(message, AudioMessage):
            return AudioChunk(
                event_type=EventType.AUDIO_CHUNK,
                ts_ms=ts_ms,
                samples=message.samples,
                peak=peak_amplitude(message.samples),
            )

        if isinstance(message, SetTTSMessage):
            return SetTTS(event_type=EventType.SET_TTS, ts_ms=ts_ms, update=message.config)

        if isinstance(message, UnknownMessage):
            assert self.session is not None
            log_event({
                "ts_ms": ts_ms,
                "event_type": "UNKNOWN_MESSAGE_TYPE",
                **self.session.log_context(),
                "msg_type": message.kind,
            })
            return None

        raise TypeError(f"Unhandled client message: {type(message).__name__}")

    # ------------------------------------------------------------------
    # Runtime dispatch
    # ------------------------------------------------------------------

    async def _dispatch(self, event: Event) -> None:
        """Forward event into runtime."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "DISPATCH_WITHOUT_SESSION",
                "dropped_event": event.event_type.value,
            })
            return

        runtime = self.session.runtime
        assert runtime is not None, "Runtime must exist before dispatch"

        await runtime.handle_event(event)
