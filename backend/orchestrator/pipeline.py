"""
SpeechPipeline: one segment -> transcript -> reply -> audio.

Rules:
- Stages are strictly ordered; each is gated on the previous one.
- Results are yielded as soon as each stage completes, never in bulk.
- Every result carries the generation captured when the segment was cut.
- External-service failures degrade to a fixed fallback here and never
  reach the state machine:
    TranscriptionError -> silent abort (no further results)
    GenerationError    -> fixed apology reply
    SynthesisError     -> no audio
- Anything else is an internal fault and propagates to the caller.

The pipeline holds no session state. The synthesis config is read through
`get_synthesis_config` exactly once, when synthesis starts, so a setTTS
that lands mid-turn applies to this reply only if it arrived before
synthesis began.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Union

from adapters.asr.base import Transcriber
from adapters.errors import GenerationError, SynthesisError, TranscriptionError
from adapters.llm.base import Responder
from adapters.retrieval.base import NullRetriever, Retriever
from adapters.tts.base import Synthesizer
from audio.segmenter import AudioSegment
from constants import (
    LOG_PREVIEW_CHARS,
    REPLY_FALLBACK_TEXT,
    RETRIEVAL_SEPARATOR,
    RETRIEVAL_TOP_K,
    TRANSCRIPT_MIN_CHARS,
    TRANSCRIPT_NOISE_DENYLIST,
)
from observability.logger import log_event, preview
from observability.metrics import timed
from orchestrator.synthesis_config import SynthesisConfig


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class Transcript:
    generation: int
    text: str


@dataclass(frozen=True)
class Reply:
    generation: int
    text: str


@dataclass(frozen=True)
class AudioOut:
    generation: int
    audio: bytes = field(repr=False)
    audio_format: str = "mp3"


PipelineResult = Union[Transcript, Reply, AudioOut]


# =============================================================================
# Transcript filter
# =============================================================================

def is_noise_transcript(text: str) -> bool:
    """
    True for transcripts that carry no usable request.

    Background sound commonly transcribes to a bare period or a polite
    filler; those and anything shorter than the minimum are dropped.
    """
    trimmed = text.strip()
    if len(trimmed) < TRANSCRIPT_MIN_CHARS:
        return True
    return trimmed.lower() in TRANSCRIPT_NOISE_DENYLIST


# =============================================================================
# Pipeline
# =============================================================================

class SpeechPipeline:
    """
    Stateless stage sequencer shared by every session of a server.
    """

    def __init__(
        self,
        *,
        transcriber: Transcriber,
        responder: Responder,
        synthesizer: Synthesizer,
        retriever: Retriever | None = None,
        top_k: int = RETRIEVAL_TOP_K,
    ) -> None:
        self._transcriber = transcriber
        self._responder = responder
        self._synthesizer = synthesizer
        self._retriever = retriever or NullRetriever()
        self._top_k = top_k

    async def run(
        self,
        segment: AudioSegment,
        *,
        generation: int,
        get_synthesis_config: Callable[[], SynthesisConfig],
        session_id: str | None = None,
    ) -> AsyncIterator[PipelineResult]:
        # ------------------------------------------------------------------
        # 1. Transcribe
        # ------------------------------------------------------------------
        try:
            with timed(
                "transcribe",
                session_id=session_id,
                generation=generation,
                details={"samples": len(segment)},
            ) as extra:
                text = await self._transcriber.transcribe(segment.to_wav_bytes(), "wav")
                extra["chars"] = len(text)
        except TranscriptionError as exc:
            self._log(session_id, generation, "transcription_failed", error=str(exc))
            return

        text = text.strip()
        if is_noise_transcript(text):
            self._log(
                session_id,
                generation,
                "transcript_filtered",
                text=preview(text, LOG_PREVIEW_CHARS),
            )
            return

        yield Transcript(generation=generation, text=text)

        # ------------------------------------------------------------------
        # 2. Retrieve context (optional)
        # ------------------------------------------------------------------
        context = await self._retrieve_context(text, session_id, generation)

        # ------------------------------------------------------------------
        # 3. Generate reply
        # ------------------------------------------------------------------
        try:
            with timed(
                "generate",
                session_id=session_id,
                generation=generation,
                details={"context_chars": len(context)},
            ) as extra:
                reply_text = await self._responder.generate(text, context)
                extra["chars"] = len(reply_text)
        except GenerationError as exc:
            self._log(session_id, generation, "generation_failed", error=str(exc))
            reply_text = REPLY_FALLBACK_TEXT

        yield Reply(generation=generation, text=reply_text)

        # ------------------------------------------------------------------
        # 4. Synthesize (config snapshot taken now)
        # ------------------------------------------------------------------
        config = get_synthesis_config()
        try:
            with timed(
                "synthesize",
                session_id=session_id,
                generation=generation,
                details={"service": config.service, "voice": config.voice},
            ) as extra:
                synthesized = await self._synthesizer.synthesize(reply_text, config)
                extra["bytes"] = len(synthesized.audio)
        except SynthesisError as exc:
            self._log(
                session_id,
                generation,
                "synthesis_failed",
                service=config.service,
                error=str(exc),
            )
            return

        yield AudioOut(
            generation=generation,
            audio=synthesized.audio,
            audio_format=synthesized.audio_format,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _retrieve_context(
        self,
        query: str,
        session_id: str | None,
        generation: int,
    ) -> str:
        try:
            with timed("retrieve", session_id=session_id, generation=generation) as extra:
                snippets = await self._retriever.retrieve(query, top_k=self._top_k)
                extra["snippets"] = len(snippets)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # Retrieval is optional: any failure means "no context"
            self._log(
                session_id,
                generation,
                "retrieval_failed",
                error=f"{type(exc).__name__}: {exc}",
            )
            return ""

        return RETRIEVAL_SEPARATOR.join(s for s in snippets[: self._top_k] if s)

    @staticmethod
    def _log(session_id: str | None, generation: int, event_type: str, **fields) -> None:
        log_event({
            "event_type": "PIPELINE",
            "name": event_type,
            "session_id": session_id,
            "generation": generation,
            **fields,
        })
