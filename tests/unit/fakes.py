# pylint: disable=missing-module-docstring,missing-function-docstring,missing-class-docstring
"""Shared fake ports and builders for unit tests."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any

import numpy as np

from adapters.asr.base import Transcriber
from adapters.llm.base import Responder
from adapters.retrieval.base import Retriever
from adapters.tts.base import SynthesisProvider, SynthesizedAudio
from orchestrator.state_dataclass import SegmentationPolicy, SessionState
from orchestrator.synthesis_config import ProviderVoices, SynthesisConfig, VoiceCatalog


OPENAI_VOICES = ProviderVoices(
    voices=("alloy", "nova"),
    models=("tts-1", "tts-1-hd"),
    default_voice="alloy",
    default_model="tts-1",
)

SPEECHMATICS_VOICES = ProviderVoices(
    voices=("sarah", "theo"),
    default_voice="sarah",
)


def make_catalog() -> VoiceCatalog:
    return VoiceCatalog({"openai": OPENAI_VOICES, "speechmatics": SPEECHMATICS_VOICES})


def make_policy(
    *,
    silence_timeout_ms: int = 2000,
    max_segment_samples: int = 160_000,
    interruption_threshold: int = 500,
) -> SegmentationPolicy:
    return SegmentationPolicy(
        silence_timeout_ms=silence_timeout_ms,
        max_segment_samples=max_segment_samples,
        interruption_threshold=interruption_threshold,
    )


def make_state(**overrides: Any) -> SessionState:
    state = SessionState(
        policy=make_policy(),
        synthesis_config=SynthesisConfig(service="openai", voice="alloy", model="tts-1"),
        voice_catalog=make_catalog(),
    )
    return replace(state, **overrides)


def pcm(values: list[int] | range) -> np.ndarray:
    return np.asarray(list(values), dtype=np.int16)


# ---------------------------------------------------------------------
# Fake service ports
# ---------------------------------------------------------------------

class FakeTranscriber(Transcriber):
    def __init__(
        self,
        text: str = "what are your opening hours",
        *,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.text = text
        self.error = error
        self.gate = gate
        self.calls: list[tuple[bytes, str]] = []

    async def transcribe(self, audio: bytes, audio_format: str) -> str:
        self.calls.append((audio, audio_format))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.text


class FakeResponder(Responder):
    def __init__(self, reply: str = "We are open nine to five.", *, error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def generate(self, prompt: str, context: str) -> str:
        self.calls.append((prompt, context))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeRetriever(Retriever):
    def __init__(self, snippets: list[str] | None = None, *, error: Exception | None = None) -> None:
        self.snippets = snippets or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def retrieve(self, query: str, *, top_k: int) -> list[str]:
        self.calls.append((query, top_k))
        if self.error is not None:
            raise self.error
        return list(self.snippets)


class FakeSynthesizer(SynthesisProvider):
    name = "openai"

    def __init__(
        self,
        audio: bytes = b"ID3-fake-mp3",
        *,
        error: Exception | None = None,
        name: str = "openai",
        voices: ProviderVoices = OPENAI_VOICES,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.audio = audio
        self.error = error
        self.gate = gate
        self.name = name
        self._voices = voices
        self.calls: list[tuple[str, SynthesisConfig]] = []

    @property
    def voices(self) -> ProviderVoices:
        return self._voices

    async def synthesize(self, text: str, config: SynthesisConfig) -> SynthesizedAudio:
        self.calls.append((text, config))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return SynthesizedAudio(audio=self.audio, audio_format="mp3")
