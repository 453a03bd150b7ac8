# pylint: disable=missing-module-docstring,missing-function-docstring,missing-class-docstring

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from adapters.asr.openai_transcriber import OpenAITranscriber
from adapters.errors import GenerationError, SynthesisError, TranscriptionError
from adapters.llm.openai_responder import OpenAIResponder
from adapters.llm.prompts import CONTEXT_PREAMBLE, PERSONA_PROMPT_V1
from adapters.tts.openai_tts import OpenAISynthesizer
from adapters.tts.router import SynthesizerRouter
from orchestrator.synthesis_config import SynthesisConfig

from fakes import SPEECHMATICS_VOICES, FakeSynthesizer


# ---------------------------------------------------------------------
# Fake OpenAI-compatible client pieces
# ---------------------------------------------------------------------

class FakeTranscriptions:
    def __init__(self, text: str | None = "hello", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.kwargs: dict[str, Any] = {}

    async def create(self, **kwargs: Any) -> Any:
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeStream:
    def __init__(self, deltas: list[str | None]) -> None:
        self._deltas = deltas

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        for delta in self._deltas:
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=delta))])


class FakeCompletions:
    def __init__(self, deltas: list[str | None], error: Exception | None = None) -> None:
        self.deltas = deltas
        self.error = error
        self.kwargs: dict[str, Any] = {}

    async def create(self, **kwargs: Any) -> Any:
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return FakeStream(self.deltas)


class FakeSpeech:
    def __init__(self, content: bytes = b"mp3", error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.kwargs: dict[str, Any] = {}

    async def create(self, **kwargs: Any) -> Any:
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


# ---------------------------------------------------------------------
# Transcriber
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_transcriber_sends_named_wav_file():
    transcriptions = FakeTranscriptions("  hi there ")
    client = SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))

    text = await OpenAITranscriber(client=client, model="whisper-1").transcribe(b"RIFF", "wav")

    assert text == "  hi there "
    assert transcriptions.kwargs == {
        "model": "whisper-1",
        "file": ("segment.wav", b"RIFF", "audio/wav"),
    }


@pytest.mark.asyncio
async def test_transcriber_wraps_vendor_errors():
    transcriptions = FakeTranscriptions(error=TimeoutError("slow"))
    client = SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))

    with pytest.raises(TranscriptionError) as info:
        await OpenAITranscriber(client=client).transcribe(b"RIFF", "wav")

    assert isinstance(info.value.__cause__, TimeoutError)


# ---------------------------------------------------------------------
# Responder
# ---------------------------------------------------------------------

def test_responder_messages_include_context_only_when_present():
    responder = OpenAIResponder(client=None, model="m")

    assert responder.build_messages("hi", "") == [
        {"role": "system", "content": PERSONA_PROMPT_V1},
        {"role": "user", "content": "hi"},
    ]
    assert responder.build_messages("hi", "facts") == [
        {"role": "system", "content": PERSONA_PROMPT_V1},
        {"role": "system", "content": CONTEXT_PREAMBLE + "facts"},
        {"role": "user", "content": "hi"},
    ]


@pytest.mark.asyncio
async def test_responder_collects_stream():
    completions = FakeCompletions(["Nine", None, " to five. "])
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))

    reply = await OpenAIResponder(client=client, model="gpt-4o-mini").generate("hours?", "")

    assert reply == "Nine to five."
    assert completions.kwargs["stream"] is True
    assert completions.kwargs["max_tokens"] == 150


@pytest.mark.asyncio
async def test_responder_empty_completion_is_an_error():
    client = SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(["", "  "])))

    with pytest.raises(GenerationError):
        await OpenAIResponder(client=client, model="m").generate("hours?", "")


@pytest.mark.asyncio
async def test_responder_wraps_vendor_errors():
    client = SimpleNamespace(
        chat=SimpleNamespace(completions=FakeCompletions([], error=ConnectionError("down")))
    )

    with pytest.raises(GenerationError):
        await OpenAIResponder(client=client, model="m").generate("hours?", "")


# ---------------------------------------------------------------------
# Synthesizers
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_openai_synthesizer_uses_config_voice_and_model():
    speech = FakeSpeech(b"ID3")
    client = SimpleNamespace(audio=SimpleNamespace(speech=speech))

    out = await OpenAISynthesizer(client=client).synthesize(
        "Hello.", SynthesisConfig(service="openai", voice="nova", model="tts-1-hd")
    )

    assert out.audio == b"ID3"
    assert out.audio_format == "mp3"
    assert speech.kwargs == {
        "model": "tts-1-hd",
        "voice": "nova",
        "input": "Hello.",
        "response_format": "mp3",
    }


@pytest.mark.asyncio
async def test_openai_synthesizer_empty_audio_is_an_error():
    client = SimpleNamespace(audio=SimpleNamespace(speech=FakeSpeech(b"")))

    with pytest.raises(SynthesisError):
        await OpenAISynthesizer(client=client).synthesize("Hi.", SynthesisConfig(service="openai"))


@pytest.mark.asyncio
async def test_router_dispatches_on_service():
    openai = FakeSynthesizer(audio=b"a")
    other = FakeSynthesizer(audio=b"b", name="speechmatics", voices=SPEECHMATICS_VOICES)
    router = SynthesizerRouter([openai, other])

    out = await router.synthesize("Hi.", SynthesisConfig(service="speechmatics", voice="theo"))

    assert out.audio == b"b"
    assert openai.calls == []
    assert router.services == ("openai", "speechmatics")
    assert set(router.catalog().services) == {"openai", "speechmatics"}


@pytest.mark.asyncio
async def test_router_unknown_service_is_a_synthesis_error():
    router = SynthesizerRouter([FakeSynthesizer()])

    with pytest.raises(SynthesisError):
        await router.synthesize("Hi.", SynthesisConfig(service="nope"))


def test_router_rejects_duplicate_names():
    with pytest.raises(ValueError):
        SynthesizerRouter([FakeSynthesizer(), FakeSynthesizer()])
