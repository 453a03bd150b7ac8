"""
OpenAI TTS adapter.

One `audio.speech.create` call per reply, mp3 output.
"""

from __future__ import annotations

from typing import Any

from adapters.errors import SynthesisError
from adapters.tts.base import SynthesisProvider, SynthesizedAudio
from constants import TTS_PROVIDER_OPENAI
from orchestrator.synthesis_config import ProviderVoices, SynthesisConfig


class OpenAISynthesizer(SynthesisProvider):
    """OpenAI speech endpoint (mp3)."""

    name = TTS_PROVIDER_OPENAI

    _VOICES = ProviderVoices(
        voices=("alloy", "echo", "fable", "onyx", "nova", "shimmer"),
        models=("tts-1", "tts-1-hd", "gpt-4o-mini-tts"),
        default_voice="alloy",
        default_model="tts-1",
    )

    def __init__(self, *, client: Any) -> None:  # Type: openai.AsyncOpenAI
        self._client = client

    @property
    def voices(self) -> ProviderVoices:
        return self._VOICES

    async def synthesize(self, text: str, config: SynthesisConfig) -> SynthesizedAudio:
        try:
            response = await self._client.audio.speech.create(
                model=config.model or self._VOICES.default_model,
                voice=config.voice or self._VOICES.default_voice,
                input=text,
                response_format="mp3",
            )
            audio = response.content
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise SynthesisError(f"{type(exc).__name__}: {exc}") from exc

        if not audio:
            raise SynthesisError("openai returned no audio")
        return SynthesizedAudio(audio=audio, audio_format="mp3")
