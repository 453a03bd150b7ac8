"""
ElevenLabs TTS adapter.

Calls the ElevenLabs text-to-speech endpoint and collects the streamed
mp3 bytes into one blob. Voices are ElevenLabs voice IDs.
"""

from __future__ import annotations

from elevenlabs.client import AsyncElevenLabs

from adapters.errors import SynthesisError
from adapters.tts.base import SynthesisProvider, SynthesizedAudio
from constants import TTS_PROVIDER_ELEVENLABS
from orchestrator.synthesis_config import ProviderVoices, SynthesisConfig

_OUTPUT_FORMAT = "mp3_44100_128"


class ElevenLabsSynthesizer(SynthesisProvider):
    """ElevenLabs voices (mp3)."""

    name = TTS_PROVIDER_ELEVENLABS

    _VOICES = ProviderVoices(
        voices=(
            "21m00Tcm4TlvDq8ikWAM",  # Rachel
            "EXAVITQu4vr4xnSDxMaL",  # Bella
            "ErXwobaYiN019PkySvjV",  # Antoni
            "TxGEqnHWrfWFTfGW9XjX",  # Josh
        ),
        models=("eleven_turbo_v2", "eleven_multilingual_v2", "eleven_flash_v2_5"),
        default_voice="21m00Tcm4TlvDq8ikWAM",
        default_model="eleven_turbo_v2",
    )

    def __init__(self, *, api_key: str) -> None:
        self._client = AsyncElevenLabs(api_key=api_key)

    @property
    def voices(self) -> ProviderVoices:
        return self._VOICES

    async def synthesize(self, text: str, config: SynthesisConfig) -> SynthesizedAudio:
        try:
            chunks: list[bytes] = []
            async for chunk in self._client.text_to_speech.convert(
                voice_id=config.voice or self._VOICES.default_voice,
                model_id=config.model or self._VOICES.default_model,
                text=text,
                output_format=_OUTPUT_FORMAT,
            ):
                if chunk:
                    chunks.append(chunk)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise SynthesisError(f"{type(exc).__name__}: {exc}") from exc

        audio = b"".join(chunks)
        if not audio:
            raise SynthesisError("elevenlabs returned no audio")
        return SynthesizedAudio(audio=audio, audio_format="mp3")
