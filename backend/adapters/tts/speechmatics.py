"""
Speechmatics TTS adapter.

Performs one synthesis call per reply using the Speechmatics async TTS
API, collects the raw PCM16 16kHz output and wraps it in a WAV container
so the client can play it like any other encoded reply.

Architectural constraints:
- No chunking, retries, or timers live in this adapter.
- No state machine transitions or orchestration decisions.
- Provider failures surface as SynthesisError.
"""
from __future__ import annotations

import numpy as np
from speechmatics.tts import AsyncClient, OutputFormat, Voice # pyright: ignore[reportMissingTypeStubs] # pylint: disable=no-name-in-module, import-error

from adapters.errors import SynthesisError
from adapters.tts.base import SynthesisProvider, SynthesizedAudio
from audio.pcm import encode_wav
from constants import AUDIO_SAMPLE_RATE_HZ, TTS_PROVIDER_SPEECHMATICS
from orchestrator.synthesis_config import ProviderVoices, SynthesisConfig

_PROVIDER_CHUNK_SIZE = 4096


class SpeechmaticsSynthesizer(SynthesisProvider):
    """Speechmatics voices (PCM16 16kHz, delivered as WAV)."""

    name = TTS_PROVIDER_SPEECHMATICS

    _VOICE_MAP: dict[str, Voice] = {
        "sarah": Voice.SARAH,
        "theo": Voice.THEO,
        "megan": Voice.MEGAN,
    }

    _VOICES = ProviderVoices(
        voices=tuple(_VOICE_MAP.keys()),
        default_voice="sarah",
    )

    def __init__(self, *, api_key: str) -> None:
        self._api_key = api_key

    @property
    def voices(self) -> ProviderVoices:
        return self._VOICES

    async def synthesize(self, text: str, config: SynthesisConfig) -> SynthesizedAudio:
        voice = self._resolve_voice(config.voice)
        try:
            pcm = bytearray()
            async with AsyncClient(api_key=self._api_key) as client:
                async with await client.generate(
                    text=text,
                    voice=voice,
                    output_format=OutputFormat.RAW_PCM_16000,
                ) as response:
                    async for chunk in response.content.iter_chunked(_PROVIDER_CHUNK_SIZE):
                        pcm.extend(chunk)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise SynthesisError(f"{type(exc).__name__}: {exc}") from exc

        if len(pcm) % 2 == 1:
            # Truncated trailing sample
            del pcm[-1]
        if not pcm:
            raise SynthesisError("speechmatics returned no audio")

        samples = np.frombuffer(bytes(pcm), dtype="<i2")
        return SynthesizedAudio(
            audio=encode_wav(samples, AUDIO_SAMPLE_RATE_HZ),
            audio_format="wav",
        )

    @classmethod
    def _resolve_voice(cls, voice: str | None) -> Voice:
        """
        Convert user-facing voice string to Speechmatics Voice enum.

        Defaults to SARAH if unknown.
        """
        if voice is None:
            return Voice.SARAH
        return cls._VOICE_MAP.get(voice.lower(), Voice.SARAH)
