"""
OpenAI-compatible transcription adapter.

Sends one WAV segment per request to `audio.transcriptions.create`.
Works against OpenAI and Groq (same client, different base_url).
"""

from __future__ import annotations

from typing import Any

from adapters.asr.base import Transcriber
from adapters.errors import TranscriptionError

_MIME_TYPES: dict[str, str] = {
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
}


class OpenAITranscriber(Transcriber):
    """Whisper-style file transcription through an AsyncOpenAI client."""

    def __init__(
        self,
        *,
        client: Any,  # Type: openai.AsyncOpenAI
        model: str = "whisper-1",
        language: str | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._language = language

    async def transcribe(self, audio: bytes, audio_format: str) -> str:
        mime = _MIME_TYPES.get(audio_format, "application/octet-stream")
        kwargs: dict[str, Any] = {
            "model": self._model,
            "file": (f"segment.{audio_format}", audio, mime),
        }
        if self._language:
            kwargs["language"] = self._language

        try:
            result = await self._client.audio.transcriptions.create(**kwargs)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise TranscriptionError(f"{type(exc).__name__}: {exc}") from exc

        text = getattr(result, "text", None)
        if text is None:
            raise TranscriptionError("transcription response carried no text")
        return str(text)
