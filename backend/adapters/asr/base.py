"""
Transcriber contract.

This module defines the *interface only*: no buffering, endpointing,
retries, timers, or orchestration decisions live here.

Key invariants:
- A transcriber receives one complete, already-endpointed segment.
- It returns plain text or raises TranscriptionError; it never emits
  events and never touches session state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Transcriber(ABC):
    """
    Abstract speech -> text port.

    Implementations are responsible for:
    - Sending the encoded audio to the provider
    - Returning the recognized text (may be empty)
    - Wrapping provider failures in TranscriptionError

    Non-responsibilities:
    - No noise filtering (the pipeline decides what is usable)
    - No retries
    """

    @abstractmethod
    async def transcribe(self, audio: bytes, audio_format: str) -> str:
        """
        Transcribe one encoded audio segment.

        Args:
            audio: Encoded audio bytes (a complete file, e.g. WAV).
            audio_format: Container tag, e.g. "wav".

        Raises:
            TranscriptionError on any provider failure.
        """
        raise NotImplementedError
