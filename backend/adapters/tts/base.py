"""
Synthesizer contract.

This module defines the *interface only*: no provider routing, retries,
timers, or orchestration decisions live here.

Key invariants:
- The synthesizer receives a SynthesisConfig snapshot taken by the
  caller at call time; it never reads session state itself.
- It returns encoded audio plus its container tag, or raises
  SynthesisError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from orchestrator.synthesis_config import ProviderVoices, SynthesisConfig


@dataclass(frozen=True)
class SynthesizedAudio:
    """Encoded reply audio as sent to the client."""
    audio: bytes = field(repr=False)
    audio_format: str


class Synthesizer(ABC):
    """
    Abstract text -> speech port.

    Implementations are responsible for:
    - Calling the TTS provider with the given voice/model
    - Returning the complete encoded audio
    - Wrapping provider failures in SynthesisError

    Non-responsibilities:
    - No text chunking
    - No playback or interruption handling
    - No retries
    """

    @abstractmethod
    async def synthesize(self, text: str, config: SynthesisConfig) -> SynthesizedAudio:
        """
        Synthesize one reply.

        Raises:
            SynthesisError on any provider failure or empty audio.
        """
        raise NotImplementedError


class SynthesisProvider(Synthesizer):
    """A concrete provider that can describe the voices it accepts."""

    name: str

    @property
    @abstractmethod
    def voices(self) -> ProviderVoices:
        raise NotImplementedError
