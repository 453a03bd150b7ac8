"""
Responder contract.

Purpose:
- Define the interface for reply generation.
- Keep all orchestration, fallbacks, timing, and staleness semantics
  OUT of the adapter.

Rules:
- This file contains NO logic.
- No retries.
- No knowledge of TTS, UI, or state machine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Responder(ABC):
    """
    Abstract base class for reply generators.

    The adapter is a *dumb pipe*:
    user text + context -> vendor -> reply text.

    Pipeline responsibilities (NOT here):
    - When to call
    - What to do on failure (fixed apology)
    - Whether the result is still wanted (generation gating)
    """

    @abstractmethod
    async def generate(self, prompt: str, context: str) -> str:
        """
        Produce a short spoken-style reply.

        Args:
            prompt:
                The user's transcribed utterance.
            context:
                Retrieved reference text; empty string when none.

        Raises:
            GenerationError on any provider failure or empty completion.
        """
        raise NotImplementedError
