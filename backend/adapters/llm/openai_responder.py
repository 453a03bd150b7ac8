"""
OpenAI-compatible reply generation adapter.

Design notes:
- One request per turn; the completion is streamed and collected so the
  provider-side max_tokens cap and the first-token latency are both
  observable.
- The adapter is responsible ONLY for talking to the provider.
  It does NOT retry, substitute fallbacks, or decide orchestration outcomes.
"""

from __future__ import annotations

from typing import Any

from adapters.errors import GenerationError
from adapters.llm.base import Responder
from adapters.llm.prompts import CONTEXT_PREAMBLE, PERSONA_PROMPT_V1
from constants import REPLY_MAX_TOKENS


class OpenAIResponder(Responder):
    """Streaming chat completion collected into one reply string."""

    def __init__(
        self,
        *,
        client: Any,  # Type: openai.AsyncOpenAI
        model: str,
        provider: str = "openai",
        system_prompt: str = PERSONA_PROMPT_V1,
        max_tokens: int = REPLY_MAX_TOKENS,
    ) -> None:
        self._client = client
        self._model = model
        self._provider = provider
        self._system_prompt = system_prompt
        self._max_tokens = max_tokens

    def build_messages(self, prompt: str, context: str) -> list[dict[str, str]]:
        """
        Output format:
        [
            {"role": "system", "content": <persona>},
            {"role": "system", "content": <reference material>},   # only if context
            {"role": "user", "content": <prompt>},
        ]
        """
        messages: list[dict[str, str]] = [
            {"role": "system", "content": self._system_prompt},
        ]
        if context.strip():
            messages.append({"role": "system", "content": CONTEXT_PREAMBLE + context})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(self, prompt: str, context: str) -> str:
        try:
            stream = await self._client.chat.completions.create(
                model=self._model,
                messages=self.build_messages(prompt, context),
                max_tokens=self._max_tokens,
                stream=True,
            )

            parts: list[str] = []
            async for chunk in stream:
                delta = self._extract_delta(chunk)
                if delta:
                    parts.append(delta)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise GenerationError(f"{type(exc).__name__}: {exc}") from exc

        text = "".join(parts).strip()
        if not text:
            raise GenerationError("empty completion")
        return text

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_delta(chunk: Any) -> str:
        """
        Extract token delta from vendor response (OpenAI format).
        """
        try:
            delta = chunk.choices[0].delta
            return delta.content or ""
        except (AttributeError, IndexError):
            return ""
