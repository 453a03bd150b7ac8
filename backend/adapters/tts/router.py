"""
Synthesizer routing.

The router is what the pipeline talks to. It picks the provider named by
the config snapshot's `service` field and exposes the catalog of voices
every configured provider accepts.
"""

from __future__ import annotations

from typing import Iterable

from adapters.errors import SynthesisError
from adapters.tts.base import SynthesisProvider, SynthesizedAudio, Synthesizer
from orchestrator.synthesis_config import SynthesisConfig, VoiceCatalog


class SynthesizerRouter(Synthesizer):
    """Dispatch to one of several named providers."""

    def __init__(self, providers: Iterable[SynthesisProvider]) -> None:
        self._providers: dict[str, SynthesisProvider] = {}
        for provider in providers:
            if provider.name in self._providers:
                raise ValueError(f"duplicate synthesis provider: {provider.name}")
            self._providers[provider.name] = provider

    @property
    def services(self) -> tuple[str, ...]:
        return tuple(self._providers.keys())

    def catalog(self) -> VoiceCatalog:
        return VoiceCatalog({name: p.voices for name, p in self._providers.items()})

    async def synthesize(self, text: str, config: SynthesisConfig) -> SynthesizedAudio:
        provider = self._providers.get(config.service)
        if provider is None:
            raise SynthesisError(f"unknown synthesis provider: {config.service!r}")
        return await provider.synthesize(text, config)
