"""
Per-session speech synthesis configuration.

Rules:
- SynthesisConfig is an immutable value; a session holds exactly one.
- Updates produce a new value (never mutate in place), so a reader that
  grabbed the config before an update keeps a consistent snapshot.
- Validation is catalog-driven: only registered providers, and only
  voices / models the provider accepts, are applied.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class SynthesisConfig:
    """Selected provider + voice + model."""

    service: str
    voice: str | None = None
    model: str | None = None

    def to_message(self) -> dict[str, Any]:
        """Client-facing representation (ttsConfigUpdated payload)."""
        return {
            "service": self.service,
            "voice": self.voice,
            "model": self.model,
        }


@dataclass(frozen=True)
class ProviderVoices:
    """What one synthesis provider accepts."""

    voices: tuple[str, ...]
    models: tuple[str, ...] = ()
    default_voice: str | None = None
    default_model: str | None = None

    def accepts_voice(self, voice: str) -> bool:
        return voice in self.voices

    def accepts_model(self, model: str) -> bool:
        return model in self.models


class VoiceCatalog:
    """
    Read-only registry of synthesis providers and their voices.

    Built once per server instance from the providers that are actually
    configured, then shared by all sessions (it is never mutated).
    """

    def __init__(self, providers: Mapping[str, ProviderVoices]) -> None:
        self._providers: Mapping[str, ProviderVoices] = MappingProxyType(dict(providers))

    @property
    def services(self) -> tuple[str, ...]:
        return tuple(self._providers.keys())

    def get(self, service: str) -> ProviderVoices | None:
        return self._providers.get(service)

    def __contains__(self, service: object) -> bool:
        return service in self._providers

    def resolve(self, config: SynthesisConfig) -> SynthesisConfig:
        """
        Fill missing or unsupported voice/model with provider defaults.

        Unknown services are returned unchanged; the synthesizer router
        reports them as a synthesis failure at call time.
        """
        provider = self._providers.get(config.service)
        if provider is None:
            return config

        voice = config.voice
        if voice is None or not provider.accepts_voice(voice):
            voice = provider.default_voice

        model = config.model
        if provider.models and (model is None or not provider.accepts_model(model)):
            model = provider.default_model

        return replace(config, voice=voice, model=model)

    def describe(self) -> dict[str, Any]:
        """Serializable view for the config endpoint."""
        return {
            name: {
                "voices": list(p.voices),
                "models": list(p.models),
                "default_voice": p.default_voice,
                "default_model": p.default_model,
            }
            for name, p in self._providers.items()
        }


def apply_tts_update(
    current: SynthesisConfig,
    update: Mapping[str, Any],
    catalog: VoiceCatalog,
) -> tuple[SynthesisConfig, tuple[str, ...]]:
    """
    Merge a client setTTS payload into the current config.

    Returns:
        (new_config, ignored_keys)

    Rules:
    - `service` is applied only if registered. Switching provider resets
      voice/model to that provider's defaults unless the same update
      carries values the new provider accepts.
    - `voice` / `model` are applied only if the resulting provider
      accepts them.
    - Non-string values and unknown keys are ignored.
    """
    ignored: list[str] = []
    new = current

    for key in update:
        if key not in ("service", "voice", "model"):
            ignored.append(key)

    service = update.get("service")
    if "service" in update:
        if isinstance(service, str) and service in catalog:
            if service != current.service:
                new = catalog.resolve(SynthesisConfig(service=service))
        else:
            ignored.append("service")

    provider = catalog.get(new.service)

    if "voice" in update:
        voice = update.get("voice")
        if isinstance(voice, str) and provider is not None and provider.accepts_voice(voice):
            new = replace(new, voice=voice)
        else:
            ignored.append("voice")

    if "model" in update:
        model = update.get("model")
        if isinstance(model, str) and provider is not None and provider.accepts_model(model):
            new = replace(new, model=model)
        else:
            ignored.append("model")

    return new, tuple(ignored)
