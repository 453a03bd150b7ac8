"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object
- Build the per-server defaults injected into each session

Non-responsibilities:
- No orchestration logic
- No protocol constants
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from constants import (
    AUDIO_SAMPLE_RATE_HZ,
    INTERRUPTION_THRESHOLD_DEFAULT,
    LONG_FORM_SILENCE_TIMEOUT_MS,
    MAX_SEGMENT_SECONDS_DEFAULT,
    SEGMENTATION_PROFILE_SHORT,
    SHORT_FORM_SILENCE_TIMEOUT_MS,
    seconds_to_samples,
)
from orchestrator.state_dataclass import SegmentationPolicy
from orchestrator.synthesis_config import SynthesisConfig


def _optional_int(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


def _optional_float(name: str) -> float | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to app factory -> gateway -> session.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # LLM / transcription / embeddings (OpenAI-compatible endpoints)
    # ------------------------------------------------------------------

    llm_provider: str = "openai"
    llm_model: str = "gpt-4o-mini"
    openai_api_key: str | None = None
    groq_api_key: str | None = None

    transcription_model: str = "whisper-1"
    embedding_model: str = "text-embedding-3-small"

    # Blank-line separated snippets used for context retrieval
    knowledge_path: str | None = None

    # ------------------------------------------------------------------
    # Segmentation / barge-in
    # ------------------------------------------------------------------

    segmentation_profile: str = "long"
    silence_timeout_ms: int | None = None
    max_segment_seconds: float | None = None
    interruption_threshold: int | None = None

    # ------------------------------------------------------------------
    # TTS (server default; sessions may override via setTTS)
    # ------------------------------------------------------------------

    tts_provider: str = "openai"
    tts_voice: str | None = None
    tts_model: str | None = None
    speechmatics_api_key: str | None = None
    elevenlabs_api_key: str | None = None

    # ------------------------------------------------------------------
    # Derived defaults
    # ------------------------------------------------------------------

    def segmentation_policy(self) -> SegmentationPolicy:
        """
        Resolve the segmentation policy for new sessions.

        Explicit overrides win over the selected profile.
        """
        if self.segmentation_profile == SEGMENTATION_PROFILE_SHORT:
            silence_ms = SHORT_FORM_SILENCE_TIMEOUT_MS
        else:
            silence_ms = LONG_FORM_SILENCE_TIMEOUT_MS

        if self.silence_timeout_ms is not None:
            silence_ms = self.silence_timeout_ms

        max_seconds = (
            self.max_segment_seconds
            if self.max_segment_seconds is not None
            else MAX_SEGMENT_SECONDS_DEFAULT
        )

        threshold = (
            self.interruption_threshold
            if self.interruption_threshold is not None
            else INTERRUPTION_THRESHOLD_DEFAULT
        )

        return SegmentationPolicy(
            silence_timeout_ms=silence_ms,
            max_segment_samples=seconds_to_samples(max_seconds, AUDIO_SAMPLE_RATE_HZ),
            interruption_threshold=threshold,
        )

    def default_synthesis_config(self) -> SynthesisConfig:
        """Server-wide default; copied into each session on connect."""
        return SynthesisConfig(
            service=self.tts_provider,
            voice=self.tts_voice,
            model=self.tts_model,
        )

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric override is not a number.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),

            llm_provider=os.environ.get("LLM_PROVIDER", "openai"),
            llm_model=os.environ.get("LLM_MODEL", "gpt-4o-mini"),
            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            groq_api_key=os.environ.get("GROQ_API_KEY"),

            transcription_model=os.environ.get("TRANSCRIPTION_MODEL", "whisper-1"),
            embedding_model=os.environ.get("EMBEDDING_MODEL", "text-embedding-3-small"),
            knowledge_path=os.environ.get("KNOWLEDGE_PATH"),

            segmentation_profile=os.environ.get("SEGMENTATION_PROFILE", "long"),
            silence_timeout_ms=_optional_int("SILENCE_TIMEOUT_MS"),
            max_segment_seconds=_optional_float("MAX_SEGMENT_SECONDS"),
            interruption_threshold=_optional_int("INTERRUPTION_THRESHOLD"),

            tts_provider=os.environ.get("TTS_PROVIDER", "openai"),
            tts_voice=os.environ.get("TTS_VOICE"),
            tts_model=os.environ.get("TTS_MODEL"),
            speechmatics_api_key=os.environ.get("SPEECHMATICS_API_KEY"),
            elevenlabs_api_key=os.environ.get("ELEVENLABS_API_KEY"),
        )
