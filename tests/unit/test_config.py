# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from config import AppConfig
from orchestrator.synthesis_config import SynthesisConfig


def test_long_profile_is_the_default():
    policy = AppConfig().segmentation_policy()

    assert policy.silence_timeout_ms == 2000
    assert policy.max_segment_samples == 160_000
    assert policy.interruption_threshold == 500


def test_short_profile():
    policy = AppConfig(segmentation_profile="short").segmentation_policy()
    assert policy.silence_timeout_ms == 300


def test_explicit_overrides_win():
    policy = AppConfig(
        segmentation_profile="short",
        silence_timeout_ms=750,
        max_segment_seconds=2.5,
        interruption_threshold=1200,
    ).segmentation_policy()

    assert policy.silence_timeout_ms == 750
    assert policy.max_segment_samples == 40_000
    assert policy.interruption_threshold == 1200


def test_load_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LLM_PROVIDER", "groq")
    monkeypatch.setenv("SILENCE_TIMEOUT_MS", "400")
    monkeypatch.setenv("MAX_SEGMENT_SECONDS", "")
    monkeypatch.setenv("TTS_PROVIDER", "speechmatics")
    monkeypatch.setenv("TTS_VOICE", "theo")
    monkeypatch.delenv("TTS_MODEL", raising=False)

    config = AppConfig.load_from_env()

    assert config.llm_provider == "groq"
    assert config.silence_timeout_ms == 400
    assert config.max_segment_seconds is None
    assert config.default_synthesis_config() == SynthesisConfig(
        service="speechmatics", voice="theo", model=None
    )


def test_load_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("INTERRUPTION_THRESHOLD", "loud")

    with pytest.raises(ValueError):
        AppConfig.load_from_env()
