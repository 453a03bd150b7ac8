# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from audio.segmenter import AudioSegmenter
from session.registry import ConnectionRegistry
from session.voice_session import VoiceSession


def make_session(session_id: str) -> VoiceSession:
    return VoiceSession(
        session_id=session_id,
        segmenter=AudioSegmenter(max_segment_samples=10, sample_rate_hz=16_000),
    )


def test_register_and_unregister():
    registry = ConnectionRegistry()
    a, b = make_session("sess_a"), make_session("sess_b")

    registry.register(a)
    registry.register(b)

    assert registry.count == 2
    assert registry.get("sess_a") is a
    assert "sess_b" in registry

    assert registry.unregister("sess_a") is True
    assert registry.unregister("sess_a") is False
    assert len(registry) == 1
    assert registry.total_registered == 2


def test_duplicate_registration_is_rejected():
    registry = ConnectionRegistry()
    registry.register(make_session("sess_a"))

    with pytest.raises(ValueError):
        registry.register(make_session("sess_a"))


def test_snapshot_without_runtime():
    registry = ConnectionRegistry()
    registry.register(make_session("sess_a"))

    (entry,) = registry.snapshot()
    assert entry["session_id"] == "sess_a"
    assert entry["state"] is None
