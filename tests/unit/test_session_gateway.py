# pylint: disable=missing-module-docstring,missing-function-docstring

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

import session.gateway as gateway_mod
from config import AppConfig
from orchestrator.enums.state import State
from orchestrator.pipeline import SpeechPipeline
from session.connection_status import ConnectionStatus
from session.gateway import SessionGateway
from session.registry import ConnectionRegistry

from fakes import FakeResponder, FakeSynthesizer, FakeTranscriber, make_catalog


def make_gateway(
    *,
    registry: ConnectionRegistry | None = None,
    transcriber: FakeTranscriber | None = None,
    config: AppConfig | None = None,
) -> SessionGateway:
    pipeline = SpeechPipeline(
        transcriber=transcriber or FakeTranscriber(),
        responder=FakeResponder("Hello!"),
        synthesizer=FakeSynthesizer(),
    )
    return SessionGateway(
        config=config or AppConfig(silence_timeout_ms=50),
        voice_catalog=make_catalog(),
        pipeline=pipeline,
        registry=registry,
    )


async def collect_until_state(session, target: str, timeout: float = 2.0) -> list[dict[str, Any]]:
    """Read the outbound queue like the route's sender task does."""
    messages: list[dict[str, Any]] = []

    async def _read() -> None:
        while True:
            msg = await session.next_outbound()
            assert msg is not None
            messages.append(msg)
            if msg == {"type": "state", "state": target} and len(messages) > 1:
                return

    await asyncio.wait_for(_read(), timeout=timeout)
    return messages


@pytest.mark.asyncio
async def test_connect_builds_session_from_server_defaults():
    registry = ConnectionRegistry()
    gw = make_gateway(registry=registry)

    session = await gw.on_ws_connect()

    assert session.session_id.startswith("sess_")
    assert session.connection_status is ConnectionStatus.UP
    assert session.session_id in registry
    assert session.runtime is not None
    state = session.runtime.state
    assert state.state is State.IDLE
    assert state.policy.silence_timeout_ms == 50
    assert state.policy.max_segment_samples == 160_000
    # Server default "openai" resolved against the catalog
    assert state.synthesis_config.voice == "alloy"


@pytest.mark.asyncio
async def test_end_to_end_turn_over_json_messages():
    gw = make_gateway()
    session = await gw.on_ws_connect()

    samples = [0] * 16_000
    samples[8000] = 12_000

    await gw.on_json_message(json.dumps({"type": "start"}))
    await gw.on_json_message(json.dumps({"type": "audio", "data": samples}))

    messages = await collect_until_state(session, "listening")

    assert [m["type"] for m in messages] == [
        "state", "state", "transcript", "response", "state", "audio", "state",
    ]
    assert [m["state"] for m in messages if m["type"] == "state"] == [
        "listening", "processing", "speaking", "listening",
    ]
    audio = next(m for m in messages if m["type"] == "audio")
    assert audio["format"] == "mp3"


@pytest.mark.asyncio
async def test_malformed_messages_are_dropped_and_session_survives(monkeypatch: pytest.MonkeyPatch):
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(gateway_mod, "log_event", emitted.append)

    gw = make_gateway()
    session = await gw.on_ws_connect()

    await gw.on_json_message("{not json")
    await gw.on_json_message(json.dumps({"type": "audio", "data": [1, "x"]}))
    await gw.on_json_message(json.dumps({"type": "audio", "data": [10**30]}))
    await gw.on_json_message("[" * 100_000 + "]" * 100_000)
    await gw.on_json_message(json.dumps({"type": "dance"}))

    assert session.drain_control() == ()
    kinds = [e["event_type"] for e in emitted]
    assert kinds.count("PROTOCOL_ERROR") == 4
    assert "GATEWAY_INTERNAL_ERROR" not in kinds
    assert "UNKNOWN_MESSAGE_TYPE" in kinds

    await gw.on_json_message(json.dumps({"type": "start"}))
    assert session.drain_control() == ({"type": "state", "state": "listening"},)


@pytest.mark.asyncio
async def test_set_tts_is_per_session():
    gw_a = make_gateway()
    gw_b = make_gateway()
    session_a = await gw_a.on_ws_connect()
    session_b = await gw_b.on_ws_connect()

    await gw_a.on_json_message(
        json.dumps({"type": "setTTS", "config": {"service": "speechmatics", "voice": "theo"}})
    )

    assert session_a.drain_control() == ({
        "type": "ttsConfigUpdated",
        "ttsConfig": {"service": "speechmatics", "voice": "theo", "model": None},
    },)
    assert session_b.runtime is not None
    assert session_b.runtime.state.synthesis_config.service == "openai"


@pytest.mark.asyncio
async def test_unexpected_fault_sends_generic_error(monkeypatch: pytest.MonkeyPatch):
    gw = make_gateway()
    session = await gw.on_ws_connect()
    assert session.runtime is not None

    async def explode(event):
        raise RuntimeError("bug")

    monkeypatch.setattr(session.runtime, "handle_event", explode)

    await gw.on_json_message(json.dumps({"type": "start"}))

    (msg,) = session.drain_control()
    assert msg["type"] == "error"
    assert "bug" not in msg["message"]


@pytest.mark.asyncio
async def test_disconnect_closes_runtime_and_unregisters():
    registry = ConnectionRegistry()
    gw = make_gateway(registry=registry)
    session = await gw.on_ws_connect()

    await gw.on_json_message(json.dumps({"type": "start"}))
    session.drain_control()

    await gw.on_ws_disconnect(reason="client_disconnect")

    assert session.connection_status is ConnectionStatus.DOWN
    assert session.runtime is not None
    assert session.runtime.state.state is State.CLOSED
    assert len(registry) == 0
    # Sender task sees end-of-stream
    assert await session.next_outbound() is None

    # Idempotent
    await gw.on_ws_disconnect(reason="client_disconnect")


@pytest.mark.asyncio
async def test_stop_always_reports_idle():
    gw = make_gateway(config=AppConfig(silence_timeout_ms=5_000))
    session = await gw.on_ws_connect()

    await gw.on_json_message(json.dumps({"type": "stop"}))
    await gw.on_json_message(json.dumps({"type": "start"}))
    await gw.on_json_message(json.dumps({"type": "audio", "data": [1, 2, 3]}))
    await gw.on_json_message(json.dumps({"type": "stop"}))

    assert session.drain_control() == (
        {"type": "state", "state": "idle"},
        {"type": "state", "state": "listening"},
        {"type": "state", "state": "idle"},
    )
    assert session.segmenter.is_empty
