"""
JSON wire protocol for the voice session socket.

Inbound (client -> server):
    {"type": "start"}
    {"type": "stop"}
    {"type": "audio", "data": [int16, ...]}          # PCM16 mono @ 16kHz
    {"type": "setTTS", "config": {"service"?, "voice"?, "model"?}}

Outbound (server -> client):
    {"type": "state", "state": "idle"|"listening"|"processing"|"speaking"}
    {"type": "transcript", "text": str, "final": bool}
    {"type": "response", "text": str}
    {"type": "audio", "data": <base64>, "format": "mp3"|"wav"}
    {"type": "command", "action": "stopAudio"}
    {"type": "ttsConfigUpdated", "ttsConfig": {...}}
    {"type": "error", "message": str}

Parsing is strict about shape and lenient about extras: unknown top-level
keys are ignored, unknown `type` values parse to UnknownMessage so the
caller can log them without closing the connection.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

import numpy as np

from audio.pcm import samples_from_json


# -------------------------
# Exceptions
# -------------------------

class ProtocolError(Exception):
    """
    Raised when an inbound message cannot be interpreted.

    The message is dropped and logged; the connection stays open.
    """


# -------------------------
# Inbound messages
# -------------------------

@dataclass(frozen=True)
class StartMessage:
    pass


@dataclass(frozen=True)
class StopMessage:
    pass


@dataclass(frozen=True)
class AudioMessage:
    samples: np.ndarray = field(compare=False, repr=False)


@dataclass(frozen=True)
class SetTTSMessage:
    config: Mapping[str, Any]


@dataclass(frozen=True)
class UnknownMessage:
    kind: str


ClientMessage = Union[StartMessage, StopMessage, AudioMessage, SetTTSMessage, UnknownMessage]


def parse_client_message(payload: str | bytes) -> ClientMessage:
    """
    Decode one inbound text frame.

    Raises:
        ProtocolError for non-JSON payloads, non-object payloads, a missing
        or non-string `type`, invalid audio `data`, or a non-object
        setTTS `config`.
    """
    try:
        data = json.loads(payload)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError and UnicodeDecodeError are ValueErrors;
        # pathologically nested input exhausts the decoder stack
        raise ProtocolError(f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ProtocolError(f"message must be a JSON object, got {type(data).__name__}")

    kind = data.get("type")
    if not isinstance(kind, str):
        raise ProtocolError("message is missing a string 'type'")

    if kind == "start":
        return StartMessage()

    if kind == "stop":
        return StopMessage()

    if kind == "audio":
        try:
            samples = samples_from_json(data.get("data"))
        except ValueError as exc:
            raise ProtocolError(f"invalid audio data: {exc}") from exc
        return AudioMessage(samples=samples)

    if kind == "setTTS":
        config = data.get("config")
        if not isinstance(config, dict):
            raise ProtocolError("setTTS 'config' must be an object")
        return SetTTSMessage(config=config)

    return UnknownMessage(kind=kind)


# -------------------------
# Outbound builders
# -------------------------

def state_message(state: str) -> dict[str, Any]:
    return {"type": "state", "state": state}


def transcript_message(text: str, *, final: bool = True) -> dict[str, Any]:
    return {"type": "transcript", "text": text, "final": final}


def response_message(text: str) -> dict[str, Any]:
    return {"type": "response", "text": text}


def audio_message(audio: bytes, audio_format: str = "mp3") -> dict[str, Any]:
    """Encoded reply audio, base64 so it can travel inside JSON."""
    return {
        "type": "audio",
        "data": base64.b64encode(audio).decode("ascii"),
        "format": audio_format,
    }


def stop_audio_command() -> dict[str, Any]:
    return {"type": "command", "action": "stopAudio"}


def tts_config_message(tts_config: Mapping[str, Any]) -> dict[str, Any]:
    return {"type": "ttsConfigUpdated", "ttsConfig": dict(tts_config)}


def error_message(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message}
