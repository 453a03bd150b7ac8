"""
Route registration for the voice session API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire gateway to WebSocket lifecycle
- Pull dependencies from app.state
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from constants import AUDIO_SAMPLE_RATE_HZ
from observability.logger import log_event
from session.gateway import SessionGateway
from session.voice_session import VoiceSession

# Grace period for queued messages after the client is gone
SENDER_DRAIN_TIMEOUT_S = 2.0


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        return {
            "status": "ok",
            "sessions": app.state.registry.count,
        }

    @app.get("/api/config")
    async def api_config() -> dict[str, Any]: # pyright: ignore[reportUnusedFunction]
        catalog = app.state.voice_catalog
        default = catalog.resolve(app.state.config.default_synthesis_config())
        return {
            "ttsConfig": default.to_message(),
            "providers": catalog.describe(),
            "audio": {
                "sample_rate": AUDIO_SAMPLE_RATE_HZ,
                "channels": 1,
                "encoding": "pcm16",
            },
        }

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        gateway = SessionGateway(
            config=app.state.config,
            voice_catalog=app.state.voice_catalog,
            pipeline=app.state.pipeline,
            registry=app.state.registry,
        )

        session = await gateway.on_ws_connect()
        sender = asyncio.create_task(_send_outbound(ws, session))
        reason = "client_disconnect"

        try:
            while True:
                msg = await ws.receive()

                if msg["type"] == "websocket.disconnect":
                    break

                if msg.get("text") is not None:
                    await gateway.on_json_message(msg["text"])

                elif msg.get("bytes") is not None:
                    log_event({
                        "event_type": "BINARY_FRAME_IGNORED",
                        **session.log_context(),
                        "payload_len": len(msg["bytes"]),
                    })

        except WebSocketDisconnect:
            pass

        except Exception as exc:  # pylint: disable=broad-exception-caught
            reason = "server_error"
            log_event({
                "event_type": "WS_FATAL_ERROR",
                **session.log_context(),
                "exception": type(exc).__name__,
                "message": str(exc),
            })

        finally:
            await gateway.on_ws_disconnect(reason=reason)
            try:
                await asyncio.wait_for(sender, timeout=SENDER_DRAIN_TIMEOUT_S)
            except asyncio.TimeoutError:
                log_event({
                    "event_type": "SENDER_DRAIN_TIMEOUT",
                    **session.log_context(),
                    "pending": session.pending_outbound,
                })


async def _send_outbound(ws: WebSocket, session: VoiceSession) -> None:
    """
    Deliver the session's outbound messages in order.

    Runs for the lifetime of the connection so pipeline results reach the
    client without waiting for inbound traffic.
    """
    while True:
        msg = await session.next_outbound()
        if msg is None:
            return

        try:
            await ws.send_text(json.dumps(msg))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            # Socket is gone; the receive loop will notice and clean up
            log_event({
                "event_type": "WS_SEND_FAILED",
                **session.log_context(),
                "message_type": msg.get("type"),
                "exception": type(exc).__name__,
            })
            return
