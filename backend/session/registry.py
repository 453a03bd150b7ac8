"""
Connection registry.

One per server instance. Tracks live sessions for liveness and health
reporting only; it never routes messages or touches session state.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from observability.logger import log_event

if TYPE_CHECKING:
    from session.voice_session import VoiceSession


class ConnectionRegistry:
    """Live sessions keyed by session_id."""

    def __init__(self) -> None:
        self._sessions: dict[str, VoiceSession] = {}
        self._total_registered = 0

    def register(self, session: VoiceSession) -> None:
        if session.session_id in self._sessions:
            raise ValueError(f"session already registered: {session.session_id}")
        self._sessions[session.session_id] = session
        self._total_registered += 1
        log_event({
            "event_type": "SESSION_REGISTERED",
            "session_id": session.session_id,
            "active_sessions": len(self._sessions),
        })

    def unregister(self, session_id: str) -> bool:
        """Remove a session. Returns False if it was not registered."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        log_event({
            "event_type": "SESSION_UNREGISTERED",
            "session_id": session_id,
            "active_sessions": len(self._sessions),
            "lifetime_s": round(time.time() - session.created_at, 3),
        })
        return True

    def get(self, session_id: str) -> VoiceSession | None:
        return self._sessions.get(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    @property
    def count(self) -> int:
        return len(self._sessions)

    @property
    def total_registered(self) -> int:
        return self._total_registered

    def snapshot(self) -> list[dict[str, Any]]:
        """Read-only view of every live session, for health reporting."""
        out: list[dict[str, Any]] = []
        for session in self._sessions.values():
            runtime = session.runtime
            out.append({
                **session.log_context(),
                "state": runtime.state.state.value if runtime is not None else None,
                "generation": runtime.state.generation if runtime is not None else None,
                "created_at": session.created_at,
            })
        return out
