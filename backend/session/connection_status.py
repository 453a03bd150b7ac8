"""
Connection status tracking for voice sessions.

Connection lifecycle is tracked separately from the state machine:
connection_status: DOWN | UP

This is pure data owned by SessionGateway, not by session state.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """
    Connection lifecycle status.

    Separate from and independent of the session State enum.
    IDLE can occur with any ConnectionStatus.
    """
    DOWN = "DOWN"  # Not connected (before accept, after disconnect)
    UP = "UP"      # Active WebSocket connection
