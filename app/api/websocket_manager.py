"""
WebSocket connection registry for live notification streams.

Tracks open sockets per user so the API can report live-channel statistics
and close every socket on shutdown. Delivery itself is done by each
connection's own ``LiveChannel``.
"""
import logging
from typing import Any, Dict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manage WebSocket connections per user."""

    def __init__(self):
        # user_id → set of WebSocket connections
        self.active_connections: Dict[int, Set[WebSocket]] = {}
        logger.info("✅ ConnectionManager initialized")

    async def connect(self, user_id: int, websocket: WebSocket):
        """Accept and register a user's WebSocket."""
        await websocket.accept()

        if user_id not in self.active_connections:
            self.active_connections[user_id] = set()

        self.active_connections[user_id].add(websocket)
        logger.info(
            f"🔌 User connected: user_id={user_id}, total={len(self.active_connections[user_id])}"
        )

    def disconnect(self, user_id: int, websocket: WebSocket):
        """Forget a user's WebSocket."""
        if user_id in self.active_connections:
            self.active_connections[user_id].discard(websocket)

            # Clean up empty sets
            if not self.active_connections[user_id]:
                del self.active_connections[user_id]

            logger.info(f"🔌 User disconnected: user_id={user_id}")

    def connection_count(self, user_id: int) -> int:
        return len(self.active_connections.get(user_id, ()))

    async def close_all(self, code: int = 1001) -> int:
        """Close every tracked socket (server shutdown)."""
        closed = 0
        for user_id, sockets in list(self.active_connections.items()):
            for websocket in list(sockets):
                try:
                    await websocket.close(code=code)
                    closed += 1
                except Exception as e:
                    logger.error(f"❌ Failed to close socket for user {user_id}: {e}")
        self.active_connections.clear()
        return closed

    def get_stats(self) -> Dict[str, Any]:
        """Get connection statistics."""
        return {
            "total_users": len(self.active_connections),
            "total_connections": sum(len(conns) for conns in self.active_connections.values()),
            "users": {
                user_id: len(conns)
                for user_id, conns in self.active_connections.items()
            },
        }


# Global instance
_manager: ConnectionManager | None = None


def get_connection_manager() -> ConnectionManager:
    """Get global ConnectionManager instance."""
    global _manager
    if _manager is None:
        _manager = ConnectionManager()
    return _manager


def set_connection_manager(manager: ConnectionManager | None):
    """Set global ConnectionManager instance."""
    global _manager
    _manager = manager
