from fastapi import WebSocket
from typing import Dict, List, Set
import json
import logging

from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Open live-feed sockets, grouped by user and tagged with the feed they follow"""

    def __init__(self):
        self.active_connections: Dict[int, Set[WebSocket]] = {}
        self.feeds: Dict[WebSocket, str] = {}

    async def connect(self, websocket: WebSocket, user_id: int, feed: str):
        """Register an accepted WebSocket and greet it"""
        self.active_connections.setdefault(user_id, set()).add(websocket)
        self.feeds[websocket] = feed
        logger.info(f"User {user_id} joined {feed}. Open sockets for user: {len(self.active_connections[user_id])}")

        await self._send(websocket, "connection", feed=feed, message=f"Subscribed to {feed}")

    def disconnect(self, websocket: WebSocket, user_id: int):
        feed = self.feeds.pop(websocket, None)
        connections = self.active_connections.get(user_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            del self.active_connections[user_id]
        logger.info(f"User {user_id} left {feed}. Open sockets for user: {len(connections)}")

    async def _send(self, websocket: WebSocket, message_type: str, **payload) -> bool:
        message = {"type": message_type, **payload, "timestamp": utcnow().isoformat()}
        try:
            await websocket.send_text(json.dumps(message))
            return True
        except Exception as e:
            # The socket is going away; its session cleans up on disconnect
            logger.error(f"Error sending {message_type} to {self.feeds.get(websocket, 'unknown feed')}: {e}")
            return False

    async def send_snapshot(self, websocket: WebSocket, data: dict) -> bool:
        return await self._send(websocket, "snapshot", data=data)

    async def send_error(self, websocket: WebSocket, detail: str) -> bool:
        return await self._send(websocket, "error", detail=detail)

    def get_connected_users(self) -> List[int]:
        return list(self.active_connections.keys())

    def get_feed_counts(self) -> Dict[str, int]:
        """Number of open sockets per feed"""
        counts: Dict[str, int] = {}
        for feed in self.feeds.values():
            counts[feed] = counts.get(feed, 0) + 1
        return counts

    def get_total_connections(self) -> int:
        return len(self.feeds)


# Global instance
websocket_manager = WebSocketManager()
