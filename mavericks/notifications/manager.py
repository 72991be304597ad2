import asyncio
import logging
from typing import Dict, List

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationHub:
    """Live notification sockets, grouped by user"""

    def __init__(self):
        self.connections: Dict[str, List[WebSocket]] = {}
        self.lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket):
        await websocket.accept()
        async with self.lock:
            self.connections.setdefault(user_id, []).append(websocket)

    async def disconnect(self, user_id: str, websocket: WebSocket):
        async with self.lock:
            sockets = self.connections.get(user_id)
            if not sockets:
                return
            if websocket in sockets:
                sockets.remove(websocket)
            # Drop the user entry once the last socket is gone
            if not sockets:
                del self.connections[user_id]

    async def push(self, user_id: str, message: dict) -> int:
        """Send `message` to every socket of `user_id`; returns how many got it"""
        async with self.lock:
            targets = list(self.connections.get(user_id, []))

        delivered = 0
        for websocket in targets:
            try:
                await websocket.send_json(message)
                delivered += 1
            except Exception as e:
                logger.info("Dropping dead notification socket for %s: %s", user_id, e)
                await self.disconnect(user_id, websocket)
        return delivered
