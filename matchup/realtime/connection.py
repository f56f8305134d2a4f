# matchup/realtime/connection.py
"""
Adapter between a FastAPI WebSocket and the thread-safe hub.

`send` may be called from any thread (request workers, background tasks,
the Redis relay). Messages are queued onto the socket's event loop and a
single writer task drains them in order.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketConnection:

    def __init__(self, websocket: WebSocket, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.websocket = websocket
        self.loop = loop or asyncio.get_running_loop()
        self.outbox: "asyncio.Queue[Optional[Dict[str, Any]]]" = asyncio.Queue()
        self.closed = False

    def send(self, message: Dict[str, Any]) -> None:
        if self.closed:
            raise ConnectionError("websocket is closed")
        self.loop.call_soon_threadsafe(self.outbox.put_nowait, message)

    async def writer(self) -> None:
        """Drain the outbox until `close` enqueues the sentinel."""
        while True:
            message = await self.outbox.get()
            if message is None:
                break
            try:
                await self.websocket.send_json(message)
            except Exception as e:
                logger.info(f"Realtime send failed, closing writer: {e}")
                self.closed = True
                break

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.loop.call_soon_threadsafe(self.outbox.put_nowait, None)
