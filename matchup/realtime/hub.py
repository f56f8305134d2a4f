# matchup/realtime/hub.py
"""
Per-game broadcast channels for connected realtime clients.

Connections only need a non-blocking `send(message: dict)`. Publishing to
one game holds that game's channel lock while every subscriber is handed the
message, so each connection sees a game's events in publish order.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Connection(Protocol):
    def send(self, message: Dict[str, Any]) -> None:
        ...


def build_message(game_id: str, event: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"event": event, "gameId": game_id, "payload": payload}


class ChannelHub:

    def __init__(self):
        self._lock = threading.Lock()
        # game_id -> connections, in subscription order
        self._channels: Dict[str, Dict[Connection, None]] = {}
        self._channel_locks: Dict[str, threading.Lock] = {}

    def _channel_lock(self, game_id: str, create: bool = True) -> Optional[threading.Lock]:
        """The game's channel lock, or None for a channel nobody joined when `create` is off."""
        with self._lock:
            lock = self._channel_locks.get(game_id)
            if lock is None:
                if not create and game_id not in self._channels:
                    return None
                lock = self._channel_locks[game_id] = threading.Lock()
            return lock

    def subscribe(self, connection: Connection, game_id: str) -> None:
        with self._channel_lock(game_id):
            with self._lock:
                self._channels.setdefault(game_id, {})[connection] = None
        logger.debug(f"Connection subscribed to game {game_id}")

    def unsubscribe(self, connection: Connection, game_id: str) -> None:
        with self._channel_lock(game_id):
            with self._lock:
                self._remove(connection, game_id)

    def disconnect(self, connection: Connection) -> None:
        """Remove a connection from every channel it joined."""
        for game_id in self.channels_for(connection):
            self.unsubscribe(connection, game_id)

    def channels_for(self, connection: Connection) -> List[str]:
        with self._lock:
            return [
                game_id
                for game_id, members in self._channels.items()
                if connection in members
            ]

    def subscriber_count(self, game_id: str) -> int:
        with self._lock:
            return len(self._channels.get(game_id, {}))

    def publish(self, game_id: str, event: str, payload: Dict[str, Any]) -> int:
        """
        Hand the event to every subscriber of `game_id` once.

        A connection whose send fails is dropped from all channels. Returns
        the number of connections that accepted the message.
        """
        lock = self._channel_lock(game_id, create=False)
        if lock is None:
            return 0

        message = build_message(game_id, event, payload)
        failed = []
        delivered = 0
        with lock:
            with self._lock:
                members = list(self._channels.get(game_id, {}))
            for connection in members:
                try:
                    connection.send(message)
                    delivered += 1
                except Exception as e:
                    logger.warning(f"Dropping realtime connection on game {game_id}: {e}")
                    failed.append(connection)

        for connection in failed:
            self.disconnect(connection)
        return delivered

    def _remove(self, connection: Connection, game_id: str) -> None:
        # Caller holds self._lock
        members = self._channels.get(game_id)
        if members is not None:
            members.pop(connection, None)
            if members:
                return
            del self._channels[game_id]
        self._channel_locks.pop(game_id, None)


# Process-wide hub shared by the WebSocket endpoint and local publishers
channel_hub = ChannelHub()
