# matchup/realtime/redis_bridge.py
"""
Redis pub/sub bridge for running more than one worker process.

`RedisChannelPublisher` sends every game event to Redis; `RedisRelay`
pattern-subscribes to all game channels and republishes into this
process's `ChannelHub`, so each worker reaches the sockets it holds.
"""

import json
import logging
from typing import Any, Dict, Optional

from matchup.core.config import settings
from matchup.realtime.hub import ChannelHub, build_message

logger = logging.getLogger(__name__)


def channel_name(game_id: str, prefix: Optional[str] = None) -> str:
    return f"{prefix or settings.REALTIME_CHANNEL_PREFIX}.{game_id}.v1"


class RedisChannelPublisher:

    def __init__(self, redis_client, prefix: Optional[str] = None):
        self.redis_client = redis_client
        self.prefix = prefix or settings.REALTIME_CHANNEL_PREFIX

    def publish(self, game_id: str, event: str, payload: Dict[str, Any]) -> None:
        message = build_message(game_id, event, payload)
        self.redis_client.publish(
            channel_name(game_id, self.prefix), json.dumps(message, default=str)
        )


class RedisRelay:

    def __init__(self, redis_client, hub: ChannelHub, prefix: Optional[str] = None):
        self.redis_client = redis_client
        self.hub = hub
        self.prefix = prefix or settings.REALTIME_CHANNEL_PREFIX
        self._pubsub = None
        self._thread = None

    def handle_message(self, message: Dict[str, Any]) -> None:
        try:
            data = json.loads(message["data"])
            self.hub.publish(data["gameId"], data["event"], data.get("payload") or {})
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed realtime message on {message.get('channel')}: {e}")

    def start(self) -> None:
        self._pubsub = self.redis_client.pubsub(ignore_subscribe_messages=True)
        self._pubsub.psubscribe(**{f"{self.prefix}.*": self.handle_message})
        self._thread = self._pubsub.run_in_thread(sleep_time=0.5, daemon=True)
        logger.info(f"Realtime relay listening on {self.prefix}.*")

    def stop(self) -> None:
        if self._thread is not None:
            self._thread.stop()
            self._thread = None
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None
