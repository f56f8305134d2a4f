# tests/realtime/test_redis_bridge.py

import json
from unittest.mock import MagicMock

from matchup.realtime.hub import ChannelHub
from matchup.realtime.redis_bridge import RedisChannelPublisher, RedisRelay, channel_name


def test_channel_name_is_versioned_per_game():
    assert channel_name("gam_1", prefix="platform.games") == "platform.games.gam_1.v1"


def test_publisher_sends_json_envelope():
    redis_client = MagicMock()
    publisher = RedisChannelPublisher(redis_client, prefix="platform.games")

    publisher.publish("gam_1", "player-left", {"userId": "u1"})

    channel, raw = redis_client.publish.call_args.args
    assert channel == "platform.games.gam_1.v1"
    assert json.loads(raw) == {"event": "player-left", "gameId": "gam_1", "payload": {"userId": "u1"}}


def test_relay_feeds_local_hub():
    hub = MagicMock(spec=ChannelHub)
    relay = RedisRelay(MagicMock(), hub, prefix="platform.games")

    relay.handle_message(
        {
            "type": "pmessage",
            "channel": "platform.games.gam_1.v1",
            "data": json.dumps({"event": "game-updated", "gameId": "gam_1", "payload": {"id": "gam_1"}}),
        }
    )

    hub.publish.assert_called_once_with("gam_1", "game-updated", {"id": "gam_1"})


def test_relay_ignores_malformed_messages(caplog):
    hub = MagicMock(spec=ChannelHub)
    relay = RedisRelay(MagicMock(), hub, prefix="platform.games")

    relay.handle_message({"channel": "platform.games.x.v1", "data": "not json"})
    relay.handle_message({"channel": "platform.games.x.v1", "data": json.dumps({"event": "x"})})

    hub.publish.assert_not_called()
    assert "Ignoring malformed realtime message" in caplog.text


def test_relay_start_and_stop():
    redis_client = MagicMock()
    pubsub = redis_client.pubsub.return_value
    relay = RedisRelay(redis_client, ChannelHub(), prefix="platform.games")

    relay.start()
    relay.stop()

    redis_client.pubsub.assert_called_once_with(ignore_subscribe_messages=True)
    pattern = list(pubsub.psubscribe.call_args.kwargs)[0]
    assert pattern == "platform.games.*"
    pubsub.run_in_thread.return_value.stop.assert_called_once()
    pubsub.close.assert_called_once()
