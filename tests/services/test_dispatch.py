# tests/services/test_dispatch.py

from unittest.mock import MagicMock

from matchup.services.dispatch import EffectDispatcher
from matchup.services.notification_policy import NotificationIntent

INTENT = NotificationIntent("u1", "Spot Available!", "You're in", "rsvp_update", {"gameId": "gam_1"})


def test_effects_run_in_scheduled_order():
    calls = []
    publisher = MagicMock()
    publisher.publish.side_effect = lambda game_id, event, payload: calls.append(event)
    notifier = MagicMock()
    notifier.deliver.side_effect = lambda intent: calls.append(intent.title)
    dispatcher = EffectDispatcher(publisher, notifier)

    dispatcher.publish("gam_1", "player-left", {"userId": "u0"})
    dispatcher.publish("gam_1", "player-promoted", {"userId": "u1"})
    dispatcher.notify([INTENT])

    assert calls == ["player-left", "player-promoted", "Spot Available!"]


def test_deferred_schedule_runs_nothing_until_drained():
    queued = []
    publisher, notifier = MagicMock(), MagicMock()
    dispatcher = EffectDispatcher(
        publisher, notifier, schedule=lambda func, *args: queued.append((func, args))
    )

    dispatcher.publish("gam_1", "player-joined", {})
    dispatcher.notify([INTENT, INTENT])

    publisher.publish.assert_not_called()
    assert len(queued) == 3
    for func, args in queued:
        func(*args)
    assert notifier.deliver.call_count == 2


def test_failures_are_logged_not_raised(caplog):
    publisher, notifier = MagicMock(), MagicMock()
    publisher.publish.side_effect = RuntimeError("redis down")
    notifier.deliver.side_effect = RuntimeError("db down")
    dispatcher = EffectDispatcher(publisher, notifier)

    dispatcher.publish("gam_1", "player-joined", {})
    dispatcher.notify([INTENT])

    assert "Failed to publish player-joined for game gam_1" in caplog.text
    assert "Failed to deliver notification to user u1" in caplog.text


def test_scheduler_failure_is_swallowed():
    def broken_schedule(func, *args):
        raise RuntimeError("no worker available")

    dispatcher = EffectDispatcher(MagicMock(), MagicMock(), schedule=broken_schedule)

    dispatcher.publish("gam_1", "game-updated", {})
