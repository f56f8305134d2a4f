# matchup/services/dispatch.py
"""
Post-commit side effects: realtime events and notification delivery.

The RSVP engine and the lifecycle manager call into an `EffectDispatcher`
only after their transaction commits. Each effect is handed to `schedule`
(FastAPI's `BackgroundTasks.add_task` inside a request, an immediate call
otherwise); effects run in the order they were scheduled.
"""

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

from matchup.services.notification_policy import NotificationIntent

logger = logging.getLogger(__name__)


class RealtimePublisher(Protocol):
    def publish(self, game_id: str, event: str, payload: Dict[str, Any]) -> None:
        ...


class Notifier(Protocol):
    def deliver(self, intent: NotificationIntent) -> None:
        ...


def run_now(func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    func(*args, **kwargs)


class EffectDispatcher:

    def __init__(
        self,
        publisher: RealtimePublisher,
        notifier: Notifier,
        schedule: Optional[Callable[..., Any]] = None,
    ):
        self.publisher = publisher
        self.notifier = notifier
        self.schedule = schedule or run_now

    def publish(self, game_id: str, event: str, payload: Dict[str, Any]) -> None:
        self._submit(self._publish, game_id, event, payload)

    def notify(self, intents: Iterable[NotificationIntent]) -> None:
        for intent in intents:
            self._submit(self._deliver, intent)

    def _submit(self, func: Callable[..., Any], *args: Any) -> None:
        try:
            self.schedule(func, *args)
        except Exception as e:
            logger.error(f"Failed to schedule {func.__name__}: {e}", exc_info=True)

    def _publish(self, game_id: str, event: str, payload: Dict[str, Any]) -> None:
        try:
            self.publisher.publish(game_id, event, payload)
        except Exception as e:
            logger.error(
                f"Failed to publish {event} for game {game_id}: {e}",
                exc_info=True,
                extra={"game_id": game_id, "event": event},
            )

    def _deliver(self, intent: NotificationIntent) -> None:
        try:
            self.notifier.deliver(intent)
        except Exception as e:
            logger.error(
                f"Failed to deliver notification to user {intent.recipient_id}: {e}",
                exc_info=True,
            )
