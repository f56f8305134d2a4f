# matchup/services/notification_service.py
"""
Delivers notification intents: an in-app row first, then a push request.

Every call is fire-and-forget. Failures are logged here and never reach the
RSVP engine or the request that triggered them.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from kafka.errors import KafkaError
from sqlalchemy.orm import Session
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from matchup import crud
from matchup.core.config import settings
from matchup.core.kafka_producer import get_kafka_singleton
from matchup.db.session import SessionLocal
from matchup.services.notification_policy import NotificationIntent

logger = logging.getLogger(__name__)


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=4),
    retry=retry_if_exception_type((KafkaError, ConnectionError, TimeoutError)),
    reraise=True,
)
def _send_push_with_retry(producer, topic: str, message: dict) -> None:
    future = producer.send(topic, value=message)
    # Block until acked so retries see broker failures
    future.get(timeout=settings.PUSH_SEND_TIMEOUT_SECONDS)


def build_push_message(intent: NotificationIntent) -> dict:
    return {
        "userId": intent.recipient_id,
        "title": intent.title,
        "body": intent.body,
        "data": intent.data,
        "requestedAt": datetime.now(timezone.utc).isoformat(),
    }


class NotificationService:
    """Persist and push notifications in their own database session."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        producer_factory: Callable[[], Optional[object]] = get_kafka_singleton,
    ):
        self.session_factory = session_factory
        self.producer_factory = producer_factory

    def deliver(self, intent: NotificationIntent) -> None:
        self._store(intent)
        self._push(intent)

    def _store(self, intent: NotificationIntent) -> None:
        db = self.session_factory()
        try:
            crud.notification.create(
                db,
                user_id=intent.recipient_id,
                title=intent.title,
                body=intent.body,
                type=intent.type,
                data=intent.data,
            )
        except Exception as e:
            db.rollback()
            logger.error(
                f"Failed to store notification for user {intent.recipient_id}: {e}",
                exc_info=True,
            )
        finally:
            db.close()

    def _push(self, intent: NotificationIntent) -> None:
        producer = self.producer_factory()
        if producer is None:
            logger.debug(f"Push disabled; skipping push for user {intent.recipient_id}")
            return
        try:
            _send_push_with_retry(
                producer, settings.PUSH_NOTIFICATION_TOPIC, build_push_message(intent)
            )
            logger.info(
                f"Queued push '{intent.title}' for user {intent.recipient_id}",
                extra={"game_id": intent.data.get("gameId")},
            )
        except Exception as e:
            logger.error(
                f"Failed to publish push notification for user {intent.recipient_id}: {e}",
                exc_info=True,
            )
