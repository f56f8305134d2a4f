# matchup/core/kafka_producer.py

import json
import logging
import threading
from typing import Optional

from kafka import KafkaProducer

from matchup.core.config import settings

logger = logging.getLogger(__name__)

_producer: Optional[KafkaProducer] = None
_producer_lock = threading.Lock()


def _build_producer() -> KafkaProducer:
    return KafkaProducer(
        bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
        value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
        # Fail fast on connection issues instead of stalling a worker thread
        request_timeout_ms=5000,
    )


def get_kafka_singleton() -> Optional[KafkaProducer]:
    """
    Lazily create the process-wide producer used by background tasks.

    Returns None when Kafka is disabled or the broker cannot be reached,
    so callers can skip publishing without failing the request.
    """
    global _producer
    if not settings.KAFKA_ENABLED:
        return None
    if _producer is not None:
        return _producer
    with _producer_lock:
        if _producer is None:
            try:
                _producer = _build_producer()
            except Exception as e:
                logger.warning(f"Kafka producer unavailable: {e}")
                return None
    return _producer


def close_kafka_singleton() -> None:
    """Flush and close the shared producer (called on shutdown)."""
    global _producer
    with _producer_lock:
        if _producer is not None:
            try:
                _producer.flush()
                _producer.close()
            finally:
                _producer = None
