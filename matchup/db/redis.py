# matchup/db/redis.py
import redis
from matchup.core.config import settings


def get_redis_client():
    """
    Creates and returns a new Redis client instance.
    This is useful for creating fresh connections, like in the pub/sub relay.
    """
    return redis.from_url(settings.REDIS_URL, decode_responses=True)


# Shared instance; redis-py connects lazily on first command.
redis_client = get_redis_client()
