import logging
import redis
from typing import Optional

from app.config import settings

logger = logging.getLogger(__name__)

# Shared client for short-lived dispatch locks
redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Get or create the Redis client used for locks"""
    global redis_client
    if redis_client is None:
        redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
    return redis_client


def acquire_lock(key: str, ttl_seconds: int) -> bool:
    """
    Take a best-effort lock with SET NX EX.

    Returns False only when someone else holds the key. If Redis is down the
    lock is treated as acquired; the last_sent_date check still prevents a
    second dispatch on the same day once the first one commits.
    """
    try:
        return bool(get_redis_client().set(key, "1", nx=True, ex=ttl_seconds))
    except redis.RedisError as e:
        logger.warning("Redis unavailable, proceeding without lock %s: %s", key, e)
        return True


def close_redis():
    """Close Redis connection"""
    global redis_client
    if redis_client:
        redis_client.close()
        redis_client = None
