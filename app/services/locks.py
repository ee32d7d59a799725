import logging
from contextlib import contextmanager

import redis

from app.core.redis_config import (
    EVENT_LOCK_BLOCKING_TIMEOUT,
    EVENT_LOCK_TIMEOUT,
    event_lock_enabled,
    get_redis_url,
)
from app.services.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


def get_redis_client():
    """Get Redis client for locking."""
    return redis.from_url(get_redis_url(), decode_responses=True)


@contextmanager
def event_lock(event_id: int):
    """
    Hold the Redis lock for one event while its registration transaction runs.

    Requests for the same event queue here instead of piling up on the event
    row inside the database. The database lock taken by the transaction is what
    actually guards capacity, so with EVENT_LOCK_ENABLED off this is a no-op.
    """
    if not event_lock_enabled():
        yield
        return

    redis_client = get_redis_client()
    lock = redis_client.lock(
        f"event_lock:{event_id}",
        timeout=EVENT_LOCK_TIMEOUT,
        blocking_timeout=EVENT_LOCK_BLOCKING_TIMEOUT,
    )
    try:
        acquired = lock.acquire(blocking=True)
    except redis.exceptions.LockError as exc:
        raise ConflictError("Could not acquire lock, please try again.") from exc
    except redis.exceptions.RedisError as exc:
        logger.exception("event lock unavailable for event %s", event_id)
        raise StorageError() from exc
    if not acquired:
        raise ConflictError("Could not acquire lock, please try again.")

    try:
        yield
    finally:
        try:
            lock.release()
        except redis.exceptions.LockError:
            # TTL ran out before the transaction finished
            logger.warning("event lock for event %s expired before release", event_id)
