import os

# Redis configuration
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Per-event lock in front of the registration transaction
EVENT_LOCK_ENABLED = os.getenv("EVENT_LOCK_ENABLED", "false").lower() in ("1", "true", "yes")
EVENT_LOCK_TIMEOUT = float(os.getenv("EVENT_LOCK_TIMEOUT", "10"))
EVENT_LOCK_BLOCKING_TIMEOUT = float(os.getenv("EVENT_LOCK_BLOCKING_TIMEOUT", "5"))


def get_redis_url():
    return REDIS_URL


def event_lock_enabled() -> bool:
    return EVENT_LOCK_ENABLED
