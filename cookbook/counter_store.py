"""Redis-backed buffer for high-frequency recipe counters (views and likes)."""

import logging
from contextlib import contextmanager

import redis
from django.conf import settings

from cookbook.errors import FlushInProgress

logger = logging.getLogger(__name__)

METRIC_VIEWS = "views"
METRIC_LIKES = "likes"
METRICS = (METRIC_VIEWS, METRIC_LIKES)

FLUSH_LOCK_KEY = "recipe:counters:flush-lock"


def counter_key(metric: str) -> str:
    """Return the Redis hash holding pending increments for a metric."""
    if metric not in METRICS:
        raise ValueError(f"Unknown counter metric: {metric}")
    return f"recipe:{metric}"


class RedisCounterStore:
    """
    Pending counter deltas kept in one Redis hash per metric.

    Each hash maps entity id -> increments since the last flush. Fields are
    created implicitly by HINCRBY and the whole hash is removed when drained.
    """

    def __init__(self, client, lock_timeout: int = 300):
        self.client = client
        self.lock_timeout = lock_timeout

    def increment(self, metric: str, entity_id, amount: int = 1) -> int:
        return int(self.client.hincrby(counter_key(metric), str(entity_id), amount))

    def pending(self, metric: str, entity_id) -> int:
        value = self.client.hget(counter_key(metric), str(entity_id))
        return int(value) if value is not None else 0

    def drain(self, metric: str) -> dict:
        """Atomically read and clear the whole hash for a metric."""
        pipe = self.client.pipeline(transaction=True)
        pipe.hgetall(counter_key(metric))
        pipe.delete(counter_key(metric))
        counts, _ = pipe.execute()
        return dict(counts or {})

    @contextmanager
    def flush_lock(self):
        """Hold the advisory flush lock, raising FlushInProgress if it is taken."""
        lock = self.client.lock(FLUSH_LOCK_KEY, timeout=self.lock_timeout, blocking=False)
        if not lock.acquire(blocking=False):
            raise FlushInProgress("Another counter flush is already running.")
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                # Lock expired mid-flush; the TTL already freed it
                logger.warning("Counter flush lock expired before release")


_client = None


def get_redis_client():
    """Lazily build the shared Redis client from settings.REDIS_URL."""
    global _client
    if _client is None:
        _client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _client


def get_counter_store():
    """Return a counter store bound to the configured Redis instance."""
    return RedisCounterStore(get_redis_client(), lock_timeout=settings.COUNTER_FLUSH_LOCK_TIMEOUT)
