"""Counter reconciliation between the Redis buffer and the recipe table."""

import logging
from dataclasses import dataclass, field

import redis
from django.db.models import F

from cookbook.counter_store import METRIC_LIKES, METRIC_VIEWS, get_counter_store
from cookbook.models import Recipe

logger = logging.getLogger(__name__)

DURABLE_FIELDS = {
    METRIC_VIEWS: "view_count",
    METRIC_LIKES: "like_count",
}


@dataclass
class FlushResult:
    updated: dict = field(default_factory=lambda: {METRIC_VIEWS: 0, METRIC_LIKES: 0})
    skipped: int = 0

    @property
    def total_updated(self):
        return sum(self.updated.values())


class CounterService:
    """
    Buffer view/like increments in the fast store and fold them into Recipe.

    Increments are commutative so the hot path takes no locks. Only the flush
    is serialised, through the store's flush lock.
    """

    def __init__(self, store, recipe_model=Recipe):
        self.store = store
        self.recipe_model = recipe_model

    def _record(self, metric, entity_id):
        try:
            self.store.increment(metric, entity_id)
        except redis.RedisError as e:
            # Lost increments are acceptable for vanity metrics
            logger.warning("Could not record recipe %s for %s: %s", metric, entity_id, e)

    def record_view(self, entity_id):
        self._record(METRIC_VIEWS, entity_id)

    def record_like(self, entity_id):
        self._record(METRIC_LIKES, entity_id)

    def pending_count(self, entity_id, metric):
        try:
            return self.store.pending(metric, entity_id)
        except redis.RedisError as e:
            logger.warning("Could not read pending %s for %s: %s", metric, entity_id, e)
            return 0

    def read_combined_count(self, entity_id, metric=METRIC_LIKES):
        """Durable count plus pending increments not yet flushed."""
        durable = (
            self.recipe_model.objects.filter(pk=entity_id)
            .values_list(DURABLE_FIELDS[metric], flat=True)
            .get()
        )
        return (durable or 0) + self.pending_count(entity_id, metric)

    def flush(self):
        """
        Drain every pending counter into the durable store.

        Raises FlushInProgress when another flush holds the lock. Draining
        clears the buffer before deltas are applied; if this process dies in
        between, the unapplied deltas are lost.
        """
        result = FlushResult()
        with self.store.flush_lock():
            for metric, column in DURABLE_FIELDS.items():
                counts = self.store.drain(metric)
                logger.info("Draining %d pending %s counters", len(counts), metric)
                for entity_id, raw in counts.items():
                    if self._apply(column, entity_id, raw):
                        result.updated[metric] += 1
                    else:
                        result.skipped += 1
        logger.info(
            "Counter flush applied %d updates (%d skipped)",
            result.total_updated,
            result.skipped,
        )
        return result

    def _apply(self, column, entity_id, raw):
        try:
            delta = int(raw)
            pk = int(entity_id)
        except (TypeError, ValueError):
            logger.warning("Skipping malformed %s counter %r=%r", column, entity_id, raw)
            return False
        if delta <= 0:
            return False
        updated = self.recipe_model.objects.filter(pk=pk).update(
            **{column: F(column) + delta}
        )
        if not updated:
            logger.warning("Dropping %s +%d for missing recipe %s", column, delta, entity_id)
            return False
        return True


def get_counter_service():
    """Build a CounterService bound to the configured Redis store."""
    return CounterService(get_counter_store())
