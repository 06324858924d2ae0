"""Cache invalidation hints for the rendering layer.

Mutating operations accept an opaque ``path`` naming the page that should be
re-rendered. This module records those hints and, when configured, publishes
them on a Redis channel the frontend subscribes to.
"""

from __future__ import annotations

import logging
from collections import deque
from threading import Lock

import redis

from convo_stage.core.settings import settings

logger = logging.getLogger(__name__)

_HISTORY_SIZE = 256


class PathRevalidator:
    """Forward page revalidation hints without interpreting them."""

    def __init__(self, *, publish: bool | None = None, redis_url: str | None = None) -> None:
        self._publish = settings.revalidation_redis_enabled if publish is None else publish
        self._channel = settings.revalidation_channel
        self._redis: redis.Redis | None = None
        if self._publish:
            self._redis = redis.from_url(redis_url or settings.redis_url)
        self._history: deque[str] = deque(maxlen=_HISTORY_SIZE)
        self._lock = Lock()

    @property
    def history(self) -> list[str]:
        """Return the most recent hints, oldest first."""
        with self._lock:
            return list(self._history)

    def revalidate(self, path: str | None) -> None:
        """Record ``path`` and publish it if Redis publishing is enabled.

        Publishing failures are logged and never propagate: the data change
        that triggered the hint has already been committed.
        """
        if not path:
            return
        with self._lock:
            self._history.append(path)
        logger.debug("Revalidating path %s", path)
        if self._redis is None:
            return
        try:
            self._redis.publish(self._channel, path)
        except redis.RedisError as exc:
            logger.warning("Failed to publish revalidation for %s: %s", path, exc)


_revalidator: PathRevalidator | None = None
_revalidator_lock = Lock()


def get_revalidator() -> PathRevalidator:
    """Return the process-wide revalidator, creating it once."""
    global _revalidator
    if _revalidator is None:
        with _revalidator_lock:
            if _revalidator is None:
                _revalidator = PathRevalidator()
    return _revalidator
