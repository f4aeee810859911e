"""Correlation of prediction ids with the tracking parameters used to create them.

``predictions.create`` returns before the prediction finishes; the caller
later polls ``predictions.get``. This store remembers the tracking parameters
given at creation time so that the later fetch events carry the same
distinct id, trace id, properties and groups.

Key Features:
    - Bounded: cachetools TTLCache evicts by size (LRU) and by age
    - Thread-safe: All operations protected by threading.Lock
    - Never raises on lookup: unknown ids yield empty tracking parameters
    - Statistics tracking: Hit/miss counts for debugging

Lifecycle of one prediction id:
    untracked -> tracked (create with tracking params)
    tracked -> tracked (get observing a non-terminal status)
    tracked -> untracked (get observing succeeded/failed/canceled, or eviction)
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from cachetools import TTLCache

from posthog_replicate.domain.value_objects import TrackingParams

logger = logging.getLogger(__name__)


class CorrelationStore:
    """Prediction id -> TrackingParams map owned by one wrapper instance.

    Attributes:
        max_size: Maximum number of remembered prediction ids.
        ttl_seconds: Time-to-live for each entry in seconds.
        _entries: Underlying TTLCache instance.
        _hits: Number of lookups that found an entry.
        _misses: Number of lookups that found nothing.
        _lock: Thread lock for thread-safe operations.

    Note:
        The lock is never held across an ``await``; every operation is a
        single dictionary access, so asyncio callers never block each other.
    """

    def __init__(self, max_size: int = 10_000, ttl_seconds: float = 86_400.0) -> None:
        """Initialize the store.

        Args:
            max_size: Maximum number of remembered prediction ids.
            ttl_seconds: Time-to-live for each entry in seconds.
        """
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._entries: TTLCache[str, TrackingParams] = TTLCache(
            maxsize=max_size, ttl=ttl_seconds
        )
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def put(self, prediction_id: str, params: TrackingParams) -> None:
        """Remember ``params`` for ``prediction_id``, replacing any prior entry.

        Empty tracking parameters are not stored.
        """
        if params.is_empty():
            return
        with self._lock:
            self._entries[prediction_id] = params
        logger.debug("Tracking prediction %s", prediction_id)

    def get(self, prediction_id: str) -> TrackingParams:
        """Return the parameters stored for ``prediction_id``.

        Returns:
            Stored TrackingParams, or an empty TrackingParams if the id is
            unknown, expired or evicted.
        """
        with self._lock:
            params = self._entries.get(prediction_id)
            if params is None:
                self._misses += 1
                return TrackingParams()
            self._hits += 1
            return params

    def delete(self, prediction_id: str) -> None:
        """Forget ``prediction_id``. No-op if it is not stored."""
        with self._lock:
            removed = self._entries.pop(prediction_id, None)
        if removed is not None:
            logger.debug("Stopped tracking prediction %s", prediction_id)

    def clear(self) -> None:
        """Forget every prediction id and reset statistics."""
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0

    def __contains__(self, prediction_id: object) -> bool:
        with self._lock:
            return prediction_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict[str, Any]:
        """Get store statistics.

        Returns:
            Dictionary with hit/miss counts, current size and bounds.
        """
        with self._lock:
            return {
                "hits": self._hits,
                "misses": self._misses,
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
            }


__all__ = ["CorrelationStore"]
