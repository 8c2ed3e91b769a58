"""
Fixed-window rate limiting backed by the record store.

Windows are not sliding: a caller may spend a full budget just before a
window lapses and another full budget right after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from subsweep.clients.record_store import Item, RecordStore
from subsweep.models.rate_limit import RateLimitWindow, WINDOW_SORT_KEY, window_partition_key
from subsweep.utils.clock import Clock, epoch_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_ms: int = 0


class FixedWindowRateLimiter:
    """Counts calls per key inside a fixed window persisted in the record store."""

    def __init__(self, store: RecordStore, *, clock: Clock = epoch_ms) -> None:
        self._store = store
        self._clock = clock

    def check_and_increment(self, key: str, limit: int, window_ms: int) -> RateLimitDecision:
        """
        Admit or deny one call for ``key``.

        The load, the expiry check and the write happen in one atomic store
        transaction, so racing callers never double-count or double-create a
        window.
        """
        if limit < 1 or window_ms < 1:
            raise ValueError("limit and window_ms must be positive")

        def mutation(item: Optional[Item]) -> Tuple[Optional[Item], RateLimitDecision]:
            now = self._clock()
            window = RateLimitWindow.from_item(item) if item else None

            if window is None or window.is_expired(now):
                fresh = RateLimitWindow(key=key, count=1, window_expires_at=now + window_ms)
                return fresh.to_item(), RateLimitDecision(
                    allowed=True, limit=limit, remaining=limit - 1
                )

            if window.count >= limit:
                return None, RateLimitDecision(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    retry_after_ms=window.window_expires_at - now,
                )

            window.count += 1
            return window.to_item(), RateLimitDecision(
                allowed=True, limit=limit, remaining=limit - window.count
            )

        decision = self._store.transact_item(
            partition_key=window_partition_key(key),
            sort_key=WINDOW_SORT_KEY,
            mutation=mutation,
        )
        if not decision.allowed:
            logger.info(
                "Rate limit reached for %s; retry in %sms", key, decision.retry_after_ms
            )
        return decision

    def reset(self, key: str) -> None:
        """Forget the window for ``key``; a no-op when none exists."""
        self._store.delete_item(
            partition_key=window_partition_key(key), sort_key=WINDOW_SORT_KEY
        )


__all__ = ["FixedWindowRateLimiter", "RateLimitDecision"]
