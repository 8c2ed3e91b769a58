"""
Unsubscribe history: what a user removed and when.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence
from uuid import uuid4

from subsweep.clients.record_store import RecordStore
from subsweep.core.errors import InvalidInputError, NotFoundError
from subsweep.models.history import (
    HISTORY_SORT_PREFIX,
    HistoryEntry,
    history_partition_key,
    history_sort_key,
)
from subsweep.services.ttl_cache import TTLCache
from subsweep.utils.clock import Clock, epoch_ms

logger = logging.getLogger(__name__)


class HistoryService:
    """History entries per user, read through a shared TTL cache."""

    MAX_LISTED = 100
    MAX_BULK_DELETE = 100

    def __init__(
        self,
        store: RecordStore,
        cache: TTLCache[List[HistoryEntry]],
        *,
        clock: Clock = epoch_ms,
    ) -> None:
        self._store = store
        self._cache = cache
        self._clock = clock

    @staticmethod
    def _cache_key(user_id: str) -> str:
        return f"history:{user_id}"

    def _load_all(self, user_id: str) -> List[HistoryEntry]:
        items = self._store.list_items_with_prefix(
            partition_key=history_partition_key(user_id),
            sort_key_prefix=HISTORY_SORT_PREFIX,
        )
        return [HistoryEntry.from_item(item) for item in items]

    def _get_entry(self, user_id: str, entry_id: str) -> Optional[HistoryEntry]:
        item = self._store.get_item(
            partition_key=history_partition_key(user_id),
            sort_key=history_sort_key(entry_id),
        )
        return HistoryEntry.from_item(item) if item else None

    def _delete_entry(self, user_id: str, entry_id: str) -> None:
        self._store.delete_item(
            partition_key=history_partition_key(user_id),
            sort_key=history_sort_key(entry_id),
        )

    def log_unsubscribe(
        self,
        *,
        user_id: str,
        channel_id: str,
        channel_title: str,
        channel_thumbnail: Optional[str] = None,
    ) -> HistoryEntry:
        unsubscribed_at = self._clock()
        entry = HistoryEntry(
            entry_id=f"{unsubscribed_at:013d}-{uuid4().hex[:12]}",
            user_id=user_id,
            channel_id=channel_id,
            channel_title=channel_title,
            channel_thumbnail=channel_thumbnail,
            unsubscribed_at=unsubscribed_at,
        )
        self._store.put_item(entry.to_item())
        self._cache.invalidate(self._cache_key(user_id))
        return entry

    def get_history(self, user_id: str) -> List[HistoryEntry]:
        """Newest entries first, at most ``MAX_LISTED``."""
        cache_key = self._cache_key(user_id)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return list(cached)

        entries = sorted(self._load_all(user_id), key=lambda e: e.entry_id, reverse=True)
        entries = entries[: self.MAX_LISTED]
        self._cache.set(cache_key, entries)
        return list(entries)

    def find(self, *, user_id: str, entry_id: str) -> HistoryEntry:
        """Return the caller's entry or raise ``NotFoundError``."""
        entry = self._get_entry(user_id, entry_id)
        if entry is None:
            raise NotFoundError("History entry not found.")
        return entry

    def remove(self, *, user_id: str, entry_id: str) -> None:
        self.find(user_id=user_id, entry_id=entry_id)
        self._delete_entry(user_id, entry_id)
        self._cache.invalidate(self._cache_key(user_id))

    def bulk_delete(self, *, user_id: str, entry_ids: Sequence[str]) -> int:
        """Delete the caller's entries among ``entry_ids``; unknown ids are skipped."""
        if len(entry_ids) > self.MAX_BULK_DELETE:
            raise InvalidInputError(f"Too many items (max {self.MAX_BULK_DELETE}).")
        deleted = 0
        for entry_id in entry_ids:
            if self._get_entry(user_id, entry_id) is None:
                continue
            self._delete_entry(user_id, entry_id)
            deleted += 1
        self._cache.invalidate(self._cache_key(user_id))
        return deleted

    def forget(self, *, user_id: str, entry_id: str) -> None:
        """Delete one entry without an existence check."""
        self._delete_entry(user_id, entry_id)
        self._cache.invalidate(self._cache_key(user_id))

    def delete_all(self, user_id: str) -> int:
        entries = self._load_all(user_id)
        for entry in entries:
            self._delete_entry(user_id, entry.entry_id)
        self._cache.invalidate(self._cache_key(user_id))
        if entries:
            logger.info("Deleted %s history entries for user %s", len(entries), user_id)
        return len(entries)


__all__ = ["HistoryService"]
