"""
Unsubscribe history entries.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel

HISTORY_SORT_PREFIX = "history#"


def history_partition_key(user_id: str) -> str:
    return f"user#{user_id}"


def history_sort_key(entry_id: str) -> str:
    return f"{HISTORY_SORT_PREFIX}{entry_id}"


class HistoryEntry(BaseModel):
    """A channel the user unsubscribed from."""

    entry_id: str
    user_id: str
    channel_id: str
    channel_title: str
    channel_thumbnail: Optional[str] = None
    unsubscribed_at: int

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "HistoryEntry":
        return cls.model_validate(item)

    def to_item(self) -> Dict[str, Any]:
        item = self.model_dump(exclude_none=True)
        item["pk"] = history_partition_key(self.user_id)
        item["sk"] = history_sort_key(self.entry_id)
        return item


__all__ = [
    "HISTORY_SORT_PREFIX",
    "HistoryEntry",
    "history_partition_key",
    "history_sort_key",
]
