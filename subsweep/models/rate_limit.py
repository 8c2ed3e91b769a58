"""
Fixed-window counter records used by the rate limiter.
"""

from typing import Any, Dict

from pydantic import BaseModel

WINDOW_SORT_KEY = "window"


def window_partition_key(key: str) -> str:
    return f"ratelimit#{key}"


class RateLimitWindow(BaseModel):
    """Requests observed for ``key`` in the window ending at ``window_expires_at``."""

    key: str
    count: int
    window_expires_at: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.window_expires_at

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "RateLimitWindow":
        return cls.model_validate(item)

    def to_item(self) -> Dict[str, Any]:
        item = self.model_dump()
        item["pk"] = window_partition_key(self.key)
        item["sk"] = WINDOW_SORT_KEY
        return item


__all__ = ["RateLimitWindow", "WINDOW_SORT_KEY", "window_partition_key"]
