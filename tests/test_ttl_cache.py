try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from subsweep.services.ttl_cache import TTLCache


class MonotonicStub:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = MonotonicStub()
    cache: TTLCache[str] = TTLCache(ttl_seconds=300, clock=clock)
    cache.set("k", "v")

    clock.now += 299
    assert cache.get("k") == "v"

    clock.now += 1
    assert cache.get("k") is None
    assert len(cache) == 0


def test_oldest_entry_is_evicted_when_full() -> None:
    cache: TTLCache[int] = TTLCache(max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)
    cache.set("c", 3)

    assert cache.get("b") is None
    assert cache.get("a") == 10
    assert cache.get("c") == 3


def test_invalidate_and_clear() -> None:
    cache: TTLCache[int] = TTLCache()
    cache.set("a", 1)
    cache.set("b", 2)

    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.get("a") is None

    cache.clear()
    assert len(cache) == 0


def test_max_entries_must_be_positive() -> None:
    with pytest.raises(ValueError):
        TTLCache(max_entries=0)
