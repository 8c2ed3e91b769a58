try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from concurrent.futures import ThreadPoolExecutor

import pytest

from subsweep.clients.dynamodb import DynamoDBClient
from subsweep.core.config import StorageSettings
from subsweep.services.rate_limiter import FixedWindowRateLimiter

try:
    from .fake_dynamodb import FakeTable
except Exception:  # pragma: no cover - fallback for direct execution
    from fake_dynamodb import FakeTable  # type: ignore


def test_allows_up_to_limit_then_denies(store, clock) -> None:
    limiter = FixedWindowRateLimiter(store, clock=clock)

    decisions = [limiter.check_and_increment("list:u1", 3, 1000) for _ in range(3)]
    assert [d.allowed for d in decisions] == [True, True, True]
    assert [d.remaining for d in decisions] == [2, 1, 0]

    clock.advance(400)
    denied = limiter.check_and_increment("list:u1", 3, 1000)
    assert denied.allowed is False
    assert denied.remaining == 0
    assert denied.retry_after_ms == 600


def test_denied_calls_do_not_extend_the_window(store, clock) -> None:
    limiter = FixedWindowRateLimiter(store, clock=clock)
    limiter.check_and_increment("k", 1, 1000)
    limiter.check_and_increment("k", 1, 1000)

    stored = store.get_item(partition_key="ratelimit#k", sort_key="window")
    assert stored["count"] == 1
    assert stored["window_expires_at"] == clock.now + 1000


def test_window_resets_once_expired(store, clock) -> None:
    limiter = FixedWindowRateLimiter(store, clock=clock)
    for _ in range(3):
        limiter.check_and_increment("list:u1", 3, 1000)

    clock.advance(1000)
    decision = limiter.check_and_increment("list:u1", 3, 1000)

    assert decision.allowed is True
    assert decision.remaining == 2


def test_keys_are_counted_independently(store, clock) -> None:
    limiter = FixedWindowRateLimiter(store, clock=clock)
    limiter.check_and_increment("list:u1", 1, 1000)

    assert limiter.check_and_increment("list:u1", 1, 1000).allowed is False
    assert limiter.check_and_increment("unsub:u1", 1, 1000).allowed is True
    assert limiter.check_and_increment("list:u2", 1, 1000).allowed is True


def test_reset_forgets_the_window(store, clock) -> None:
    limiter = FixedWindowRateLimiter(store, clock=clock)
    limiter.check_and_increment("k", 1, 1000)

    limiter.reset("k")
    limiter.reset("k")

    assert limiter.check_and_increment("k", 1, 1000).allowed is True


@pytest.mark.parametrize("limit, window_ms", [(0, 1000), (1, 0)])
def test_rejects_non_positive_arguments(store, limit, window_ms) -> None:
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(store).check_and_increment("k", limit, window_ms)


def test_concurrent_callers_never_exceed_the_limit(store) -> None:
    limiter = FixedWindowRateLimiter(store)

    def call(_):
        return limiter.check_and_increment("unsub:busy", 100, 60_000).allowed

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(call, range(200)))

    assert results.count(True) == 100
    stored = store.get_item(partition_key="ratelimit#unsub:busy", sort_key="window")
    assert stored["count"] == 100


def test_works_on_the_dynamodb_store(clock) -> None:
    client = DynamoDBClient(StorageSettings(), table=FakeTable())
    limiter = FixedWindowRateLimiter(client, clock=clock)

    assert limiter.check_and_increment("sub:u1", 2, 1000).allowed
    assert limiter.check_and_increment("sub:u1", 2, 1000).allowed
    assert not limiter.check_and_increment("sub:u1", 2, 1000).allowed

    clock.advance(1000)
    assert limiter.check_and_increment("sub:u1", 2, 1000).allowed
