from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from subsweep.core.errors import (
    InvalidInputError,
    NotAuthenticatedError,
    RemoteApiError,
)
from subsweep.schemas import SubscriptionRef
from subsweep.services.batch import BatchCoordinator
from subsweep.services.bulk_operations import BulkOperationsService, RemovalLedger
from subsweep.services.guarded_caller import GuardedYouTubeCaller
from subsweep.services.history import HistoryService
from subsweep.services.ttl_cache import TTLCache


class FakeCaller:
    """Records calls; ids listed in ``failing`` answer with a YouTube 404."""

    require_user = staticmethod(GuardedYouTubeCaller.require_user)

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()
        self.unsubscribed: list[str] = []
        self.subscribed: list[str] = []

    async def unsubscribe(self, user_id, subscription_id):
        if subscription_id in self.failing:
            raise RemoteApiError(http_status=404)
        self.unsubscribed.append(subscription_id)
        return {"success": True}

    async def subscribe(self, user_id, channel_id):
        if channel_id in self.failing:
            raise RemoteApiError(http_status=403, reason="quotaExceeded")
        self.subscribed.append(channel_id)
        return {"id": f"sub-{channel_id}"}


class ExplodingCoordinator(BatchCoordinator):
    async def run_batch(self, items, action):
        raise RuntimeError("event loop shut down")


class BrokenHistory(HistoryService):
    def log_unsubscribe(self, **kwargs):
        raise OSError("disk full")

    def forget(self, **kwargs):
        raise OSError("disk full")


def _channel(n: int) -> str:
    return "UC" + str(n).rjust(22, "x")


def _subs(count: int) -> list[SubscriptionRef]:
    return [
        SubscriptionRef(id=f"sub-{n}", channel_id=_channel(n), channel_title=f"Channel {n}")
        for n in range(count)
    ]


@pytest.fixture()
def history(store, clock) -> HistoryService:
    return HistoryService(store, TTLCache(), clock=clock)


@pytest.mark.asyncio
async def test_bulk_unsubscribe_restores_only_failed_items(history) -> None:
    caller = FakeCaller(failing={"sub-3", "sub-12"})
    service = BulkOperationsService(caller, history, BatchCoordinator())
    ledger = RemovalLedger()

    result = await service.bulk_unsubscribe(user_id="u1", subscriptions=_subs(15), view=ledger)

    assert len(ledger.removed) == 15
    assert ledger.restored == ["sub-3", "sub-12"]
    assert [err.item.id for err in result.failed] == ["sub-3", "sub-12"]
    assert result.failed[0].reason == "The requested YouTube resource was not found."
    assert len(result.succeeded) == 13

    logged = {entry.channel_title for entry in history.get_history("u1")}
    assert len(logged) == 13
    assert "Channel 3" not in logged


@pytest.mark.asyncio
async def test_bulk_unsubscribe_rejects_duplicate_ids(history) -> None:
    caller = FakeCaller()
    service = BulkOperationsService(caller, history, BatchCoordinator())
    ledger = RemovalLedger()

    with pytest.raises(InvalidInputError):
        await service.bulk_unsubscribe(
            user_id="u1", subscriptions=_subs(2) + _subs(1), view=ledger
        )

    assert caller.unsubscribed == []
    assert ledger.removed == []


@pytest.mark.asyncio
async def test_bulk_unsubscribe_rejects_oversized_requests(history) -> None:
    service = BulkOperationsService(FakeCaller(), history, BatchCoordinator())
    ledger = RemovalLedger()

    with pytest.raises(InvalidInputError):
        await service.bulk_unsubscribe(
            user_id="u1",
            subscriptions=_subs(BulkOperationsService.MAX_BULK_UNSUBSCRIBE + 1),
            view=ledger,
        )
    assert ledger.removed == []


@pytest.mark.asyncio
async def test_bulk_unsubscribe_requires_user(history) -> None:
    service = BulkOperationsService(FakeCaller(), history, BatchCoordinator())

    with pytest.raises(NotAuthenticatedError):
        await service.bulk_unsubscribe(user_id=None, subscriptions=_subs(1), view=RemovalLedger())


@pytest.mark.asyncio
async def test_whole_batch_failure_restores_everything(history) -> None:
    service = BulkOperationsService(FakeCaller(), history, ExplodingCoordinator())
    ledger = RemovalLedger()

    with pytest.raises(RuntimeError):
        await service.bulk_unsubscribe(user_id="u1", subscriptions=_subs(3), view=ledger)

    assert ledger.removed == ["sub-0", "sub-1", "sub-2"]
    assert ledger.restored == ["sub-0", "sub-1", "sub-2"]


@pytest.mark.asyncio
async def test_history_write_failure_does_not_fail_the_item(store, clock) -> None:
    history = BrokenHistory(store, TTLCache(), clock=clock)
    caller = FakeCaller()
    service = BulkOperationsService(caller, history, BatchCoordinator())
    ledger = RemovalLedger()

    result = await service.bulk_unsubscribe(user_id="u1", subscriptions=_subs(2), view=ledger)

    assert len(result.succeeded) == 2
    assert result.failed == []
    assert ledger.restored == []


@pytest.mark.asyncio
async def test_bulk_resubscribe_forgets_only_successful_entries(history, clock) -> None:
    entries = []
    for n in range(3):
        clock.advance(1)
        entries.append(
            history.log_unsubscribe(
                user_id="u1", channel_id=_channel(n), channel_title=f"Channel {n}"
            )
        )
    caller = FakeCaller(failing={_channel(1)})
    service = BulkOperationsService(caller, history, BatchCoordinator())
    ledger = RemovalLedger(id_of=str)

    result = await service.bulk_resubscribe(
        user_id="u1", entry_ids=[entry.entry_id for entry in entries], view=ledger
    )

    assert sorted(caller.subscribed) == [_channel(0), _channel(2)]
    assert [err.item for err in result.failed] == [entries[1].entry_id]
    assert ledger.restored == [entries[1].entry_id]
    assert [entry.entry_id for entry in history.get_history("u1")] == [entries[1].entry_id]


def _log_entries(history, clock, count: int, user_id: str = "u1"):
    entries = []
    for n in range(count):
        clock.advance(1)
        entries.append(
            history.log_unsubscribe(
                user_id=user_id, channel_id=_channel(n), channel_title=f"Channel {n}"
            )
        )
    return entries


@pytest.mark.asyncio
async def test_bulk_resubscribe_reports_unknown_and_foreign_ids(history, clock) -> None:
    (mine,) = _log_entries(history, clock, 1)
    (foreign,) = _log_entries(history, clock, 1, user_id="u2")
    caller = FakeCaller()
    service = BulkOperationsService(caller, history, BatchCoordinator())
    ledger = RemovalLedger(id_of=str)
    requested = ["missing", mine.entry_id, foreign.entry_id]

    result = await service.bulk_resubscribe(user_id="u1", entry_ids=requested, view=ledger)

    assert [outcome.item for outcome in result.outcomes] == requested
    assert result.succeeded == [mine.entry_id]
    assert [(err.item, err.reason) for err in result.failed] == [
        ("missing", "History entry not found."),
        (foreign.entry_id, "History entry not found."),
    ]
    assert ledger.removed == requested
    assert ledger.restored == ["missing", foreign.entry_id]
    assert caller.subscribed == [_channel(0)]
    assert len(history.get_history("u2")) == 1


@pytest.mark.asyncio
async def test_bulk_resubscribe_rejects_duplicate_and_oversized_requests(history, clock) -> None:
    (entry,) = _log_entries(history, clock, 1)
    caller = FakeCaller()
    service = BulkOperationsService(caller, history, BatchCoordinator())
    ledger = RemovalLedger(id_of=str)

    with pytest.raises(InvalidInputError):
        await service.bulk_resubscribe(
            user_id="u1", entry_ids=[entry.entry_id, entry.entry_id], view=ledger
        )
    with pytest.raises(InvalidInputError):
        await service.bulk_resubscribe(
            user_id="u1",
            entry_ids=[f"e{n}" for n in range(BulkOperationsService.MAX_BULK_RESUBSCRIBE + 1)],
            view=ledger,
        )

    assert caller.subscribed == []
    assert ledger.removed == []


@pytest.mark.asyncio
async def test_history_delete_failure_after_resubscribe_does_not_fail_the_item(
    store, clock
) -> None:
    history = BrokenHistory(store, TTLCache(), clock=clock)
    entries = _log_entries(HistoryService(store, TTLCache(), clock=clock), clock, 2)
    caller = FakeCaller()
    service = BulkOperationsService(caller, history, BatchCoordinator())
    ledger = RemovalLedger(id_of=str)

    result = await service.bulk_resubscribe(
        user_id="u1", entry_ids=[entry.entry_id for entry in entries], view=ledger
    )

    assert result.succeeded == [entry.entry_id for entry in entries]
    assert result.failed == []
    assert ledger.restored == []
    assert sorted(caller.subscribed) == [_channel(0), _channel(1)]
