"""
Bulk unsubscribe and bulk resubscribe on top of the batch coordinator.

Callers hide items from their visible list before the remote calls resolve
and must restore the ones that fail. That contract is the ``OptimisticView``
argument: required, and driven from the batch outcome rather than from
inside the per-item actions.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Generic, List, Optional, Protocol, Sequence, TypeVar

from subsweep.core.errors import InvalidInputError
from subsweep.schemas.subscriptions import SubscriptionRef
from subsweep.services.batch import BatchCoordinator, BatchResult
from subsweep.services.guarded_caller import GuardedYouTubeCaller
from subsweep.services.history import HistoryService

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ItemContraT = TypeVar("ItemContraT", contravariant=True)


class OptimisticView(Protocol[ItemContraT]):
    """The caller's visible list: hide items up front, restore failed ones."""

    def remove(self, item: ItemContraT) -> None: ...

    def restore(self, item: ItemContraT, reason: str) -> None: ...


class RemovalLedger(Generic[ItemT]):
    """``OptimisticView`` that records removals and restorations by item id."""

    def __init__(self, id_of: Callable[[ItemT], str] = lambda item: item.id) -> None:
        self._id_of = id_of
        self.removed: List[str] = []
        self.restored: List[str] = []

    def remove(self, item: ItemT) -> None:
        self.removed.append(self._id_of(item))

    def restore(self, item: ItemT, reason: str) -> None:
        self.restored.append(self._id_of(item))


def _apply_outcome(view: OptimisticView[ItemT], result: BatchResult[ItemT]) -> None:
    for failure in result.failed:
        view.restore(failure.item, failure.reason)


def _reject_duplicates(ids: Sequence[str]) -> None:
    if len(set(ids)) != len(ids):
        raise InvalidInputError("Each item may appear only once per request.")


class BulkOperationsService:
    """Many independent subscription changes with per-item failure isolation."""

    MAX_BULK_UNSUBSCRIBE = 100
    MAX_BULK_RESUBSCRIBE = 50

    def __init__(
        self,
        caller: GuardedYouTubeCaller,
        history: HistoryService,
        coordinator: BatchCoordinator,
    ) -> None:
        self._caller = caller
        self._history = history
        self._coordinator = coordinator

    async def _run_optimistically(
        self, items: Sequence[ItemT], view: OptimisticView[ItemT], action
    ) -> BatchResult[ItemT]:
        for item in items:
            view.remove(item)
        try:
            result = await self._coordinator.run_batch(items, action)
        except BaseException:
            for item in items:
                view.restore(item, "Bulk operation did not complete.")
            raise
        _apply_outcome(view, result)
        return result

    async def bulk_unsubscribe(
        self,
        *,
        user_id: Optional[str],
        subscriptions: Sequence[SubscriptionRef],
        view: OptimisticView[SubscriptionRef],
    ) -> BatchResult[SubscriptionRef]:
        """
        Unsubscribe from every subscription, 10 at a time.

        Confirmed removals are written to the history log; a history write
        failure is logged without failing the item, since YouTube already
        applied the change.
        """
        user_id = self._caller.require_user(user_id)
        if len(subscriptions) > self.MAX_BULK_UNSUBSCRIBE:
            raise InvalidInputError(f"Too many items (max {self.MAX_BULK_UNSUBSCRIBE}).")
        _reject_duplicates([sub.id for sub in subscriptions])

        async def action(sub: SubscriptionRef) -> Dict[str, bool]:
            outcome = await self._caller.unsubscribe(user_id, sub.id)
            try:
                self._history.log_unsubscribe(
                    user_id=user_id,
                    channel_id=sub.channel_id,
                    channel_title=sub.channel_title,
                    channel_thumbnail=sub.channel_thumbnail,
                )
            except Exception:  # noqa: BLE001 - history is secondary to the remote change
                logger.exception("Failed to record history for subscription %s", sub.id)
            return outcome

        result = await self._run_optimistically(list(subscriptions), view, action)
        logger.info(
            "Bulk unsubscribe for user %s: %s succeeded, %s failed",
            user_id,
            len(result.succeeded),
            len(result.failed),
        )
        return result

    async def bulk_resubscribe(
        self,
        *,
        user_id: Optional[str],
        entry_ids: Sequence[str],
        view: OptimisticView[str],
    ) -> BatchResult[str]:
        """
        Resubscribe to the channels behind history ``entry_ids``.

        Every requested id gets an outcome: ids that are unknown or belong to
        another user fail with ``NotFoundError``'s message. An entry leaves
        the history only after its subscribe succeeded; failing to delete it
        afterwards is logged without failing the item.
        """
        user_id = self._caller.require_user(user_id)
        if len(entry_ids) > self.MAX_BULK_RESUBSCRIBE:
            raise InvalidInputError(f"Too many items (max {self.MAX_BULK_RESUBSCRIBE}).")
        _reject_duplicates(entry_ids)

        async def action(entry_id: str) -> Dict[str, Any]:
            entry = self._history.find(user_id=user_id, entry_id=entry_id)
            response = await self._caller.subscribe(user_id, entry.channel_id)
            try:
                self._history.forget(user_id=user_id, entry_id=entry_id)
            except Exception:  # noqa: BLE001 - history is secondary to the remote change
                logger.exception("Failed to drop history entry %s after resubscribe", entry_id)
            return response

        result = await self._run_optimistically(list(entry_ids), view, action)
        logger.info(
            "Bulk resubscribe for user %s: %s succeeded, %s failed",
            user_id,
            len(result.succeeded),
            len(result.failed),
        )
        return result


__all__ = ["BulkOperationsService", "OptimisticView", "RemovalLedger"]
