"""
Bounded-concurrency execution of independent per-item remote calls.

Items are processed in fixed-size batches: batches run one after another,
the items inside a batch run concurrently. Every item yields exactly one
``Ok`` or ``Err`` outcome.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Sequence, TypeVar, Union

from subsweep.core.errors import GuardError

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")

DEFAULT_BATCH_SIZE = 10


@dataclass(frozen=True)
class Ok(Generic[ItemT, ResultT]):
    item: ItemT
    value: ResultT


@dataclass(frozen=True)
class Err(Generic[ItemT]):
    item: ItemT
    reason: str


Outcome = Union[Ok[ItemT, Any], Err[ItemT]]


@dataclass
class BatchResult(Generic[ItemT]):
    """Outcomes in input order."""

    outcomes: List[Outcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[ItemT]:
        return [outcome.item for outcome in self.outcomes if isinstance(outcome, Ok)]

    @property
    def failed(self) -> List[Err[ItemT]]:
        return [outcome for outcome in self.outcomes if isinstance(outcome, Err)]


def describe_failure(exc: BaseException) -> str:
    """Human-readable reason for a failed item."""
    if isinstance(exc, GuardError):
        return exc.user_message
    message = str(exc).strip()
    if message:
        return message
    return exc.__class__.__name__ or "Unknown error"


class BatchCoordinator:
    """Runs ``action`` over items, ``batch_size`` at a time."""

    def __init__(self, *, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    async def _run_one(
        self, item: ItemT, action: Callable[[ItemT], Awaitable[ResultT]]
    ) -> Outcome:
        try:
            value = await action(item)
        except Exception as exc:  # noqa: BLE001 - isolated per item
            reason = describe_failure(exc)
            logger.warning("Batch item %r failed: %s", item, reason)
            return Err(item=item, reason=reason)
        return Ok(item=item, value=value)

    async def run_batch(
        self,
        items: Sequence[ItemT],
        action: Callable[[ItemT], Awaitable[ResultT]],
    ) -> BatchResult[ItemT]:
        """
        Apply ``action`` to every item and collect one outcome per item.

        One item's exception never cancels its siblings. Exceptions raised
        before any item runs (bad arguments) propagate to the caller.
        """
        if not callable(action):
            raise TypeError("action must be callable")
        pending = list(items)

        result: BatchResult[ItemT] = BatchResult()
        for start in range(0, len(pending), self._batch_size):
            chunk = pending[start : start + self._batch_size]
            outcomes = await asyncio.gather(
                *(self._run_one(item, action) for item in chunk)
            )
            result.outcomes.extend(outcomes)
        return result


__all__ = [
    "BatchCoordinator",
    "BatchResult",
    "DEFAULT_BATCH_SIZE",
    "Err",
    "Ok",
    "Outcome",
    "describe_failure",
]
