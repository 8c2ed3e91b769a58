"""Public schema exports."""

from .auth import AccountDeletionResponse, RevocationResponse, RevocationStatus
from .history import HistoryIdsRequest
from .subscriptions import (
    BatchOutcomeResponse,
    BulkUnsubscribeRequest,
    FailedItem,
    SubscribeRequest,
    SubscriptionPage,
    SubscriptionRef,
)

__all__ = [
    "AccountDeletionResponse",
    "BatchOutcomeResponse",
    "BulkUnsubscribeRequest",
    "FailedItem",
    "HistoryIdsRequest",
    "RevocationResponse",
    "RevocationStatus",
    "SubscribeRequest",
    "SubscriptionPage",
    "SubscriptionRef",
]
