"""
FastAPI routes for subscription management.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from subsweep.dependencies import (
    CurrentUser,
    get_account_service,
    get_bulk_operations_service,
    get_guarded_caller,
    get_history_service,
)
from subsweep.models.history import HistoryEntry
from subsweep.schemas import (
    AccountDeletionResponse,
    BatchOutcomeResponse,
    BulkUnsubscribeRequest,
    FailedItem,
    HistoryIdsRequest,
    RevocationResponse,
    SubscribeRequest,
    SubscriptionPage,
)
from subsweep.services import (
    AccountService,
    BulkOperationsService,
    GuardedYouTubeCaller,
    HistoryService,
    RemovalLedger,
)
from subsweep.services.batch import BatchResult

router = APIRouter()
logger = logging.getLogger(__name__)


def _outcome_response(
    result: BatchResult[Any], ledger: RemovalLedger[Any], id_of: Callable[[Any], str]
) -> BatchOutcomeResponse:
    return BatchOutcomeResponse(
        succeeded=[id_of(item) for item in result.succeeded],
        failed=[FailedItem(id=id_of(err.item), reason=err.reason) for err in result.failed],
        restored=list(ledger.restored),
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/subscriptions", status_code=HTTPStatus.OK)
async def list_subscriptions(
    user_id: CurrentUser,
    caller: Annotated[GuardedYouTubeCaller, Depends(get_guarded_caller)],
    page_token: Optional[str] = Query(
        default=None, description="Continuation token from a previous page."
    ),
) -> Dict[str, Any]:
    page: SubscriptionPage = await caller.list_subscriptions(user_id, page_token=page_token)
    return page.model_dump(by_alias=True, exclude_none=True)


@router.post("/subscriptions", status_code=HTTPStatus.OK)
async def subscribe(
    payload: SubscribeRequest,
    user_id: CurrentUser,
    caller: Annotated[GuardedYouTubeCaller, Depends(get_guarded_caller)],
) -> Dict[str, Any]:
    """Subscribe the signed-in user to a channel and return YouTube's resource."""
    return await caller.subscribe(user_id, payload.channel_id)


@router.delete("/subscriptions/{subscription_id}", status_code=HTTPStatus.OK)
async def unsubscribe(
    subscription_id: str,
    user_id: CurrentUser,
    caller: Annotated[GuardedYouTubeCaller, Depends(get_guarded_caller)],
) -> Dict[str, bool]:
    return await caller.unsubscribe(user_id, subscription_id)


@router.post(
    "/subscriptions/bulk-unsubscribe",
    response_model=BatchOutcomeResponse,
    status_code=HTTPStatus.OK,
)
async def bulk_unsubscribe(
    payload: BulkUnsubscribeRequest,
    user_id: CurrentUser,
    bulk: Annotated[BulkOperationsService, Depends(get_bulk_operations_service)],
) -> BatchOutcomeResponse:
    """Unsubscribe from many channels; failed items are reported, not raised."""
    ledger: RemovalLedger[Any] = RemovalLedger()
    result = await bulk.bulk_unsubscribe(
        user_id=user_id, subscriptions=payload.subscriptions, view=ledger
    )
    return _outcome_response(result, ledger, lambda sub: sub.id)


@router.get("/history", response_model=List[HistoryEntry], status_code=HTTPStatus.OK)
async def get_history(
    user_id: CurrentUser,
    history: Annotated[HistoryService, Depends(get_history_service)],
) -> List[HistoryEntry]:
    return history.get_history(GuardedYouTubeCaller.require_user(user_id))


@router.delete("/history/{entry_id}", status_code=HTTPStatus.OK)
async def delete_history_entry(
    entry_id: str,
    user_id: CurrentUser,
    history: Annotated[HistoryService, Depends(get_history_service)],
) -> Dict[str, bool]:
    history.remove(user_id=GuardedYouTubeCaller.require_user(user_id), entry_id=entry_id)
    return {"success": True}


@router.post("/history/bulk-delete", status_code=HTTPStatus.OK)
async def bulk_delete_history(
    payload: HistoryIdsRequest,
    user_id: CurrentUser,
    history: Annotated[HistoryService, Depends(get_history_service)],
) -> Dict[str, int]:
    deleted = history.bulk_delete(
        user_id=GuardedYouTubeCaller.require_user(user_id), entry_ids=payload.ids
    )
    return {"deleted": deleted}


@router.post(
    "/history/bulk-resubscribe",
    response_model=BatchOutcomeResponse,
    status_code=HTTPStatus.OK,
)
async def bulk_resubscribe(
    payload: HistoryIdsRequest,
    user_id: CurrentUser,
    bulk: Annotated[BulkOperationsService, Depends(get_bulk_operations_service)],
) -> BatchOutcomeResponse:
    """Resubscribe to channels from history; successful entries leave the history."""
    ledger: RemovalLedger[str] = RemovalLedger(id_of=str)
    result = await bulk.bulk_resubscribe(user_id=user_id, entry_ids=payload.ids, view=ledger)
    return _outcome_response(result, ledger, str)


@router.post("/auth/revoke", response_model=RevocationResponse, status_code=HTTPStatus.OK)
async def revoke_credential(
    user_id: CurrentUser,
    account: Annotated[AccountService, Depends(get_account_service)],
) -> RevocationResponse:
    """Revoke the stored Google tokens and sign the user out locally."""
    result = await account.revoke_credential(GuardedYouTubeCaller.require_user(user_id))
    return result.to_response()


@router.delete("/account", response_model=AccountDeletionResponse, status_code=HTTPStatus.OK)
async def delete_account(
    user_id: CurrentUser,
    account: Annotated[AccountService, Depends(get_account_service)],
) -> AccountDeletionResponse:
    resolved = GuardedYouTubeCaller.require_user(user_id)
    account.delete_all_user_data(resolved)
    logger.info("Account data deleted for user %s", resolved)
    return AccountDeletionResponse()


__all__ = ["router"]
