"""Schemas for subscription listing and (bulk) subscription changes."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionPage(BaseModel):
    """One page of the signed-in user's subscriptions."""

    model_config = ConfigDict(populate_by_name=True)

    items: List[Dict[str, Any]] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")
    total_results: Optional[int] = Field(None, alias="totalResults")

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "SubscriptionPage":
        page_info = payload.get("pageInfo") or {}
        return cls(
            items=payload.get("items") or [],
            next_page_token=payload.get("nextPageToken"),
            total_results=page_info.get("totalResults"),
        )


class SubscribeRequest(BaseModel):
    channel_id: str = Field(..., description="Channel to subscribe to (UC + 22 characters).")


class SubscriptionRef(BaseModel):
    """A subscription the caller is removing from its visible list."""

    id: str = Field(..., min_length=1, description="YouTube subscription identifier.")
    channel_id: str
    channel_title: str
    channel_thumbnail: Optional[str] = None


class BulkUnsubscribeRequest(BaseModel):
    subscriptions: List[SubscriptionRef] = Field(default_factory=list)


class FailedItem(BaseModel):
    id: str
    reason: str


class BatchOutcomeResponse(BaseModel):
    """Aggregate outcome of a bulk operation."""

    succeeded: List[str] = Field(default_factory=list)
    failed: List[FailedItem] = Field(default_factory=list)
    restored: List[str] = Field(
        default_factory=list,
        description="Items whose optimistic removal was rolled back.",
    )


__all__ = [
    "BatchOutcomeResponse",
    "BulkUnsubscribeRequest",
    "FailedItem",
    "SubscribeRequest",
    "SubscriptionPage",
    "SubscriptionRef",
]
