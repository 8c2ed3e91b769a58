"""Schemas for the unsubscribe history endpoints."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class HistoryIdsRequest(BaseModel):
    ids: List[str] = Field(default_factory=list)


__all__ = ["HistoryIdsRequest"]
