"""Schemas related to credential revocation and account removal."""

from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, Field

RevocationStatus = Literal["revoked", "failed", "absent"]


class RevocationResponse(BaseModel):
    """Per-token revocation outcome; local credentials are cleared regardless."""

    access_token: RevocationStatus
    refresh_token: RevocationStatus
    cleared: bool = True
    errors: Dict[str, str] = Field(default_factory=dict)


class AccountDeletionResponse(BaseModel):
    status: Literal["deleted"] = "deleted"


__all__ = ["AccountDeletionResponse", "RevocationResponse", "RevocationStatus"]
