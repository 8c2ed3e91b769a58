"""
Domain models for OAuth credential persistence.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

CREDENTIAL_SORT_KEY = "oauth#google"


def credential_partition_key(user_id: str) -> str:
    return f"user#{user_id}"


class CredentialRecord(BaseModel):
    """A user's stored Google credential; token fields hold ciphertext only."""

    user_id: str = Field(..., description="Opaque user identifier.")
    access_token_encrypted: Optional[str] = Field(
        None, description="AES-GCM blob of the current access token."
    )
    refresh_token_encrypted: Optional[str] = Field(
        None, description="AES-GCM blob of the refresh token, when offline access was granted."
    )
    expires_at: Optional[int] = Field(
        None, description="Access token expiry in epoch milliseconds."
    )
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "CredentialRecord":
        return cls.model_validate(item)

    def to_item(self) -> Dict[str, Any]:
        item = self.model_dump(exclude_none=True)
        item["pk"] = credential_partition_key(self.user_id)
        item["sk"] = CREDENTIAL_SORT_KEY
        return item


__all__ = ["CREDENTIAL_SORT_KEY", "CredentialRecord", "credential_partition_key"]
