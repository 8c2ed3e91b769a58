"""
Read and write a user's stored Google credential.

Write methods take plaintext tokens and encrypt them here, immediately
before persistence; ciphertext is the only token form that reaches the
record store.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from subsweep.clients.record_store import Item, RecordStore
from subsweep.core.errors import AuthenticationRequiredError
from subsweep.models.oauth import CREDENTIAL_SORT_KEY, CredentialRecord, credential_partition_key
from subsweep.services.token_cipher import TokenCipherService
from subsweep.utils.clock import utc_now_iso

_TOKEN_FIELDS = ("access_token_encrypted", "refresh_token_encrypted", "expires_at")
_LEGACY_FIELDS = ("access_token", "refresh_token")


class TokenVault:
    """Credential record accessor over the shared record store."""

    def __init__(self, store: RecordStore, token_cipher: TokenCipherService) -> None:
        self._store = store
        self._cipher = token_cipher

    def get_item(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the raw stored item, including any legacy attributes."""
        return self._store.get_item(
            partition_key=credential_partition_key(user_id),
            sort_key=CREDENTIAL_SORT_KEY,
        )

    def get(self, user_id: str) -> Optional[CredentialRecord]:
        item = self.get_item(user_id)
        if not item:
            return None
        return CredentialRecord.from_item(item)

    def store_grant(
        self,
        user_id: str,
        *,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: Optional[int],
    ) -> CredentialRecord:
        """Persist a freshly granted credential, replacing any token fields present."""
        access_encrypted = self._cipher.encrypt(access_token)
        refresh_encrypted = self._cipher.encrypt(refresh_token) if refresh_token else None

        def mutation(item: Optional[Item]) -> Tuple[Item, CredentialRecord]:
            now_iso = utc_now_iso()
            base = dict(item or {})
            for field in _LEGACY_FIELDS:
                base.pop(field, None)
            # Keep a previously stored refresh token when the provider omits one.
            kept_refresh = base.get("refresh_token_encrypted")
            record = CredentialRecord(
                user_id=user_id,
                access_token_encrypted=access_encrypted,
                refresh_token_encrypted=refresh_encrypted or kept_refresh,
                expires_at=expires_at,
                created_at=base.get("created_at") or now_iso,
                updated_at=now_iso,
            )
            for field in _TOKEN_FIELDS:
                base.pop(field, None)
            return {**base, **record.to_item()}, record

        return self._store.transact_item(
            partition_key=credential_partition_key(user_id),
            sort_key=CREDENTIAL_SORT_KEY,
            mutation=mutation,
        )

    def save_refreshed_tokens(
        self,
        user_id: str,
        *,
        access_token: str,
        expires_at: int,
        refresh_token: Optional[str] = None,
    ) -> CredentialRecord:
        """
        Patch the token fields after a successful refresh in one atomic write.

        A rotated refresh token replaces the stored one; ``None`` leaves it
        unchanged. If the record vanished mid-refresh (sign-out or account
        deletion), nothing is written.
        """
        access_encrypted = self._cipher.encrypt(access_token)
        refresh_encrypted = self._cipher.encrypt(refresh_token) if refresh_token else None

        def mutation(item: Optional[Item]) -> Tuple[Optional[Item], Optional[CredentialRecord]]:
            if not item or not item.get("access_token_encrypted"):
                return None, None
            updated = dict(item)
            updated["access_token_encrypted"] = access_encrypted
            updated["expires_at"] = expires_at
            if refresh_encrypted:
                updated["refresh_token_encrypted"] = refresh_encrypted
            updated["updated_at"] = utc_now_iso()
            return updated, CredentialRecord.from_item(updated)

        record = self._store.transact_item(
            partition_key=credential_partition_key(user_id),
            sort_key=CREDENTIAL_SORT_KEY,
            mutation=mutation,
        )
        if record is None:
            raise AuthenticationRequiredError(
                "Credential was removed while it was being refreshed."
            )
        return record

    def encrypt_legacy_tokens(self, user_id: str) -> Optional[CredentialRecord]:
        """Replace plaintext ``access_token``/``refresh_token`` attributes with ciphertext."""

        def mutation(item: Optional[Item]) -> Tuple[Optional[Item], Optional[CredentialRecord]]:
            if not item:
                return None, None
            if not any(item.get(field) for field in _LEGACY_FIELDS):
                return None, CredentialRecord.from_item(item)
            updated = dict(item)
            legacy_access = updated.pop("access_token", None)
            legacy_refresh = updated.pop("refresh_token", None)
            if legacy_access and not updated.get("access_token_encrypted"):
                updated["access_token_encrypted"] = self._cipher.encrypt(legacy_access)
            if legacy_refresh and not updated.get("refresh_token_encrypted"):
                updated["refresh_token_encrypted"] = self._cipher.encrypt(legacy_refresh)
            updated.setdefault("user_id", user_id)
            updated["updated_at"] = utc_now_iso()
            return updated, CredentialRecord.from_item(updated)

        return self._store.transact_item(
            partition_key=credential_partition_key(user_id),
            sort_key=CREDENTIAL_SORT_KEY,
            mutation=mutation,
        )

    def clear(self, user_id: str) -> None:
        """Drop all three token fields together, keeping the record itself."""

        def mutation(item: Optional[Item]) -> Tuple[Optional[Item], None]:
            if not item:
                return None, None
            updated = {
                key: value
                for key, value in item.items()
                if key not in _TOKEN_FIELDS and key not in _LEGACY_FIELDS
            }
            updated["updated_at"] = utc_now_iso()
            return updated, None

        self._store.transact_item(
            partition_key=credential_partition_key(user_id),
            sort_key=CREDENTIAL_SORT_KEY,
            mutation=mutation,
        )

    def delete(self, user_id: str) -> None:
        self._store.delete_item(
            partition_key=credential_partition_key(user_id),
            sort_key=CREDENTIAL_SORT_KEY,
        )


__all__ = ["TokenVault"]
