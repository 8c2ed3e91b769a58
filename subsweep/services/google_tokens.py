"""
Helpers for retrieving and refreshing Google OAuth tokens.
"""

from __future__ import annotations

import logging
from typing import Optional

from subsweep.clients.google_auth import GoogleOAuthClient
from subsweep.core.errors import (
    AuthenticationRequiredError,
    DecryptionError,
    SessionExpiredError,
    TokenRefreshFailedError,
)
from subsweep.models.oauth import CredentialRecord
from subsweep.services.token_cipher import TokenCipherService
from subsweep.services.token_vault import TokenVault
from subsweep.utils.clock import Clock, epoch_ms

logger = logging.getLogger(__name__)


class GoogleTokenService:
    """Hands out usable access tokens, refreshing them shortly before expiry."""

    REFRESH_SKEW_MS = 5 * 60 * 1000

    def __init__(
        self,
        vault: TokenVault,
        oauth_client: GoogleOAuthClient,
        token_cipher: TokenCipherService,
        *,
        clock: Clock = epoch_ms,
    ) -> None:
        self._vault = vault
        self._oauth = oauth_client
        self._cipher = token_cipher
        self._clock = clock

    def capture_grant(
        self,
        *,
        user_id: str,
        access_token: str,
        refresh_token: Optional[str] = None,
        expires_in: Optional[int] = None,
        expires_at: Optional[int] = None,
    ) -> CredentialRecord:
        """
        Store the tokens handed over by the sign-in flow.

        ``expires_at`` is epoch milliseconds; ``expires_in`` (seconds) is used
        when the provider only reports a lifetime.
        """
        if expires_at is None and expires_in is not None:
            expires_at = self._clock() + int(expires_in) * 1000
        logger.info("Storing Google credential for user %s", user_id)
        return self._vault.store_grant(
            user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )

    def is_expired(self, expires_at: Optional[int]) -> bool:
        """True when the token is within the refresh skew of its stated expiry."""
        if expires_at is None:
            return False
        return self._clock() >= expires_at - self.REFRESH_SKEW_MS

    def _load_record(self, user_id: str) -> CredentialRecord:
        item = self._vault.get_item(user_id)
        if not item:
            raise AuthenticationRequiredError(f"No credential stored for user {user_id}.")

        # Backward compatibility: encrypt legacy plaintext tokens in place.
        if item.get("access_token") or item.get("refresh_token"):
            logger.info("Encrypting legacy plaintext tokens for user %s", user_id)
            record = self._vault.encrypt_legacy_tokens(user_id)
        else:
            record = CredentialRecord.from_item(item)

        if record is None or not record.access_token_encrypted:
            raise AuthenticationRequiredError(f"No access token stored for user {user_id}.")
        return record

    def _decrypt(self, user_id: str, blob: str, label: str) -> str:
        try:
            return self._cipher.decrypt(blob)
        except DecryptionError:
            logger.error("Stored %s for user %s could not be decrypted", label, user_id)
            raise

    async def get_valid_access_token(self, *, user_id: str) -> str:
        """
        Return a plaintext access token that is not about to expire.

        Raises ``AuthenticationRequiredError`` when nothing is stored,
        ``SessionExpiredError`` when the token expired and there is no refresh
        token, and ``TokenRefreshFailedError`` when Google refuses the refresh.
        A failed refresh never touches the stored credential.
        """
        record = self._load_record(user_id)
        access_token = self._decrypt(user_id, record.access_token_encrypted, "access token")

        if not self.is_expired(record.expires_at):
            return access_token

        if not record.refresh_token_encrypted:
            raise SessionExpiredError(
                f"Access token for user {user_id} expired and no refresh token is stored."
            )

        refresh_token = self._decrypt(
            user_id, record.refresh_token_encrypted, "refresh token"
        )
        logger.info("Refreshing Google access token for user %s", user_id)
        try:
            grant = await self._oauth.refresh_token(refresh_token)
        except TokenRefreshFailedError as exc:
            logger.warning(
                "Token refresh failed for user %s (status=%s)", user_id, exc.http_status
            )
            raise

        self._vault.save_refreshed_tokens(
            user_id,
            access_token=grant.access_token,
            expires_at=self._clock() + grant.expires_in * 1000,
            refresh_token=grant.refresh_token,
        )
        logger.info("Refreshed Google access token for user %s", user_id)
        return grant.access_token


__all__ = ["GoogleTokenService"]
