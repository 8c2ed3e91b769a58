"""
Sign-out revocation and account data removal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from subsweep.clients.google_auth import GoogleOAuthClient, TokenRevocationError
from subsweep.core.errors import DecryptionError
from subsweep.schemas.auth import RevocationResponse, RevocationStatus
from subsweep.services.guarded_caller import GuardedYouTubeCaller
from subsweep.services.history import HistoryService
from subsweep.services.token_cipher import TokenCipherService
from subsweep.services.token_vault import TokenVault

logger = logging.getLogger(__name__)


@dataclass
class RevocationResult:
    """What happened to each token; local clearing happens either way."""

    access_token: RevocationStatus = "absent"
    refresh_token: RevocationStatus = "absent"
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def fully_revoked(self) -> bool:
        return "failed" not in (self.access_token, self.refresh_token)

    def to_response(self) -> RevocationResponse:
        return RevocationResponse(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            errors=dict(self.errors),
        )


class AccountService:
    """Best-effort revocation plus idempotent cleanup of everything stored per user."""

    def __init__(
        self,
        vault: TokenVault,
        oauth_client: GoogleOAuthClient,
        token_cipher: TokenCipherService,
        history: HistoryService,
        caller: GuardedYouTubeCaller,
    ) -> None:
        self._vault = vault
        self._oauth = oauth_client
        self._cipher = token_cipher
        self._history = history
        self._caller = caller

    async def _revoke_one(
        self, user_id: str, label: str, blob: Optional[str], result: RevocationResult
    ) -> RevocationStatus:
        if not blob:
            return "absent"
        try:
            token = self._cipher.decrypt(blob)
            await self._oauth.revoke_token(token)
        except (DecryptionError, TokenRevocationError) as exc:
            logger.warning("Could not revoke %s for user %s: %s", label, user_id, exc)
            result.errors[label] = str(exc)
            return "failed"
        return "revoked"

    async def revoke_credential(self, user_id: str) -> RevocationResult:
        """
        Revoke both tokens at Google, then clear the stored credential.

        Revocation failures are reported in the result and logged, never
        raised: local sign-out always completes.
        """
        result = RevocationResult()
        record = self._vault.get(user_id)
        if record is None:
            return result

        result.access_token = await self._revoke_one(
            user_id, "access_token", record.access_token_encrypted, result
        )
        result.refresh_token = await self._revoke_one(
            user_id, "refresh_token", record.refresh_token_encrypted, result
        )

        self._vault.clear(user_id)
        logger.info(
            "Cleared credential for user %s (access=%s, refresh=%s)",
            user_id,
            result.access_token,
            result.refresh_token,
        )
        return result

    def delete_all_user_data(self, user_id: str) -> None:
        """Delete the credential, history and rate-limit windows; safe to repeat."""
        self._vault.delete(user_id)
        self._history.delete_all(user_id)
        self._caller.reset_rate_limits(user_id)
        logger.info("Deleted stored data for user %s", user_id)


__all__ = ["AccountService", "RevocationResult"]
