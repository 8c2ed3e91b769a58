"""
Google OAuth token endpoint client.

The consent redirect and code exchange belong to the sign-in layer; this
client only refreshes access tokens and revokes grants afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import status

from subsweep.core.config import GoogleSettings, HttpSettings
from subsweep.core.errors import ConfigurationError, TokenRefreshFailedError
from subsweep.utils.http import build_async_client, parse_google_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenGrant:
    """Tokens returned by a successful refresh."""

    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None


class TokenRevocationError(Exception):
    """Raised when Google does not confirm a revocation."""


class GoogleOAuthClient:
    """Refresh and revoke Google OAuth tokens."""

    def __init__(
        self,
        google_settings: GoogleSettings,
        http_settings: HttpSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._google = google_settings
        self._http = http_settings
        self._transport = transport

    def _client_credentials(self) -> tuple[str, str]:
        if not self._google.client_id or not self._google.client_secret:
            raise ConfigurationError("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set.")
        return self._google.client_id, self._google.client_secret

    async def refresh_token(self, refresh_token: str) -> TokenGrant:
        """
        Exchange a refresh token for a new access token.

        Timeouts, transport failures, non-200 answers and incomplete payloads
        all surface as ``TokenRefreshFailedError``; nothing is retried here.
        """
        client_id, client_secret = self._client_credentials()
        payload = {
            "client_id": client_id,
            "client_secret": client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }

        try:
            async with build_async_client(
                timeout_seconds=self._http.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self._google.token_url, data=payload)
        except httpx.TimeoutException as exc:
            raise TokenRefreshFailedError("Token refresh timed out.") from exc
        except httpx.HTTPError as exc:
            raise TokenRefreshFailedError(f"Token refresh transport error: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            message, _ = parse_google_error(response)
            raise TokenRefreshFailedError(
                message or "Token endpoint rejected the refresh.",
                http_status=response.status_code,
            )

        try:
            token_payload = response.json()
        except ValueError as exc:
            raise TokenRefreshFailedError("Token endpoint returned invalid JSON.") from exc

        if not isinstance(token_payload, dict):
            raise TokenRefreshFailedError("Token endpoint returned an unexpected payload.")

        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or not expires_in:
            raise TokenRefreshFailedError("Incomplete refresh payload returned from Google.")
        try:
            expires_in = int(expires_in)
        except (TypeError, ValueError) as exc:
            raise TokenRefreshFailedError("Token endpoint returned a non-numeric expiry.") from exc

        return TokenGrant(
            access_token=access_token,
            expires_in=expires_in,
            refresh_token=token_payload.get("refresh_token") or None,
        )

    async def revoke_token(self, token: str) -> None:
        """Revoke an access or refresh token; raise ``TokenRevocationError`` on failure."""
        try:
            async with build_async_client(
                timeout_seconds=self._http.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self._google.revoke_url, data={"token": token})
        except httpx.HTTPError as exc:
            raise TokenRevocationError(f"Revocation request failed: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            message, _ = parse_google_error(response)
            raise TokenRevocationError(
                f"Revocation rejected with status {response.status_code}: {message}"
            )


__all__ = ["GoogleOAuthClient", "TokenGrant", "TokenRevocationError"]
