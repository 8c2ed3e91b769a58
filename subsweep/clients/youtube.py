"""YouTube Data API v3 client for subscription management."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from fastapi import status

from subsweep.core.config import HttpSettings, YouTubeSettings
from subsweep.core.errors import RemoteApiError
from subsweep.utils.http import build_async_client, parse_google_error


def translate_error_response(response: httpx.Response) -> RemoteApiError:
    """Turn a non-success YouTube response into a ``RemoteApiError``."""
    message, reason = parse_google_error(response)
    return RemoteApiError(
        http_status=response.status_code,
        provider_message=message,
        reason=reason,
    )


class YouTubeClient:
    """
    Thin wrapper over the ``subscriptions`` resource.

    Every method takes the bearer token explicitly; token freshness and
    admission control are the caller's responsibility. Transport failures
    propagate as ``httpx`` exceptions, HTTP failures as ``RemoteApiError``.
    """

    def __init__(
        self,
        youtube_settings: YouTubeSettings,
        http_settings: HttpSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = youtube_settings
        self._http = http_settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return build_async_client(
            timeout_seconds=self._http.timeout_seconds,
            transport=self._transport,
            base_url=self._settings.api_base.rstrip("/"),
        )

    @staticmethod
    def _headers(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    async def list_subscriptions(
        self, access_token: str, *, page_token: Optional[str] = None
    ) -> Dict[str, Any]:
        """Fetch one page of the signed-in user's subscriptions."""
        params: Dict[str, Any] = {
            "mine": "true",
            "part": "snippet,contentDetails",
            "maxResults": self._settings.page_size,
        }
        if page_token:
            params["pageToken"] = page_token

        async with self._client() as client:
            response = await client.get(
                "/subscriptions", params=params, headers=self._headers(access_token)
            )

        if not response.is_success:
            raise translate_error_response(response)
        return response.json()

    async def insert_subscription(self, access_token: str, channel_id: str) -> Dict[str, Any]:
        """Subscribe the signed-in user to ``channel_id``."""
        body = {
            "snippet": {
                "resourceId": {
                    "kind": "youtube#channel",
                    "channelId": channel_id,
                }
            }
        }
        async with self._client() as client:
            response = await client.post(
                "/subscriptions",
                params={"part": "snippet"},
                json=body,
                headers=self._headers(access_token),
            )

        if not response.is_success:
            raise translate_error_response(response)
        return response.json()

    async def delete_subscription(self, access_token: str, subscription_id: str) -> None:
        """Delete a subscription; 204 No Content is the normal success answer."""
        async with self._client() as client:
            response = await client.delete(
                "/subscriptions",
                params={"id": subscription_id},
                headers=self._headers(access_token),
            )

        if response.status_code == status.HTTP_204_NO_CONTENT:
            return
        if not response.is_success:
            raise translate_error_response(response)


__all__ = ["YouTubeClient", "translate_error_response"]
