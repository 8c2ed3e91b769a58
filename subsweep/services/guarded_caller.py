"""
Guarded access to the YouTube Data API.

Every outbound call runs the same sequence: require a signed-in user,
validate input, take a rate-limit slot for ``"{operation}:{user_id}"``,
obtain a fresh access token, then issue the request. Failures leave this
module only as ``GuardError`` subclasses.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx

from subsweep.clients.youtube import YouTubeClient
from subsweep.core.config import RateLimitSettings
from subsweep.core.errors import (
    GuardError,
    InvalidInputError,
    NotAuthenticatedError,
    RateLimitedError,
    RemoteApiError,
)
from subsweep.schemas.subscriptions import SubscriptionPage
from subsweep.services.google_tokens import GoogleTokenService
from subsweep.services.rate_limiter import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHANNEL_ID_PATTERN = re.compile(r"^UC[A-Za-z0-9_-]{22}$")


class Operation(str, Enum):
    """Operation classes; each has its own rate-limit window per user."""

    LIST = "list"
    SUBSCRIBE = "sub"
    UNSUBSCRIBE = "unsub"

    def rate_limit_key(self, user_id: str) -> str:
        return f"{self.value}:{user_id}"


def is_valid_channel_id(channel_id: str) -> bool:
    return bool(CHANNEL_ID_PATTERN.fullmatch(channel_id or ""))


class GuardedYouTubeCaller:
    """Authenticated, rate-limited and error-translated YouTube operations."""

    def __init__(
        self,
        youtube_client: YouTubeClient,
        token_service: GoogleTokenService,
        rate_limiter: FixedWindowRateLimiter,
        rate_limit_settings: RateLimitSettings,
    ) -> None:
        self._youtube = youtube_client
        self._tokens = token_service
        self._limiter = rate_limiter
        self._limits = rate_limit_settings

    @staticmethod
    def require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise NotAuthenticatedError()
        return user_id

    async def call(
        self,
        user_id: Optional[str],
        operation: Operation,
        send: Callable[[str], Awaitable[T]],
    ) -> T:
        """
        Run ``send(access_token)`` behind authentication, admission control
        and token refresh, translating any transport failure.
        """
        user_id = self.require_user(user_id)

        decision = self._limiter.check_and_increment(
            operation.rate_limit_key(user_id),
            self._limits.max_requests,
            self._limits.window_ms,
        )
        if not decision.allowed:
            raise RateLimitedError(decision.retry_after_ms)

        access_token = await self._tokens.get_valid_access_token(user_id=user_id)

        try:
            return await send(access_token)
        except GuardError:
            raise
        except httpx.HTTPError as exc:
            logger.warning("YouTube %s call failed for user %s: %s", operation.value, user_id, exc)
            raise RemoteApiError(http_status=None, provider_message=str(exc)) from exc
        except ValueError as exc:
            # Malformed JSON in a success response.
            logger.warning("YouTube %s returned an unreadable body: %s", operation.value, exc)
            raise RemoteApiError(
                http_status=None, provider_message="Unreadable response from YouTube."
            ) from exc

    async def list_subscriptions(
        self, user_id: Optional[str], *, page_token: Optional[str] = None
    ) -> SubscriptionPage:
        async def send(token: str) -> SubscriptionPage:
            payload = await self._youtube.list_subscriptions(token, page_token=page_token)
            if not isinstance(payload, dict):
                raise ValueError("Subscription list body is not a JSON object.")
            return SubscriptionPage.from_api(payload)

        return await self.call(user_id, Operation.LIST, send)

    async def subscribe(self, user_id: Optional[str], channel_id: str) -> Dict[str, Any]:
        """Subscribe to ``channel_id`` after checking its shape locally."""
        user_id = self.require_user(user_id)
        if not is_valid_channel_id(channel_id):
            raise InvalidInputError("Invalid channel ID.")
        return await self.call(
            user_id,
            Operation.SUBSCRIBE,
            lambda token: self._youtube.insert_subscription(token, channel_id),
        )

    async def unsubscribe(self, user_id: Optional[str], subscription_id: str) -> Dict[str, bool]:
        user_id = self.require_user(user_id)
        if not subscription_id or not subscription_id.strip():
            raise InvalidInputError("Subscription ID is required.")
        await self.call(
            user_id,
            Operation.UNSUBSCRIBE,
            lambda token: self._youtube.delete_subscription(token, subscription_id),
        )
        return {"success": True}

    def reset_rate_limits(self, user_id: str) -> None:
        for operation in Operation:
            self._limiter.reset(operation.rate_limit_key(user_id))


__all__ = ["CHANNEL_ID_PATTERN", "GuardedYouTubeCaller", "Operation", "is_valid_channel_id"]
