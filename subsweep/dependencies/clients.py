"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Each factory builds its object once per process; stateful pieces (the
record store, the history cache) are shared by reference through them.
"""

from functools import lru_cache
from typing import List

from subsweep.clients import (
    DynamoDBClient,
    GoogleOAuthClient,
    RecordStore,
    SQLiteStore,
    YouTubeClient,
)
from subsweep.core.config import get_settings
from subsweep.models.history import HistoryEntry
from subsweep.services import (
    AccountService,
    BatchCoordinator,
    BulkOperationsService,
    FixedWindowRateLimiter,
    GoogleTokenService,
    GuardedYouTubeCaller,
    HistoryService,
    TTLCache,
    TokenCipherService,
    TokenVault,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_record_store() -> RecordStore:
    """Provide the configured record store (SQLite by default, DynamoDB optionally)."""
    settings = _settings()
    if settings.storage.backend == "dynamodb":
        return DynamoDBClient(settings.storage)
    return SQLiteStore(settings.storage.sqlite_path)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    return TokenCipherService(key_hex=settings.security.token_encryption_key)


@lru_cache()
def get_google_oauth_client() -> GoogleOAuthClient:
    """Create a singleton Google OAuth client."""
    settings = _settings()
    return GoogleOAuthClient(settings.google, settings.http)


@lru_cache()
def get_youtube_client() -> YouTubeClient:
    settings = _settings()
    return YouTubeClient(settings.youtube, settings.http)


@lru_cache()
def get_token_vault() -> TokenVault:
    return TokenVault(get_record_store(), get_token_cipher_service())


@lru_cache()
def get_google_token_service() -> GoogleTokenService:
    """Provide helper for managing Google OAuth tokens."""
    return GoogleTokenService(
        vault=get_token_vault(),
        oauth_client=get_google_oauth_client(),
        token_cipher=get_token_cipher_service(),
    )


@lru_cache()
def get_rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(get_record_store())


@lru_cache()
def get_guarded_caller() -> GuardedYouTubeCaller:
    """Provide the rate-limited, token-refreshing YouTube caller."""
    settings = _settings()
    return GuardedYouTubeCaller(
        youtube_client=get_youtube_client(),
        token_service=get_google_token_service(),
        rate_limiter=get_rate_limiter(),
        rate_limit_settings=settings.rate_limit,
    )


@lru_cache()
def get_history_cache() -> TTLCache[List[HistoryEntry]]:
    """Provide the process-wide history cache."""
    settings = _settings()
    return TTLCache(ttl_seconds=settings.history_cache_ttl_seconds)


@lru_cache()
def get_history_service() -> HistoryService:
    return HistoryService(get_record_store(), get_history_cache())


@lru_cache()
def get_batch_coordinator() -> BatchCoordinator:
    return BatchCoordinator()


@lru_cache()
def get_bulk_operations_service() -> BulkOperationsService:
    """Build the bulk unsubscribe/resubscribe service."""
    return BulkOperationsService(
        caller=get_guarded_caller(),
        history=get_history_service(),
        coordinator=get_batch_coordinator(),
    )


@lru_cache()
def get_account_service() -> AccountService:
    return AccountService(
        vault=get_token_vault(),
        oauth_client=get_google_oauth_client(),
        token_cipher=get_token_cipher_service(),
        history=get_history_service(),
        caller=get_guarded_caller(),
    )


__all__ = [
    "get_account_service",
    "get_batch_coordinator",
    "get_bulk_operations_service",
    "get_google_oauth_client",
    "get_google_token_service",
    "get_guarded_caller",
    "get_history_cache",
    "get_history_service",
    "get_rate_limiter",
    "get_record_store",
    "get_token_cipher_service",
    "get_token_vault",
    "get_youtube_client",
]
