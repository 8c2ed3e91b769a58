"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_account_service,
    get_batch_coordinator,
    get_bulk_operations_service,
    get_google_oauth_client,
    get_google_token_service,
    get_guarded_caller,
    get_history_cache,
    get_history_service,
    get_rate_limiter,
    get_record_store,
    get_token_cipher_service,
    get_token_vault,
    get_youtube_client,
)
from .config import (
    CurrentUser,
    get_app_settings,
    get_current_user_id,
)

__all__ = [
    "CurrentUser",
    "get_account_service",
    "get_app_settings",
    "get_batch_coordinator",
    "get_bulk_operations_service",
    "get_current_user_id",
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
