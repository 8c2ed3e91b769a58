"""Expose constructed client wrappers."""

from .dynamodb import DynamoDBClient
from .google_auth import GoogleOAuthClient, TokenGrant, TokenRevocationError
from .record_store import RecordStore
from .sqlite_store import SQLiteStore
from .youtube import YouTubeClient

__all__ = [
    "DynamoDBClient",
    "GoogleOAuthClient",
    "RecordStore",
    "SQLiteStore",
    "TokenGrant",
    "TokenRevocationError",
    "YouTubeClient",
]
