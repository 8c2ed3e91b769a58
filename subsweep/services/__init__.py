"""Service layer exports."""

from .account import AccountService, RevocationResult
from .batch import BatchCoordinator, BatchResult, Err, Ok
from .bulk_operations import BulkOperationsService, OptimisticView, RemovalLedger
from .google_tokens import GoogleTokenService
from .guarded_caller import GuardedYouTubeCaller, Operation
from .history import HistoryService
from .rate_limiter import FixedWindowRateLimiter, RateLimitDecision
from .token_cipher import TokenCipherService
from .token_vault import TokenVault
from .ttl_cache import TTLCache

__all__ = [
    "AccountService",
    "BatchCoordinator",
    "BatchResult",
    "BulkOperationsService",
    "Err",
    "FixedWindowRateLimiter",
    "GoogleTokenService",
    "GuardedYouTubeCaller",
    "HistoryService",
    "Ok",
    "Operation",
    "OptimisticView",
    "RateLimitDecision",
    "RemovalLedger",
    "RevocationResult",
    "TTLCache",
    "TokenCipherService",
    "TokenVault",
]
