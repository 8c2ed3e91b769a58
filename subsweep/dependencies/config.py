"""
FastAPI dependency utilities for injecting configuration and the current user.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Request

from subsweep.core.config import AppSettings, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


def get_current_user_id(request: Request) -> Optional[str]:
    """
    The signed-in user id forwarded by the authentication layer, if any.

    ``None`` means "no current user"; the guarded services turn that into
    ``NotAuthenticatedError``.
    """
    header = get_app_settings().auth.user_header
    user_id = request.headers.get(header, "").strip()
    return user_id or None


CurrentUser = Annotated[Optional[str], Depends(get_current_user_id)]

__all__ = [
    "CurrentUser",
    "get_app_settings",
    "get_current_user_id",
]
