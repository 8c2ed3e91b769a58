"""HTTP utilities shared by the Google OAuth and YouTube clients."""

from __future__ import annotations

from typing import Any, Optional, Tuple

import httpx


def build_async_client(
    *,
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
    base_url: str = "",
) -> httpx.AsyncClient:
    """Create an AsyncClient with a bounded timeout for a single operation."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds),
        transport=transport,
        base_url=base_url,
    )


def parse_google_error(response: httpx.Response) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract ``(message, reason)`` from a Google API error body.

    Handles both the Data API shape ``{"error": {"message", "errors": [...]}}``
    and the OAuth shape ``{"error": "invalid_grant", "error_description": ...}``.
    Bodies that are not JSON fall back to the raw text.
    """
    try:
        payload: Any = response.json()
    except ValueError:
        text = response.text.strip()
        return (text or None), None

    if not isinstance(payload, dict):
        return None, None

    error = payload.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        reason = None
        details = error.get("errors")
        if isinstance(details, list) and details and isinstance(details[0], dict):
            reason = details[0].get("reason")
            message = message or details[0].get("message")
        return message, reason

    if isinstance(error, str):
        return payload.get("error_description") or error, error

    return None, None


__all__ = ["build_async_client", "parse_google_error"]
