"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from subsweep.clients.sqlite_store import SQLiteStore
from subsweep.services.token_cipher import TokenCipherService


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def store(tmp_path) -> SQLiteStore:
    return SQLiteStore(str(tmp_path / "records.db"))


@pytest.fixture
def cipher() -> TokenCipherService:
    return TokenCipherService(key_hex=_bootstrap.TEST_ENCRYPTION_KEY)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
