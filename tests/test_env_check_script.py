"""Tests for the environment pre-flight script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from pathlib import Path

import pytest

from scripts import check_env
from subsweep.services.token_cipher import validate_key

REQUIRED_ENV_KEYS = [
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "TOKEN_ENCRYPTION_KEY",
    "STORAGE_BACKEND",
    "DYNAMODB_TABLE_NAME",
]

VALID_ENV = {
    "GOOGLE_CLIENT_ID": "abc",
    "GOOGLE_CLIENT_SECRET": "secret",
    "TOKEN_ENCRYPTION_KEY": "ab" * 32,
}


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.parametrize("command", ["pin-key", "verify-key", "check"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    env_file = tmp_path / ".missing-env"
    pin_file = tmp_path / "key.fingerprint"

    argv = [command, "--env-file", str(env_file)]
    if command != "check":
        argv.extend(["--pin-file", str(pin_file)])

    exit_code = check_env.main(argv)
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_pin_and_verify_detect_a_changed_encryption_key(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    pin_file = tmp_path / "key.fingerprint"

    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV)

    exit_code = check_env.main(
        ["pin-key", "--env-file", str(env_file), "--pin-file", str(pin_file)]
    )
    assert exit_code == check_env.EXIT_OK
    pinned = pin_file.read_text(encoding="utf-8").strip()
    assert pinned == check_env.key_fingerprint(VALID_ENV["TOKEN_ENCRYPTION_KEY"])
    assert VALID_ENV["TOKEN_ENCRYPTION_KEY"] not in pin_file.read_text(encoding="utf-8")

    _clear_required_env(monkeypatch)
    _write_env(env_file, **{**VALID_ENV, "GOOGLE_CLIENT_SECRET": "rotated"})
    exit_code = check_env.main(
        ["verify-key", "--env-file", str(env_file), "--pin-file", str(pin_file)]
    )
    assert exit_code == check_env.EXIT_OK

    _clear_required_env(monkeypatch)
    _write_env(env_file, **{**VALID_ENV, "TOKEN_ENCRYPTION_KEY": "cd" * 32})
    exit_code = check_env.main(
        ["verify-key", "--env-file", str(env_file), "--pin-file", str(pin_file)]
    )
    assert exit_code == check_env.EXIT_KEY_MISMATCH


def test_verify_without_a_pin_is_a_runtime_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    _write_env(env_file, **VALID_ENV)

    exit_code = check_env.main(
        ["verify-key", "--env-file", str(env_file), "--pin-file", str(tmp_path / "absent")]
    )
    assert exit_code == check_env.EXIT_RUNTIME_ERROR


@pytest.mark.parametrize(
    "overrides",
    [
        {"TOKEN_ENCRYPTION_KEY": "too-short"},
        {"TOKEN_ENCRYPTION_KEY": ""},
        {"GOOGLE_CLIENT_SECRET": ""},
        {"STORAGE_BACKEND": "dynamodb"},
        {"STORAGE_BACKEND": "postgres"},
    ],
)
def test_validation_failure_for_missing_or_invalid_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, overrides: dict
) -> None:
    env_file = tmp_path / ".env"
    pin_file = tmp_path / "key.fingerprint"

    _clear_required_env(monkeypatch)
    _write_env(env_file, **{**VALID_ENV, **overrides})

    exit_code = check_env.main(
        ["pin-key", "--env-file", str(env_file), "--pin-file", str(pin_file)]
    )
    assert exit_code == check_env.EXIT_VALIDATION_ERROR
    assert not pin_file.exists()


def test_check_reports_every_problem_at_once(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"

    _clear_required_env(monkeypatch)
    _write_env(env_file, GOOGLE_CLIENT_ID="abc", TOKEN_ENCRYPTION_KEY="too-short")

    assert check_env.main(["check", "--env-file", str(env_file)]) == (
        check_env.EXIT_VALIDATION_ERROR
    )

    errors = capsys.readouterr().err
    assert "TOKEN_ENCRYPTION_KEY" in errors
    assert "GOOGLE_CLIENT_SECRET is not set." in errors
    assert "GOOGLE_CLIENT_ID" not in errors


def test_keygen_prints_a_valid_key(capsys: pytest.CaptureFixture[str]) -> None:
    assert check_env.main(["keygen"]) == check_env.EXIT_OK

    key = capsys.readouterr().out.strip()
    assert validate_key(key)
