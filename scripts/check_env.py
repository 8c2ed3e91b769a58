"""Pre-flight checks for a SubSweep deployment's environment file.

Commands::

    # Report every missing or malformed setting at once.
    python -m scripts.check_env check --env-file /opt/subsweep/.env

    # Pin the fingerprint of TOKEN_ENCRYPTION_KEY after a successful check.
    python -m scripts.check_env pin-key --env-file /opt/subsweep/.env \
        --pin-file /opt/subsweep/key.fingerprint

    # From a deploy hook: refuse to start if the key no longer matches the pin.
    python -m scripts.check_env verify-key --env-file /opt/subsweep/.env \
        --pin-file /opt/subsweep/key.fingerprint

    # Print a new 64-hex-character encryption key.
    python -m scripts.check_env keygen

Stored credentials are sealed with TOKEN_ENCRYPTION_KEY, so a changed key
turns every stored token into a decryption failure and forces all users to
reconnect. ``verify-key`` catches that before the service restarts. Only a
truncated SHA-256 of the key is written to the pin file.
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import List

from pydantic import ValidationError

from subsweep.core.config import AppSettings, _load_env_file
from subsweep.core.errors import ConfigurationError
from subsweep.services.token_cipher import TokenCipherService, generate_key

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_KEY_MISMATCH = 3
EXIT_RUNTIME_ERROR = 5

FINGERPRINT_LENGTH = 16


def key_fingerprint(key_hex: str) -> str:
    return hashlib.sha256(bytes.fromhex(key_hex)).hexdigest()[:FINGERPRINT_LENGTH]


def find_problems(settings: AppSettings) -> List[str]:
    """Everything that would make the guard fail at request time."""
    problems = []
    try:
        TokenCipherService(key_hex=settings.security.token_encryption_key)
    except ConfigurationError as exc:
        problems.append(f"TOKEN_ENCRYPTION_KEY: {exc.message}")
    for name, value in (
        ("GOOGLE_CLIENT_ID", settings.google.client_id),
        ("GOOGLE_CLIENT_SECRET", settings.google.client_secret),
    ):
        if not value:
            problems.append(f"{name} is not set.")
    if settings.storage.backend == "dynamodb" and not settings.storage.dynamodb_table_name:
        problems.append("DYNAMODB_TABLE_NAME is required when STORAGE_BACKEND=dynamodb.")
    return problems


def _load(env_file: Path) -> AppSettings:
    if not env_file.is_file():
        raise FileNotFoundError(f"Environment file {env_file} does not exist.")
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _pin_key(settings: AppSettings, pin_file: Path) -> int:
    fingerprint = key_fingerprint(settings.security.token_encryption_key)
    pin_file.write_text(f"{fingerprint}\n", encoding="utf-8")
    print(f"Pinned encryption key fingerprint {fingerprint} in {pin_file}")
    return EXIT_OK


def _verify_key(settings: AppSettings, pin_file: Path) -> int:
    if not pin_file.is_file():
        print(f"No key pin at {pin_file}; run 'pin-key' first.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    pinned = pin_file.read_text(encoding="utf-8").strip()
    current = key_fingerprint(settings.security.token_encryption_key)
    if pinned != current:
        print(
            f"TOKEN_ENCRYPTION_KEY changed (pinned {pinned}, found {current}). "
            "Stored credentials will no longer decrypt.",
            file=sys.stderr,
        )
        return EXIT_KEY_MISMATCH
    print("Encryption key matches the pin.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    env = argparse.ArgumentParser(add_help=False)
    env.add_argument("--env-file", type=Path, default=Path(".env"))
    pin = argparse.ArgumentParser(add_help=False)
    pin.add_argument("--pin-file", type=Path, required=True)

    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("check", parents=[env], help="Validate settings only.")
    commands.add_parser("pin-key", parents=[env, pin], help="Validate, then pin the key.")
    commands.add_parser("verify-key", parents=[env, pin], help="Validate, then compare the pin.")
    commands.add_parser("keygen", help="Print a new TOKEN_ENCRYPTION_KEY.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.command == "keygen":
        print(generate_key())
        return EXIT_OK

    try:
        settings = _load(args.env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(f"Settings failed to load:\n{exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    problems = find_problems(settings)
    if problems:
        print("Settings check failed:", file=sys.stderr)
        for problem in problems:
            print(f"  - {problem}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    if args.command == "pin-key":
        return _pin_key(settings, args.pin_file)
    if args.command == "verify-key":
        return _verify_key(settings, args.pin_file)
    print("Settings OK.")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
