"""Symmetric encryption utilities for protecting stored OAuth tokens."""

from __future__ import annotations

import binascii
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from subsweep.core.errors import ConfigurationError, DecryptionError

NONCE_LENGTH = 12
TAG_LENGTH = 16
KEY_LENGTH = 32

_KEY_PATTERN = re.compile(r"^[0-9a-fA-F]{64}$")


def validate_key(key_hex: str | None) -> bool:
    """Return True when ``key_hex`` is a 64-character hex string."""
    return bool(key_hex) and bool(_KEY_PATTERN.match(key_hex))


def generate_key() -> str:
    """Return a fresh random 256-bit key as 64 lowercase hex characters."""
    return os.urandom(KEY_LENGTH).hex()


class TokenCipherService:
    """
    Encrypt and decrypt sensitive strings with AES-256-GCM.

    Blobs are hex encoded as ``nonce (12 bytes) || ciphertext || tag (16 bytes)``,
    so decryption only needs the blob and the key. A fresh random nonce is
    drawn inside :meth:`encrypt` for every call.
    """

    def __init__(self, *, key_hex: str | None) -> None:
        if not key_hex:
            raise ConfigurationError("Token encryption key must be provided.")
        if not validate_key(key_hex):
            raise ConfigurationError(
                "Token encryption key must be 64 hexadecimal characters (32 bytes)."
            )
        self._aead = AESGCM(bytes.fromhex(key_hex))

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a plaintext string and return the hex-encoded blob."""
        nonce = os.urandom(NONCE_LENGTH)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return (nonce + sealed).hex()

    def decrypt(self, blob: str) -> str:
        """Decrypt a hex-encoded blob; raise ``DecryptionError`` on any failure."""
        try:
            raw = binascii.unhexlify(blob)
        except (binascii.Error, TypeError, ValueError) as exc:
            raise DecryptionError("Ciphertext is not valid hex.") from exc

        if len(raw) < NONCE_LENGTH + TAG_LENGTH:
            raise DecryptionError("Ciphertext is too short.")

        nonce, sealed = raw[:NONCE_LENGTH], raw[NONCE_LENGTH:]
        try:
            plaintext = self._aead.decrypt(nonce, sealed, None)
        except InvalidTag as exc:
            raise DecryptionError("Ciphertext failed authentication.") from exc

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:  # pragma: no cover - authenticated input
            raise DecryptionError("Decrypted payload is not UTF-8.") from exc


__all__ = [
    "KEY_LENGTH",
    "NONCE_LENGTH",
    "TAG_LENGTH",
    "TokenCipherService",
    "generate_key",
    "validate_key",
]
