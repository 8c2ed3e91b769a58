try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from subsweep.core.errors import ConfigurationError, DecryptionError
from subsweep.services.token_cipher import (
    NONCE_LENGTH,
    TAG_LENGTH,
    TokenCipherService,
    generate_key,
    validate_key,
)


def test_token_cipher_roundtrip(cipher: TokenCipherService) -> None:
    plaintext = "ya29.sensitive-token"

    encrypted = cipher.encrypt(plaintext)
    assert encrypted != plaintext
    assert len(bytes.fromhex(encrypted)) == NONCE_LENGTH + len(plaintext) + TAG_LENGTH

    assert cipher.decrypt(encrypted) == plaintext


def test_token_cipher_handles_empty_and_unicode(cipher: TokenCipherService) -> None:
    for plaintext in ("", "jeton-secret-é☃"):
        assert cipher.decrypt(cipher.encrypt(plaintext)) == plaintext


def test_encrypting_same_plaintext_twice_differs(cipher: TokenCipherService) -> None:
    assert cipher.encrypt("same") != cipher.encrypt("same")


def test_nonces_are_unique_across_many_encryptions(cipher: TokenCipherService) -> None:
    nonces = {cipher.encrypt("token")[: NONCE_LENGTH * 2] for _ in range(10_000)}
    assert len(nonces) == 10_000


@pytest.mark.parametrize("position", [0, NONCE_LENGTH, NONCE_LENGTH + 5, -TAG_LENGTH, -1])
def test_token_cipher_detects_tampering(cipher: TokenCipherService, position: int) -> None:
    blob = bytearray(bytes.fromhex(cipher.encrypt("sensitive-token")))
    blob[position] ^= 0x01

    with pytest.raises(DecryptionError):
        cipher.decrypt(bytes(blob).hex())


@pytest.mark.parametrize("blob", ["not-valid", "abc", "00" * (NONCE_LENGTH + TAG_LENGTH - 1)])
def test_token_cipher_rejects_bad_ciphertext(cipher: TokenCipherService, blob: str) -> None:
    with pytest.raises(DecryptionError):
        cipher.decrypt(blob)


def test_decrypting_with_another_key_fails(cipher: TokenCipherService) -> None:
    other = TokenCipherService(key_hex=generate_key())

    with pytest.raises(DecryptionError):
        other.decrypt(cipher.encrypt("sensitive-token"))


@pytest.mark.parametrize("key", [None, "", "abc", "zz" * 32, "00" * 31, "00" * 33])
def test_missing_or_malformed_key_is_a_configuration_error(key) -> None:
    with pytest.raises(ConfigurationError):
        TokenCipherService(key_hex=key)


def test_generate_key_produces_valid_keys() -> None:
    key = generate_key()

    assert len(key) == 64
    assert validate_key(key)
    assert key != generate_key()
    assert validate_key(key.upper())
