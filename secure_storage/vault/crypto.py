"""
Vault Crypto Core — Key derivation, encryption/decryption, and serialization.

Implements the single encryption layer of the secret store:
    scrypt(base_secret, salt) → 32-byte key → AES-256-GCM → (nonce, ciphertext, tag)

Security Note:
    Never log plaintext, ciphertext or key values.
    Nonces are random 128-bit; collision probability negligible under normal usage.
"""
import os
import base64
from typing import Any

import orjson
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .config import DEFAULT_ALGORITHM
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    CorruptPayloadError,
    SerializationError,
)

ALGORITHM = DEFAULT_ALGORITHM
NONCE_SIZE = 16  # 128-bit nonce
TAG_SIZE = 16  # GCM tag
KEY_LENGTH = 32  # AES-256

_BYTES_WRAPPER_KEY = "__vault_bytes_b64__"
_ESCAPE_KEY = "__vault_escaped__"


def _to_bytes(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(
    base_secret: bytes | str,
    salt: bytes | str,
    n: int = 16384,
    r: int = 8,
    p: int = 1,
) -> bytes:
    """Derive a 32-byte encryption key using scrypt.

    Args:
        base_secret: Passphrase (host fingerprint text or user password).
        salt: Application-wide salt.
        n: CPU/memory cost, a power of two.
        r: Block size.
        p: Parallelization.

    Returns:
        32-byte derived key.

    Raises:
        ConfigurationError: If the secret or salt is empty, or the cost
            parameters are rejected by scrypt.
    """
    secret_bytes = _to_bytes(base_secret)
    salt_bytes = _to_bytes(salt)
    if not secret_bytes:
        raise ConfigurationError("Key derivation requires a non-empty secret")
    if not salt_bytes:
        raise ConfigurationError("Key derivation requires a non-empty salt")
    try:
        kdf = Scrypt(salt=salt_bytes, length=KEY_LENGTH, n=n, r=r, p=p)
    except ValueError as err:
        raise ConfigurationError(f"Invalid scrypt parameters: {err}") from err
    return kdf.derive(secret_bytes)


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def encrypt(key: bytes, plaintext: bytes) -> tuple[bytes, bytes, bytes]:
    """Encrypt plaintext under key with a fresh random nonce.

    Args:
        key: 32-byte derived key.
        plaintext: Data to encrypt.

    Returns:
        Tuple of (nonce, ciphertext, tag).
    """
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(key).encrypt(nonce, plaintext, None)
    return nonce, sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]


def decrypt(key: bytes, nonce: bytes, ciphertext: bytes, tag: bytes) -> bytes:
    """Decrypt and verify ciphertext.

    Args:
        key: 32-byte derived key.
        nonce: Nonce used at encryption time.
        ciphertext: AEAD output without the tag.
        tag: 16-byte authentication tag.

    Returns:
        Verified plaintext bytes.

    Raises:
        AuthenticationError: If the tag does not verify or the inputs
            have the wrong shape.
    """
    if len(nonce) != NONCE_SIZE or len(tag) != TAG_SIZE:
        raise AuthenticationError()
    try:
        return AESGCM(key).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag:
        raise AuthenticationError() from None


# ---------------------------------------------------------------------------
# Value serialization
# ---------------------------------------------------------------------------

def _is_marker(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and len(value) == 1
        and next(iter(value)) in (_BYTES_WRAPPER_KEY, _ESCAPE_KEY)
    )


def serialize_value(value: Any) -> bytes:
    """Serialize a Python value to bytes for encryption.

    Supports: str, int, float, dict, list, bool, None and top-level bytes.
    bytes values are wrapped as {"__vault_bytes_b64__": "<base64>"} for safe JSON round-trip.
    A caller dict that already has the shape of a wrapper is itself wrapped
    in {"__vault_escaped__": ...} so it comes back as the same dict.

    Integers must fit in 64 bits and dict keys must be strings; orjson
    rejects anything else, so ``2**64`` or ``{1: "a"}`` raise here even
    though the stdlib ``json`` module would accept them.

    Args:
        value: Python value to serialize.

    Returns:
        UTF-8 JSON bytes.

    Raises:
        SerializationError: If the value cannot be represented as JSON.
    """
    if isinstance(value, bytes):
        value = {_BYTES_WRAPPER_KEY: base64.b64encode(value).decode("ascii")}
    elif _is_marker(value):
        value = {_ESCAPE_KEY: value}
    try:
        return orjson.dumps(value)
    except orjson.JSONEncodeError as err:
        raise SerializationError(f"Value is not JSON serializable: {err}") from err


def deserialize_value(data: bytes) -> Any:
    """Deserialize bytes back to a Python value.

    Args:
        data: JSON bytes from serialize_value.

    Returns:
        Original Python value.

    Raises:
        CorruptPayloadError: If the bytes are not valid JSON, or a bytes
            wrapper does not hold valid base64 text.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise CorruptPayloadError(
            "Decrypted payload is not valid JSON"
        ) from err
    if not _is_marker(parsed):
        return parsed
    if _ESCAPE_KEY in parsed:
        return parsed[_ESCAPE_KEY]
    encoded = parsed[_BYTES_WRAPPER_KEY]
    if not isinstance(encoded, str):
        raise CorruptPayloadError("Decrypted bytes wrapper is not base64 text")
    try:
        return base64.b64decode(encoded, validate=True)
    except ValueError as err:
        raise CorruptPayloadError(
            "Decrypted bytes wrapper is not base64 text"
        ) from err
