"""
Encrypted Envelope — Versioned, self-describing representation of one secret.

On-disk shape (one JSON document per secret)::

    {
      "version": 1,
      "algorithm": "aes-256-gcm",
      "nonce": "<hex>",
      "ciphertext": "<hex>",
      "tag": "<hex>",
      "timestamp": 1735689600000
    }

Envelopes written by the earlier JavaScript dashboard used ``iv`` and
``data`` for nonce and ciphertext; both names are accepted on read.
"""
import time
from typing import Any, Optional

import orjson
from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    ValidationError,
    field_validator,
)

from .config import DEFAULT_ALGORITHM, SUPPORTED_ALGORITHMS
from .exceptions import AuthenticationError, InvalidFormatError

ENVELOPE_VERSION = 1


def _now_ms() -> int:
    return int(time.time() * 1000)


class Envelope(BaseModel):
    """Encrypted envelope of a single stored value."""

    version: int = Field(default=ENVELOPE_VERSION)
    algorithm: str = Field(default=DEFAULT_ALGORITHM)
    nonce: str = Field(
        min_length=1,
        validation_alias=AliasChoices("nonce", "iv"),
    )
    ciphertext: str = Field(
        min_length=1,
        validation_alias=AliasChoices("ciphertext", "data"),
    )
    tag: str = Field(min_length=1)
    timestamp: Optional[int] = None

    model_config = {"frozen": True, "strict": True}

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: int) -> int:
        if v != ENVELOPE_VERSION:
            raise ValueError(f"Unsupported envelope version: {v}")
        return v

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        if v not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported envelope algorithm: {v}")
        return v


def to_envelope(
    version: int,
    algorithm: str,
    nonce: bytes,
    ciphertext: bytes,
    tag: bytes,
    timestamp: Optional[int] = None,
) -> Envelope:
    """Wrap cipher output into an Envelope.

    Args:
        version: Envelope format version.
        algorithm: AEAD algorithm identifier.
        nonce: Per-encryption random nonce.
        ciphertext: AEAD output without tag.
        tag: Authentication tag.
        timestamp: Encryption time in ms since epoch; defaults to now.

    Returns:
        Envelope instance.
    """
    return parse_envelope({
        "version": version,
        "algorithm": algorithm,
        "nonce": nonce.hex(),
        "ciphertext": ciphertext.hex(),
        "tag": tag.hex(),
        "timestamp": _now_ms() if timestamp is None else timestamp,
    })


def parse_envelope(obj: Any) -> Envelope:
    """Validate a decoded JSON object as an Envelope.

    Raises:
        InvalidFormatError: If the object is not an envelope or is missing
            any of nonce, ciphertext, tag.
    """
    if isinstance(obj, Envelope):
        return obj
    if not isinstance(obj, dict):
        raise InvalidFormatError("Invalid encrypted data format")
    try:
        return Envelope.model_validate(obj)
    except ValidationError as err:
        fields = sorted({
            str(e["loc"][0]) for e in err.errors() if e.get("loc")
        })
        raise InvalidFormatError(
            f"Invalid encrypted data format (fields: {', '.join(fields)})"
        ) from err


def from_envelope(envelope: Envelope | dict) -> tuple[bytes, bytes, bytes]:
    """Extract (nonce, ciphertext, tag) bytes from an Envelope.

    Raises:
        InvalidFormatError: If the envelope is structurally invalid.
        AuthenticationError: If a field is not valid hex; altered bytes are
            reported the same way as a key mismatch.
    """
    envelope = parse_envelope(envelope)
    try:
        return (
            bytes.fromhex(envelope.nonce),
            bytes.fromhex(envelope.ciphertext),
            bytes.fromhex(envelope.tag),
        )
    except ValueError:
        raise AuthenticationError() from None


def dumps_envelope(envelope: Envelope) -> bytes:
    """Serialize an Envelope to its on-disk JSON text."""
    return orjson.dumps(envelope.model_dump(), option=orjson.OPT_INDENT_2)


def loads_envelope(content: bytes | str) -> Envelope:
    """Parse on-disk JSON text into a validated Envelope.

    Raises:
        InvalidFormatError: If the text is not JSON or not an envelope.
    """
    try:
        obj = orjson.loads(content)
    except orjson.JSONDecodeError as err:
        raise InvalidFormatError(
            "Invalid encrypted data format (not JSON)"
        ) from err
    return parse_envelope(obj)
