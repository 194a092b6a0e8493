"""Secure Vault — Encrypted secret storage for integration credentials.

Security Note (Threat Model):
    The default store derives its key from host name, platform, CPU
    architecture and CPU model. Any local process can read those, so the
    default store only guards against secrets leaking off the machine in
    plaintext (backups, repositories). It does not protect against an
    attacker with read access to the running host. This is an accepted
    limitation — mitigation requires hardware-backed key storage or an
    external secrets vault, which is out of scope. Password stores are
    only as strong as the password.
"""

from .secure_store import SecureStore, create_default_store, create_password_store
from .key_rotation import rotate_key, rotate_keys
from .config import StoreConfig
from .envelope import Envelope
from .host_identity import fingerprint
from .exceptions import (
    SecureStorageError,
    ConfigurationError,
    InvalidFormatError,
    AuthenticationError,
    CorruptPayloadError,
    SerializationError,
)

__all__ = [
    "SecureStore",
    "create_default_store",
    "create_password_store",
    "rotate_key",
    "rotate_keys",
    "StoreConfig",
    "Envelope",
    "fingerprint",
    "SecureStorageError",
    "ConfigurationError",
    "InvalidFormatError",
    "AuthenticationError",
    "CorruptPayloadError",
    "SerializationError",
]
