"""
Vault Exceptions — Error taxonomy for the encrypted secret store.

"Not found" is not an error: ``load_secure`` returns ``None`` and
``exists`` returns ``False``. I/O failures are raised as plain ``OSError``.
"""


class SecureStorageError(Exception):
    """Base class for every error raised by the secret store."""


class ConfigurationError(SecureStorageError, ValueError):
    """Raised at store construction for unusable settings.

    Examples: password too short, empty salt, invalid scrypt cost.
    """


class InvalidFormatError(SecureStorageError, ValueError):
    """Raised when stored data is not a structurally valid envelope.

    Always raised before any key material is used.
    """


class AuthenticationError(SecureStorageError):
    """Raised when the AEAD tag does not verify.

    The message never distinguishes a wrong key from corrupted bytes.
    """

    def __init__(self, message: str = "Decryption failed - data may be corrupted or key mismatch"):
        super().__init__(message)


class CorruptPayloadError(SecureStorageError):
    """Raised when a verified cleartext is not valid JSON."""


class SerializationError(SecureStorageError, TypeError):
    """Raised when a value cannot be serialized for encryption."""
