"""
Vault Configuration — Validated settings for the encrypted secret store.

Reads optional overrides from environment variables:
    SECURE_STORAGE_SALT = <application-wide salt>
    SECURE_STORAGE_SCRYPT_N / _R / _P = <scrypt cost parameters>
    SECURE_STORAGE_FILE_LOCK = <1|true|yes|on>

Security Note:
    Never log key material. Only log paths, algorithm ids and cost parameters.
"""
import os
import logging

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

logger = logging.getLogger("secure_storage.vault")

DEFAULT_SALT = "magicmirror-secure-storage-v1"
DEFAULT_ALGORITHM = "aes-256-gcm"
SUPPORTED_ALGORITHMS = (DEFAULT_ALGORITHM,)

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_int(name: str) -> int | None:
    """Read an integer environment variable, None if unset."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}"
        ) from None


def _env_bool(name: str) -> bool | None:
    raw = os.environ.get(name)
    if raw is None:
        return None
    return raw.strip().lower() in _TRUTHY


class StoreConfig(BaseModel):
    """Validated secret store configuration."""

    salt: str = Field(default=DEFAULT_SALT, min_length=1)
    scrypt_n: int = Field(default=16384, gt=1)
    scrypt_r: int = Field(default=8, ge=1)
    scrypt_p: int = Field(default=1, ge=1)
    algorithm: str = Field(default=DEFAULT_ALGORITHM)
    min_password_length: int = Field(default=8, ge=1)
    file_mode: int = Field(default=0o600)
    dir_mode: int = Field(default=0o700)
    backup_suffix: str = Field(default=".backup", min_length=1)
    use_file_lock: bool = Field(default=False)

    model_config = {"frozen": True}

    @field_validator("scrypt_n")
    @classmethod
    def validate_cost(cls, v: int) -> int:
        """scrypt requires N to be a power of two."""
        if v & (v - 1) != 0:
            raise ValueError(f"scrypt_n must be a power of two, got {v}")
        return v

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Validate cipher algorithm is supported."""
        if v not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm: {v}")
        return v

    @field_validator("file_mode", "dir_mode")
    @classmethod
    def validate_owner_only(cls, v: int) -> int:
        """Permission bits must not grant access to group or other."""
        if v & 0o077:
            raise ValueError(
                f"mode {oct(v)} grants access to group/other"
            )
        return v

    @classmethod
    def build(cls, **kwargs) -> "StoreConfig":
        """Create a StoreConfig, reporting invalid settings as ConfigurationError.

        Returns:
            Validated StoreConfig instance.

        Raises:
            ConfigurationError: If any setting fails validation.
        """
        try:
            return cls(**kwargs)
        except ValidationError as err:
            raise ConfigurationError(str(err)) from err

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Create StoreConfig by loading overrides from environment.

        Returns:
            Populated StoreConfig instance.
        """
        values = {
            "salt": os.environ.get("SECURE_STORAGE_SALT"),
            "scrypt_n": _env_int("SECURE_STORAGE_SCRYPT_N"),
            "scrypt_r": _env_int("SECURE_STORAGE_SCRYPT_R"),
            "scrypt_p": _env_int("SECURE_STORAGE_SCRYPT_P"),
            "use_file_lock": _env_bool("SECURE_STORAGE_FILE_LOCK"),
        }
        overrides = {k: v for k, v in values.items() if v is not None}
        if overrides:
            logger.debug(
                "Store config overrides from environment: %s",
                sorted(k for k in overrides if k != "salt"),
            )
        return cls.build(**overrides)
