"""
SecureStore — Encrypted JSON values persisted as owner-only files.

Provides the public API of the secret store:
- ``save_secure(path, value, backup)`` — encrypt and write an envelope file
- ``load_secure(path)`` — read and decrypt (``None`` if nothing saved yet)
- ``exists(path)`` — file present and decryptable
- ``delete(path, secure_delete)`` — remove file and its backup sibling
- ``rotate_key(path, new_store)`` — re-encrypt a file under another store

Security Note:
    Never log plaintext, ciphertext or key values. Only log paths and
    error classes. The default store's key is derived from host attributes
    (see ``host_identity.py``); it does not protect against an attacker who
    can read the host.
"""
import os
import logging
import tempfile
import contextlib
from pathlib import Path
from typing import Any, Optional, Union

from . import crypto
from .config import StoreConfig
from .envelope import (
    ENVELOPE_VERSION,
    Envelope,
    dumps_envelope,
    from_envelope,
    loads_envelope,
    parse_envelope,
    to_envelope,
)
from .exceptions import (
    ConfigurationError,
    InvalidFormatError,
    SecureStorageError,
)
from .file_lock import FileLock
from .host_identity import fingerprint as host_fingerprint
from .key_rotation import rotate_key

logger = logging.getLogger("secure_storage.vault")

PathLike = Union[str, os.PathLike]


class SecureStore:
    """Encrypted secret store bound to one derived key.

    The key is derived once, at construction, from either a caller-supplied
    secret (password) or the host fingerprint, plus the configured salt.
    Two stores built from the same secret and salt read each other's files.
    Rotation never mutates a store; it writes with a second store instead.
    """

    def __init__(
        self,
        secret: Optional[Union[str, bytes]] = None,
        salt: Optional[Union[str, bytes]] = None,
        *,
        fingerprint: Optional[bytes] = None,
        config: Optional[StoreConfig] = None,
    ):
        self.config = config if config is not None else StoreConfig.from_env()
        if secret is None and fingerprint is None:
            fingerprint = host_fingerprint()
        self.fingerprint = fingerprint if secret is None else None
        self.algorithm = self.config.algorithm
        if secret is None:
            # hex text form keeps files from earlier installations readable
            base_secret: Union[str, bytes] = fingerprint.hex()
        else:
            base_secret = secret
        self._key = crypto.derive_key(
            base_secret,
            self.config.salt if salt is None else salt,
            n=self.config.scrypt_n,
            r=self.config.scrypt_r,
            p=self.config.scrypt_p,
        )
        logger.debug(
            "Secure store ready (algorithm=%s, key source=%s)",
            self.algorithm, self.key_source,
        )

    @property
    def key_source(self) -> str:
        return "host" if self.fingerprint is not None else "secret"

    def __repr__(self) -> str:
        return f"<SecureStore algorithm={self.algorithm} key_source={self.key_source}>"

    # ------------------------------------------------------------------
    # In-memory encryption
    # ------------------------------------------------------------------

    def encrypt(self, value: Any) -> Envelope:
        """Serialize and encrypt a value into a fresh Envelope.

        Raises:
            SerializationError: If the value is not JSON serializable.
        """
        plaintext = crypto.serialize_value(value)
        nonce, ciphertext, tag = crypto.encrypt(self._key, plaintext)
        return to_envelope(ENVELOPE_VERSION, self.algorithm, nonce, ciphertext, tag)

    def decrypt(self, envelope: Union[Envelope, dict]) -> Any:
        """Verify, decrypt and deserialize an Envelope.

        Raises:
            InvalidFormatError: Envelope is structurally invalid.
            AuthenticationError: Tag does not verify.
            CorruptPayloadError: Verified cleartext is not JSON.
        """
        envelope = parse_envelope(envelope)
        if envelope.algorithm != self.algorithm:
            raise InvalidFormatError(
                f"Envelope algorithm {envelope.algorithm} does not match "
                f"store algorithm {self.algorithm}"
            )
        nonce, ciphertext, tag = from_envelope(envelope)
        plaintext = crypto.decrypt(self._key, nonce, ciphertext, tag)
        return crypto.deserialize_value(plaintext)

    # ------------------------------------------------------------------
    # Path helpers
    # ------------------------------------------------------------------

    def backup_path(self, path: PathLike) -> Path:
        return Path(f"{os.fspath(path)}{self.config.backup_suffix}")

    def lock_path(self, path: PathLike) -> Path:
        return Path(f"{os.fspath(path)}.lock")

    def _locked(self, path: Path):
        """Advisory lock on path when file locking is enabled."""
        if not self.config.use_file_lock or not path.parent.is_dir():
            return contextlib.nullcontext()
        return FileLock(self.lock_path(path), mode=self.config.file_mode)

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _ensure_directory(self, directory: Path) -> None:
        missing = []
        while not directory.is_dir():
            missing.append(directory)
            if directory.parent == directory:
                break
            directory = directory.parent
        # create top-down; mkdir mode is filtered through the umask
        for level in reversed(missing):
            try:
                os.mkdir(level, self.config.dir_mode)
            except FileExistsError:
                if not level.is_dir():
                    raise
                continue
            os.chmod(level, self.config.dir_mode)
            logger.debug("Created secure directory %s", level)

    def _atomic_write(self, path: Path, content: bytes) -> None:
        """Write content to path via temp file + os.replace."""
        fd, tmp = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fp:
                fp.write(content)
                fp.flush()
                os.fsync(fp.fileno())
            os.chmod(tmp, self.config.file_mode)
            os.replace(tmp, path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp)
            raise

    def _write(self, path: Path, content: bytes, backup: bool) -> None:
        if backup and path.is_file():
            backup_path = self.backup_path(path)
            self._atomic_write(backup_path, path.read_bytes())
            logger.debug("Backed up %s to %s", path, backup_path)
        self._atomic_write(path, content)

    def _remove(self, path: Path, secure_delete: bool) -> bool:
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            return False
        if secure_delete:
            with open(path, "r+b") as fp:
                fp.write(os.urandom(size))
                fp.flush()
                os.fsync(fp.fileno())
        try:
            os.unlink(path)
        except FileNotFoundError:
            return False
        logger.debug("Deleted %s (secure=%s)", path, secure_delete)
        return True

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def save_secure(self, path: PathLike, value: Any, backup: bool = False) -> None:
        """Encrypt value and write it to path.

        The value is serialized and encrypted before anything touches disk.
        The parent directory is created owner-only if absent. With
        ``backup``, an existing file is copied to ``<path>.backup`` first.
        A failed write leaves the previous file in place.

        Args:
            path: Destination file.
            value: JSON-serializable value.
            backup: Keep a copy of the file being replaced.

        Raises:
            SerializationError: If value is not JSON serializable.
            OSError: On any I/O failure.
        """
        content = dumps_envelope(self.encrypt(value))
        path = Path(path)
        self._ensure_directory(path.parent)
        with self._locked(path):
            self._write(path, content, backup)
        logger.debug("Saved secure file %s", path)

    def load_secure(self, path: PathLike) -> Any:
        """Load and decrypt the value stored at path.

        Args:
            path: Envelope file.

        Returns:
            Decrypted value, or None if no file exists at path.

        Raises:
            InvalidFormatError: File is not a valid envelope.
            AuthenticationError: Tag does not verify.
            CorruptPayloadError: Verified cleartext is not JSON.
            OSError: On any other I/O failure.
        """
        path = Path(path)
        try:
            content = path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            return self.decrypt(loads_envelope(content))
        except SecureStorageError as err:
            logger.error(
                "Failed to load secure file %s: %s", path, type(err).__name__,
            )
            raise

    def exists(self, path: PathLike) -> bool:
        """Check that path holds a file this store can decrypt.

        A corrupt or foreign file is reported as False.
        """
        path = Path(path)
        if not path.is_file():
            return False
        try:
            self.load_secure(path)
        except (SecureStorageError, OSError):
            return False
        return True

    def delete(self, path: PathLike, secure_delete: bool = False) -> None:
        """Remove the file at path and its backup sibling.

        Missing files are ignored. With ``secure_delete`` each file is
        overwritten with random bytes of its own length before unlinking;
        this is best effort and not a guarantee on every storage medium.
        """
        path = Path(path)
        self._remove(path, secure_delete)
        self._remove(self.backup_path(path), secure_delete)

    def rotate_key(self, path: PathLike, new_store: "SecureStore") -> bool:
        """Re-encrypt the file at path under new_store's key.

        See :func:`secure_storage.vault.key_rotation.rotate_key`.
        """
        return rotate_key(self, path, new_store)


# ----------------------------------------------------------------------
# Factories
# ----------------------------------------------------------------------

def create_default_store(config: Optional[StoreConfig] = None) -> SecureStore:
    """Create a store keyed by the host fingerprint and application salt."""
    return SecureStore(config=config)


def create_password_store(
    password: str,
    config: Optional[StoreConfig] = None,
) -> SecureStore:
    """Create a store keyed by a user password.

    Raises:
        ConfigurationError: If the password is shorter than
            ``config.min_password_length`` characters.
    """
    config = config if config is not None else StoreConfig.from_env()
    if not isinstance(password, str) or len(password) < config.min_password_length:
        raise ConfigurationError(
            f"Password must be at least {config.min_password_length} characters"
        )
    return SecureStore(password, config=config)
