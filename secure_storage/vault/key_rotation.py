"""
Vault Key Rotation — Re-encryption of stored secrets under a new store's key.

Rotation never mutates a store: the file is read with the old store and
written back with the new one, keeping the previous envelope as the
``.backup`` sibling. Files with nothing saved are skipped.

Security Note:
    Plaintext exists in memory only during re-encryption of each file.
    Never log plaintext or ciphertext values.
"""
import os
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Union

from .envelope import dumps_envelope
from .exceptions import SecureStorageError

if TYPE_CHECKING:
    from .secure_store import SecureStore

logger = logging.getLogger("secure_storage.vault")


def rotate_key(
    old_store: "SecureStore",
    path: Union[str, os.PathLike],
    new_store: "SecureStore",
) -> bool:
    """Re-encrypt the file at path from old_store's key to new_store's key.

    Args:
        old_store: Store whose key currently protects the file.
        path: Envelope file to rotate.
        new_store: Store whose key will protect the file afterwards.

    Returns:
        True if the file was rotated, False if nothing was saved at path.

    Raises:
        SecureStorageError: If the file cannot be read with old_store.
        OSError: On any I/O failure.
    """
    path = Path(path)
    with old_store._locked(path):
        value = old_store.load_secure(path)
        if value is None:
            logger.debug("Nothing to rotate at %s", path)
            return False
        content = dumps_envelope(new_store.encrypt(value))
        new_store._write(path, content, backup=True)
    logger.info("Rotated key for %s", path)
    return True


def rotate_keys(
    old_store: "SecureStore",
    paths: Iterable[Union[str, os.PathLike]],
    new_store: "SecureStore",
) -> dict:
    """Rotate several credential files, continuing past individual failures.

    Each file is independent and keeps its own backup, so one unreadable
    file does not stop the others from being rotated.

    Args:
        old_store: Store whose key currently protects the files.
        paths: Envelope files to rotate.
        new_store: Target store.

    Returns:
        Stats dict with keys: total, rotated, skipped, errors, failed
        (list of paths that could not be rotated).
    """
    stats = {"total": 0, "rotated": 0, "skipped": 0, "errors": 0, "failed": []}
    for path in paths:
        stats["total"] += 1
        try:
            if rotate_key(old_store, path, new_store):
                stats["rotated"] += 1
            else:
                stats["skipped"] += 1
        except (SecureStorageError, OSError) as err:
            logger.error(
                "Error rotating key for %s: %s", path, type(err).__name__,
            )
            stats["errors"] += 1
            stats["failed"].append(os.fspath(path))

    logger.info(
        "Key rotation complete: total=%d rotated=%d skipped=%d errors=%d",
        stats["total"], stats["rotated"], stats["skipped"], stats["errors"],
    )
    return stats
