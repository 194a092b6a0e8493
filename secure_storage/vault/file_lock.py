"""Advisory file lock serializing writers of one secret file.

Uses platform-appropriate primitives (msvcrt on Windows, fcntl on Unix).
The lock file is left in place on release; removing it while another
process waits on it would let a third process lock a fresh inode.
"""
import os
import logging
import platform
from typing import Optional

logger = logging.getLogger("secure_storage.vault")

_IS_WINDOWS = platform.system() == "Windows"


class FileLock:
    """Blocking exclusive lock on ``lock_path``.

    Example:
        >>> with FileLock("/path/to/.github_tokens.encrypted.lock"):
        ...     # read-modify-write of the secret file
        ...     pass
    """

    def __init__(self, lock_path: str, mode: int = 0o600):
        self.lock_path = str(lock_path)
        self.mode = mode
        self._lock_fd: Optional[int] = None

    @property
    def locked(self) -> bool:
        return self._lock_fd is not None

    def acquire(self) -> None:
        """Acquire the lock, waiting for other holders to release it.

        Raises:
            OSError: If the lock file cannot be opened or locked.
        """
        if self._lock_fd is not None:
            raise RuntimeError(f"Lock already held: {self.lock_path}")
        fd = os.open(self.lock_path, os.O_CREAT | os.O_RDWR, self.mode)
        try:
            if _IS_WINDOWS:
                import msvcrt
                msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
            else:
                import fcntl
                fcntl.flock(fd, fcntl.LOCK_EX)
        except OSError:
            os.close(fd)
            logger.error("Failed to acquire file lock %s", self.lock_path)
            raise
        self._lock_fd = fd

    def release(self) -> None:
        """Release the lock. Safe to call when not held."""
        if self._lock_fd is None:
            return
        fd, self._lock_fd = self._lock_fd, None
        try:
            if _IS_WINDOWS:
                import msvcrt
                os.lseek(fd, 0, os.SEEK_SET)
                msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
            else:
                import fcntl
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
