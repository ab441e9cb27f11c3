"""Concurrent access locking for provisioning runs.

Prevents two `labprep prep` runs from interleaving on the same host.
"""
import fcntl
import os
import time
from pathlib import Path
from typing import Optional

from labprep.core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LOCK_FILE = Path("/var/run/labprep/prep.lock")


class LockError(Exception):
    """Raised when unable to acquire lock."""
    pass


class PrepLock:
    """File-based lock held for the duration of a provisioning run."""

    def __init__(self, lock_file: Optional[Path] = None):
        self.lock_file = Path(lock_file) if lock_file else DEFAULT_LOCK_FILE
        self.lock_fd = None

    def acquire(self) -> bool:
        """Acquire the lock without waiting.

        Raises:
            LockError: If another run holds the lock
        """
        self.lock_file.parent.mkdir(parents=True, exist_ok=True)

        # Append mode keeps the holder's info readable until we own the lock
        self.lock_fd = open(self.lock_file, 'a+')

        try:
            fcntl.flock(self.lock_fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            lock_info = self._read_lock_info()
            self.lock_fd.close()
            self.lock_fd = None
            raise LockError(
                f"Another provisioning run is in progress.\n"
                f"Lock held by PID {lock_info['pid']} since {lock_info['time']}\n"
                f"Wait for it to finish, or remove {self.lock_file} if stale."
            )

        self.lock_fd.seek(0)
        self.lock_fd.truncate()
        self.lock_fd.write(f"{os.getpid()}\n")
        self.lock_fd.write(f"{time.strftime('%Y-%m-%d %H:%M:%S')}\n")
        self.lock_fd.flush()

        logger.debug(f"Acquired lock: {self.lock_file}")
        return True

    def release(self):
        """Release the lock, leaving an empty lock file behind.

        The file stays in place so every run locks the same inode.
        """
        if self.lock_fd is None:
            return

        try:
            self.lock_fd.seek(0)
            self.lock_fd.truncate()
            self.lock_fd.flush()
            fcntl.flock(self.lock_fd.fileno(), fcntl.LOCK_UN)
            logger.debug(f"Released lock: {self.lock_file}")
        finally:
            self.lock_fd.close()
            self.lock_fd = None

    def _read_lock_info(self) -> dict:
        """Read info from lock file about who holds it."""
        try:
            lines = self.lock_file.read_text().splitlines()
        except OSError:
            lines = []

        if len(lines) >= 2:
            return {'pid': lines[0].strip(), 'time': lines[1].strip()}
        return {'pid': 'unknown', 'time': 'unknown'}

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False
