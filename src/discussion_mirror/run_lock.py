"""Advisory lock preventing overlapping pipeline runs.

The scheduled service and the manual trigger share one lock file; whichever
run starts second is refused instead of writing duplicate records.

- fcntl.flock with LOCK_NB (never blocks the caller)
- Lock file permissions 0600, directory created on demand
- Lock released on close, including when the holder crashes
"""

import fcntl
import logging
import os
from pathlib import Path

from .errors import RunLockedError

logger = logging.getLogger("discussion_mirror.run_lock")

__all__ = ["RunLock"]


class RunLock:
    """Exclusive, non-blocking run lock keyed on a fixed lock file.

    Example:
        >>> with RunLock(Path("~/.discussion-mirror/run.lock").expanduser()):
        ...     ...  # only one run gets here at a time
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._fd: int | None = None

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            RunLockedError: If another run holds the lock
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o600)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            raise RunLockedError(f"Another run holds {self.path}") from None
        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode())
        self._fd = fd
        logger.debug("run_lock_acquired", extra={"lock_path": str(self.path)})

    def release(self) -> None:
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None
        logger.debug("run_lock_released", extra={"lock_path": str(self.path)})

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, *args) -> None:
        self.release()
