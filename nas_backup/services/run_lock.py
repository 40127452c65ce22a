"""Run-level advisory lock so two backup runs never share the mount namespace."""

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional, TextIO

from ..core.exceptions import RunLocked


class RunLock:
    """Exclusive, non-blocking flock on a lock file. Released automatically if the process dies."""

    def __init__(self, lock_path: Path):
        self.lock_path = lock_path
        self._handle: Optional[TextIO] = None

    @property
    def is_held(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(self.lock_path, "a+", encoding="utf-8")
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            handle.close()
            raise RunLocked(str(self.lock_path)) from e

        handle.seek(0)
        handle.truncate()
        handle.write(f"{os.getpid()}\n")
        handle.flush()
        self._handle = handle
        logging.debug(f"Acquired run lock {self.lock_path}")

    def release(self) -> None:
        if self._handle is None:
            return
        # The file stays; unlinking a lock file races with the next run
        fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        self._handle.close()
        self._handle = None
        logging.debug(f"Released run lock {self.lock_path}")

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
