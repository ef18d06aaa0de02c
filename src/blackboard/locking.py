"""
Lock Manager Module

Advisory exclusive lock over a single lock file, safe when the directory is
shared between hosts over NFS. The lock is taken by hard-linking a private
file that records the holder (host, pid, token, acquisition time) to the
lock file name; it is released by removing the lock file.

A lock left behind by a crashed holder is broken when the holder process is
known to be gone (same host only) or when it is older than the optional
stale-lock timeout.
"""

import json
import os
import socket
import time
import uuid
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union

import psutil

from .exceptions import LockTimeoutError
from .fsutils import (
    link_exclusive,
    private_name,
    remove_quietly,
    revalidate,
    write_private_file,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 40.0
DEFAULT_POLL_INTERVAL = 0.1


@dataclass(frozen=True)
class LockHolder:
    """Identity recorded inside a lock file."""

    host: str
    pid: int
    token: str
    acquired_at: float

    def to_json(self) -> str:
        return json.dumps(
            {"host": self.host, "pid": self.pid, "token": self.token, "acquired_at": self.acquired_at}
        )

    @classmethod
    def from_json(cls, text: str) -> Optional["LockHolder"]:
        """Parse lock file content; None when it is not a holder record."""
        try:
            data = json.loads(text)
            return cls(
                host=str(data["host"]),
                pid=int(data["pid"]),
                token=str(data["token"]),
                acquired_at=float(data["acquired_at"]),
            )
        except (ValueError, KeyError, TypeError):
            return None


@dataclass
class LockHandle:
    """Proof of lock ownership returned by ``LockManager.acquire``."""

    path: Path
    holder: LockHolder
    released: bool = field(default=False)

    @property
    def token(self) -> str:
        return self.holder.token


class LockManager:
    """Acquires and releases one named advisory lock with bounded wait."""

    def __init__(
        self,
        lock_path: Union[str, Path],
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        stale_lock_timeout: Optional[float] = None,
        hostname: Optional[str] = None,
    ):
        """
        Initialize the lock manager.

        Args:
            lock_path: Path of the lock file; its directory must exist
            timeout: Default seconds to wait in ``acquire``
            poll_interval: Seconds between acquisition attempts
            stale_lock_timeout: Age in seconds after which any lock is
                considered abandoned; None disables age-based breaking
            hostname: Host identity recorded in the lock (defaults to this host)
        """
        if timeout < 0:
            raise ValueError(f"timeout must not be negative (got {timeout})")
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive (got {poll_interval})")
        if stale_lock_timeout is not None and stale_lock_timeout <= 0:
            raise ValueError(f"stale_lock_timeout must be positive (got {stale_lock_timeout})")

        self.lock_path = Path(lock_path)
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.stale_lock_timeout = stale_lock_timeout
        self.hostname = hostname or socket.gethostname()

    def acquire(self, timeout: Optional[float] = None) -> LockHandle:
        """
        Block until the lock is held or the timeout elapses.

        Args:
            timeout: Seconds to wait; defaults to the manager's timeout

        Returns:
            LockHandle: Handle to pass to ``release``

        Raises:
            LockTimeoutError: If the lock could not be obtained in time
        """
        wait = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + wait
        attempts = 0

        while True:
            attempts += 1
            holder = LockHolder(
                host=self.hostname,
                pid=os.getpid(),
                token=uuid.uuid4().hex,
                acquired_at=time.time(),
            )
            private = write_private_file(self.lock_path.parent, self.lock_path.name, holder.to_json())
            try:
                acquired = link_exclusive(private, self.lock_path)
            finally:
                remove_quietly(private)

            if acquired:
                logger.debug(f"Acquired lock {self.lock_path} after {attempts} attempt(s)")
                return LockHandle(path=self.lock_path, holder=holder)

            if self._break_if_stale():
                continue

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise LockTimeoutError(
                    f"Blackboard abort: timeout after {wait}s while attempting to acquire {self.lock_path}"
                )
            time.sleep(min(self.poll_interval, remaining))

    def release(self, handle: LockHandle) -> None:
        """
        Release a lock obtained from ``acquire``. Calling it twice is harmless.

        The lock file is removed only if it still carries the handle's token.
        """
        if handle.released:
            return
        try:
            current = self.read_holder()
            if current is None or current.token != handle.token:
                logger.warning(f"Lock {self.lock_path} is no longer held by this handle; leaving it in place")
                return
            remove_quietly(self.lock_path)
            logger.debug(f"Released lock {self.lock_path}")
        finally:
            handle.released = True

    @contextmanager
    def hold(self, timeout: Optional[float] = None) -> Iterator[LockHandle]:
        """Hold the lock for the duration of the context."""
        handle = self.acquire(timeout)
        try:
            yield handle
        finally:
            self.release(handle)

    def read_holder(self, path: Optional[Path] = None) -> Optional[LockHolder]:
        """Return the holder recorded in the lock file, or None."""
        target = path or self.lock_path
        revalidate(target)
        try:
            text = target.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return LockHolder.from_json(text)

    def is_locked(self) -> bool:
        revalidate(self.lock_path)
        return self.lock_path.exists()

    def is_stale(self, holder: Optional[LockHolder], mtime: Optional[float] = None) -> bool:
        """
        Decide whether a lock is abandoned.

        Args:
            holder: Parsed lock content (None when unreadable)
            mtime: Modification time of the lock file, used when there is no holder

        Returns:
            bool: True if the lock may be broken
        """
        if holder is not None and holder.host == self.hostname and not psutil.pid_exists(holder.pid):
            return True

        if self.stale_lock_timeout is None:
            return False

        started = holder.acquired_at if holder is not None else mtime
        if started is None:
            return False
        return time.time() - started > self.stale_lock_timeout

    def _break_if_stale(self) -> bool:
        """Break an abandoned lock. Returns True if the caller should retry at once."""
        revalidate(self.lock_path)
        try:
            before = self.lock_path.stat()
        except FileNotFoundError:
            return True

        holder = self.read_holder()
        if not self.is_stale(holder, before.st_mtime):
            return False

        grave = self.lock_path.parent / private_name(self.lock_path.name, suffix="stale")
        try:
            os.rename(self.lock_path, grave)
        except FileNotFoundError:
            return True

        try:
            after = os.stat(grave)
            moved = self.read_holder(grave)
            same_file = (after.st_dev, after.st_ino, after.st_mtime) == (
                before.st_dev,
                before.st_ino,
                before.st_mtime,
            )
            same_holder = holder is None or (moved is not None and moved.token == holder.token)
            if not (same_file and same_holder and self.is_stale(moved, after.st_mtime)):
                # Lock changed hands after inspection; put the new one back
                if not link_exclusive(grave, self.lock_path):
                    logger.error(
                        f"Could not restore lock {self.lock_path} moved during stale check; "
                        f"holder {moved.pid if moved else 'unknown'} on "
                        f"{moved.host if moved else 'unknown'} no longer holds it exclusively"
                    )
                return False
        finally:
            remove_quietly(grave)

        if holder is not None:
            logger.warning(
                f"Broke stale lock {self.lock_path} held by pid {holder.pid} on {holder.host} "
                f"since {time.ctime(holder.acquired_at)}"
            )
        else:
            logger.warning(f"Broke stale unreadable lock {self.lock_path}")
        return True


def create_lock_manager(directory: Union[str, Path], lock_name: str = "lockfile", **kwargs) -> LockManager:
    """Factory function to create a lock manager for a blackboard directory."""
    return LockManager(Path(directory) / lock_name, **kwargs)
