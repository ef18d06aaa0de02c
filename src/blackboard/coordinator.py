"""
Blackboard Coordinator Module

Lets independent processes, on one host or many hosts sharing a directory,
split work items between them without doing any item twice. A process claims
an (item, task) pair with ``needs_processing``; only the first caller gets a
``ClaimSession`` back and goes on to do the work, reporting progress with
``update_status``.
"""

import socket
import os
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

from .exceptions import DirectoryMissingError
from .identifiers import basename_from
from .locking import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT, LockManager
from .schema import StatusRecord, check_field
from .status_store import StatusStore

if TYPE_CHECKING:
    from .config import BlackboardSettings

logger = logging.getLogger(__name__)

LOCKFILE_NAME = "lockfile"


@dataclass(frozen=True)
class ClaimSession:
    """An (item, task) pair claimed by this process."""

    item: str
    task: str
    host: str
    pid: int
    status_path: Path
    claimed_at: datetime


def _chomp(message: str) -> str:
    return message.rstrip("\r\n")


class Blackboard:
    """Coordinates claims and status updates through a shared directory."""

    def __init__(
        self,
        blackboard_dir: Union[str, Path] = "./blackboard",
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        stale_lock_timeout: Optional[float] = None,
        hostname: Optional[str] = None,
    ):
        """
        Bind a coordinator to a blackboard directory.

        Args:
            blackboard_dir: Shared directory; it must already exist
            timeout: Seconds to wait for the blackboard lock
            poll_interval: Seconds between lock attempts
            stale_lock_timeout: Age after which a lock is treated as abandoned
            hostname: Host name written into records (defaults to this host)

        Raises:
            DirectoryMissingError: If ``blackboard_dir`` is not a directory
        """
        directory = Path(blackboard_dir)
        if not directory.is_dir():
            raise DirectoryMissingError(f"blackboard directory does not exist:\n{directory}")

        self._directory = directory
        self._hostname = hostname or socket.gethostname()
        self._lock = LockManager(
            directory / LOCKFILE_NAME,
            timeout=timeout,
            poll_interval=poll_interval,
            stale_lock_timeout=stale_lock_timeout,
            hostname=self._hostname,
        )
        self._store = StatusStore(directory)
        logger.debug(f"Blackboard ready at {directory} (timeout={timeout}s)")

    @classmethod
    def from_settings(cls, settings: "BlackboardSettings") -> "Blackboard":
        """Create a coordinator from loaded configuration."""
        return cls(
            blackboard_dir=settings.directory,
            timeout=settings.timeout_seconds,
            poll_interval=settings.poll_interval_seconds,
            stale_lock_timeout=settings.stale_lock_timeout_seconds,
        )

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def lock_path(self) -> Path:
        return self._lock.lock_path

    @property
    def timeout(self) -> float:
        return self._lock.timeout

    @property
    def hostname(self) -> str:
        return self._hostname

    @property
    def lock_manager(self) -> LockManager:
        return self._lock

    @property
    def store(self) -> StatusStore:
        return self._store

    def needs_processing(self, basename: str, task: str, message: str = "") -> Optional[ClaimSession]:
        """
        Claim an (item, task) pair if nobody has claimed it before.

        Args:
            basename: Work item identifier
            task: Task name, a simple alphanumeric token such as "preprocessing"
            message: Initial status message, e.g. "started"

        Returns:
            Optional[ClaimSession]: The claim if this call made it, None if the
            pair was already claimed (in any state)

        Raises:
            LockTimeoutError: If the blackboard lock could not be acquired
        """
        message = _chomp(message)
        status_path = self._store.path_for(basename, task)
        check_field("message", message)

        with self._lock.hold():
            record = StatusRecord.create(
                host=self._hostname,
                pid=os.getpid(),
                item=basename,
                task=task,
                message=message,
            )
            created = self._store.create_if_absent(record)

        if not created:
            logger.info(f"[CLAIM] already held: {basename}.{task}")
            return None

        logger.info(f"[CLAIM] acquired: {basename}.{task} host={record.host} pid={record.pid}")
        return ClaimSession(
            item=basename,
            task=task,
            host=record.host,
            pid=record.pid,
            status_path=status_path,
            claimed_at=record.timestamp,
        )

    def update_status(self, session: ClaimSession, message: str) -> bool:
        """
        Overwrite the status record of a claimed pair with a new message.

        Args:
            session: Claim returned by ``needs_processing``
            message: New status message, e.g. "completed"

        Returns:
            bool: False if the pair has no status file (nothing to update)

        Raises:
            LockTimeoutError: If the blackboard lock could not be acquired
        """
        message = _chomp(message)
        check_field("message", message)

        with self._lock.hold():
            record = StatusRecord.create(
                host=session.host,
                pid=session.pid,
                item=session.item,
                task=session.task,
                message=message,
            )
            updated = self._store.overwrite(record)

        if updated:
            logger.info(f"[CLAIM] updated: {session.item}.{session.task} message={message!r}")
        else:
            logger.info(f"[CLAIM] not claimed: {session.item}.{session.task}; status not updated")
        return updated

    def read_status(self, item: str, task: str) -> Optional[StatusRecord]:
        """Return the current record for a pair, or None if it is unclaimed."""
        return self._store.read(item, task)

    @staticmethod
    def basename_from(path: Union[str, Path]) -> Optional[str]:
        """Derive a work item identifier from a file path (see ``identifiers``)."""
        return basename_from(path)


def create_blackboard(settings: Optional["BlackboardSettings"] = None, **kwargs) -> Blackboard:
    """Factory function to create a blackboard from settings or keyword arguments."""
    if settings is not None:
        return Blackboard.from_settings(settings)
    return Blackboard(**kwargs)
