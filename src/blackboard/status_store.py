"""
Status Store Module

Naming convention and read/write primitives for status files. Every write
goes through a private file in the blackboard directory so that a status
file is either absent or holds one complete record.

The store does no locking of its own: callers serialize writes and
existence checks through the blackboard lock.
"""

import os
import logging
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from .exceptions import StatusRecordError
from .fsutils import link_exclusive, remove_quietly, revalidate, write_private_file
from .schema import STATUS_SUFFIX, StatusRecord, check_field, status_filename

logger = logging.getLogger(__name__)


class StatusStore:
    """One status file per (item, task) pair inside a blackboard directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, item: str, task: str) -> Path:
        """
        Return the status file path for an (item, task) pair.

        Raises:
            ValueError: If either identifier is empty or would escape the directory
        """
        for name, value in (("item", item), ("task", task)):
            if not value:
                raise ValueError(f"{name} must be a non-empty string")
            if "/" in value or os.sep in value or value in (".", ".."):
                raise ValueError(f"{name} may not contain path separators: {value!r}")
            check_field(name, value)
        return self.directory / status_filename(item, task)

    def exists(self, item: str, task: str) -> bool:
        path = self.path_for(item, task)
        revalidate(path)
        return path.exists()

    def create_if_absent(self, record: StatusRecord) -> bool:
        """
        Create the status file for the record's pair unless it already exists.

        Args:
            record: Initial record to store

        Returns:
            bool: True if the file was created by this call
        """
        path = self.path_for(record.item, record.task)
        revalidate(path)
        if path.exists():
            return False

        private = write_private_file(self.directory, path.name, record.to_line())
        try:
            return link_exclusive(private, path)
        finally:
            remove_quietly(private)

    def overwrite(self, record: StatusRecord) -> bool:
        """
        Replace the content of an existing status file.

        Args:
            record: Record to store

        Returns:
            bool: False if there was no status file to replace
        """
        path = self.path_for(record.item, record.task)
        revalidate(path)
        if not path.exists():
            return False

        private = write_private_file(self.directory, path.name, record.to_line())
        try:
            os.replace(private, path)
        except BaseException:
            remove_quietly(private)
            raise
        return True

    def read(self, item: str, task: str) -> Optional[StatusRecord]:
        """
        Read the record for a pair.

        Returns:
            Optional[StatusRecord]: None if there is no status file

        Raises:
            StatusRecordError: If the file exists but does not hold a record
        """
        path = self.path_for(item, task)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise StatusRecordError(f"Status file {path} is not UTF-8 text: {e}") from e
        return StatusRecord.from_line(text)

    def iter_records(self) -> Iterator[Tuple[Path, Optional[StatusRecord]]]:
        """
        Yield every status file with its parsed record.

        Files that cannot be parsed (empty, foreign or corrupt markers) are
        yielded with None; they still count as claims.
        """
        for path in sorted(self.directory.glob(f"*{STATUS_SUFFIX}")):
            if path.name.startswith("."):
                continue
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except FileNotFoundError:
                continue
            try:
                record = StatusRecord.from_line(text)
            except StatusRecordError as e:
                logger.debug(f"Unparseable status file {path.name}: {e}")
                record = None
            yield path, record


def create_status_store(directory: Union[str, Path]) -> StatusStore:
    """Factory function to create a status store."""
    return StatusStore(directory)
