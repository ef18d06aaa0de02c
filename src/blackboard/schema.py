"""
Status record schema.

A status record is one pipe-delimited line:

    <timestamp>|<host>|<pid>|<item>|<task>|<message>

with the timestamp written as ``YYYY-MM-DD HH:MM:SS`` in local time.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from .exceptions import StatusRecordError

FIELD_DELIMITER = "|"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
STATUS_SUFFIX = ".status"

_FORBIDDEN_CHARACTERS = (FIELD_DELIMITER, "\n", "\r")


def current_timestamp() -> datetime:
    """Return the local time truncated to whole seconds."""
    return datetime.now().replace(microsecond=0)


def check_field(name: str, value: str) -> str:
    """Reject values that would corrupt the record line."""
    for ch in _FORBIDDEN_CHARACTERS:
        if ch in value:
            raise StatusRecordError(f"{name} may not contain {ch!r}: {value!r}")
    return value


class StatusRecord(BaseModel):
    """The content of one ``<item>.<task>.status`` file."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=current_timestamp, description="Write time (local)")
    host: str = Field(..., min_length=1, description="Host that wrote the record")
    pid: int = Field(..., ge=0, description="Process id of the writer")
    item: str = Field(..., min_length=1, description="Work item identifier")
    task: str = Field(..., min_length=1, description="Task identifier")
    message: str = Field(default="", description="Free-form status message")

    @field_validator("timestamp")
    @classmethod
    def _whole_seconds(cls, value: datetime) -> datetime:
        return value.replace(microsecond=0)

    @field_validator("host", "item", "task", "message")
    @classmethod
    def _no_delimiters(cls, value: str, info: ValidationInfo) -> str:
        return check_field(info.field_name, value)

    @classmethod
    def create(
        cls,
        host: str,
        pid: int,
        item: str,
        task: str,
        message: str = "",
        timestamp: Optional[datetime] = None,
    ) -> "StatusRecord":
        """
        Build a record, converting validation failures to StatusRecordError.

        Args:
            host: Writer host name
            pid: Writer process id
            item: Work item identifier
            task: Task identifier
            message: Status message
            timestamp: Write time; defaults to now

        Returns:
            StatusRecord: The validated record
        """
        fields = {"host": host, "pid": pid, "item": item, "task": task, "message": message}
        if timestamp is not None:
            fields["timestamp"] = timestamp
        try:
            return cls(**fields)
        except ValidationError as e:
            raise StatusRecordError(f"Invalid status record: {e}") from e

    def to_line(self) -> str:
        """Encode the record as a single newline-terminated line."""
        fields = [
            self.timestamp.strftime(TIMESTAMP_FORMAT),
            self.host,
            str(self.pid),
            self.item,
            self.task,
            self.message,
        ]
        return FIELD_DELIMITER.join(fields) + "\n"

    @classmethod
    def from_line(cls, line: str) -> "StatusRecord":
        """
        Parse a status line.

        Args:
            line: One encoded record, with or without its trailing newline

        Returns:
            StatusRecord: The decoded record

        Raises:
            StatusRecordError: If the line does not hold six well-formed fields
        """
        text = line.rstrip("\r\n")
        parts = text.split(FIELD_DELIMITER)
        if len(parts) != 6:
            raise StatusRecordError(f"Expected 6 fields in status line, got {len(parts)}: {text!r}")

        stamp, host, pid, item, task, message = parts
        try:
            timestamp = datetime.strptime(stamp, TIMESTAMP_FORMAT)
            pid_value = int(pid)
        except ValueError as e:
            raise StatusRecordError(f"Malformed status line {text!r}: {e}") from e

        return cls.create(
            host=host,
            pid=pid_value,
            item=item,
            task=task,
            message=message,
            timestamp=timestamp,
        )


def status_filename(item: str, task: str) -> str:
    """Return the status file name for an (item, task) pair."""
    return f"{item}.{task}{STATUS_SUFFIX}"
