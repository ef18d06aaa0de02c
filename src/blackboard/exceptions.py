"""
Exceptions raised by the blackboard coordination layer.

"Already claimed" and "not claimed" are ordinary results, not errors; only
conditions that leave the caller unable to proceed safely are raised here.
"""


class BlackboardError(Exception):
    """Base class for all blackboard errors."""


class DirectoryMissingError(BlackboardError, FileNotFoundError):
    """The shared blackboard directory does not exist."""


class LockTimeoutError(BlackboardError, TimeoutError):
    """The blackboard lock could not be acquired within the timeout.

    Nothing on the blackboard has been modified when this is raised.
    """


class StatusRecordError(BlackboardError, ValueError):
    """A status record field cannot be encoded, or a line cannot be parsed."""


class ConfigurationError(BlackboardError):
    """Configuration values are missing or invalid."""
