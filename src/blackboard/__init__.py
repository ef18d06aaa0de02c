"""
Blackboard: coordinate work between processes through a shared directory.

    bb = Blackboard("./blackboard")
    for path in datafiles:
        session = bb.needs_processing(bb.basename_from(path), "preprocessing", "started")
        if session:
            preprocess(path)
            bb.update_status(session, "completed")
"""

from .coordinator import Blackboard, ClaimSession, create_blackboard
from .exceptions import (
    BlackboardError,
    ConfigurationError,
    DirectoryMissingError,
    LockTimeoutError,
    StatusRecordError,
)
from .identifiers import basename_from
from .locking import LockHandle, LockManager
from .schema import StatusRecord
from .status_store import StatusStore

__version__ = "1.0.0"

__all__ = [
    "Blackboard",
    "BlackboardError",
    "ClaimSession",
    "ConfigurationError",
    "DirectoryMissingError",
    "LockHandle",
    "LockManager",
    "LockTimeoutError",
    "StatusRecord",
    "StatusRecordError",
    "StatusStore",
    "basename_from",
    "create_blackboard",
]
