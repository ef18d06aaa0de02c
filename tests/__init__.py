"""
Test package for blackboard

This package contains unit tests, concurrency tests and logging tests for the
blackboard coordination library.
"""

# Shared test constants
DEFAULT_ITEM = "report"
DEFAULT_TASK = "preprocessing"
DEFAULT_MESSAGE = "started"

__all__ = [
    "DEFAULT_ITEM",
    "DEFAULT_TASK",
    "DEFAULT_MESSAGE",
]
