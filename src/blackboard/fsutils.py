"""
Filesystem primitives that stay correct on NFS.

``O_EXCL`` creation is not reliable over older NFS clients, so exclusive
creation is done by writing a private file and hard-linking it to the target
name. The link count of the private file, not the return value of ``link()``,
decides whether the link was made.
"""

import errno
import os
import socket
import uuid
import logging
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def private_name(target_name: str, suffix: str = "tmp") -> str:
    """Return a hidden file name unique to this host, process and call."""
    host = socket.gethostname().replace(os.sep, "_")
    return f".{target_name}.{host}.{os.getpid()}.{uuid.uuid4().hex}.{suffix}"


def write_private_file(directory: Path, target_name: str, content: str) -> Path:
    """
    Write ``content`` to a new private file in ``directory``.

    Args:
        directory: Directory that will also hold the final file
        target_name: Name of the file this one will become
        content: Full file content

    Returns:
        Path: Path of the private file
    """
    path = Path(directory) / private_name(target_name)
    fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
    except BaseException:
        remove_quietly(path)
        raise
    return path


def link_exclusive(source: Union[str, Path], target: Union[str, Path]) -> bool:
    """
    Create ``target`` as a hard link to ``source`` only if it does not exist.

    Args:
        source: Private file, not linked anywhere else
        target: Name to create

    Returns:
        bool: True if this call created ``target``
    """
    try:
        os.link(source, target)
    except OSError as e:
        # An NFS retransmit can report EEXIST for a link that was made
        if os.stat(source).st_nlink == 2:
            return True
        if e.errno != errno.EEXIST:
            raise
        return False
    return os.stat(source).st_nlink == 2


def revalidate(path: Union[str, Path]) -> None:
    """Open and close ``path`` so a stale NFS attribute cache is refreshed."""
    try:
        with open(path, "rb"):
            pass
    except FileNotFoundError:
        pass


def remove_quietly(path: Union[str, Path]) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove {path}: {e}")
