"""Work item identifiers derived from file paths."""

import os
import re
from pathlib import PurePath
from typing import Optional, Union

# Only the last extension is removed: "x.tar.gz" -> "x.tar".
# A component with nothing before its extension (".bashrc") maps to None
# rather than "", so callers see a single "no identifier" value.
_EXTENSION = re.compile(r"^(.+)\.\w+\Z", re.DOTALL)


def basename_from(path: Union[str, PurePath]) -> Optional[str]:
    """
    Derive a work item identifier from a file path.

    The final path component is taken and its last ``.``-delimited extension
    stripped, e.g. ``/data/run1/report.txt`` -> ``report``.

    Args:
        path: File path

    Returns:
        Optional[str]: The identifier, or None when the final component has
        no extension (``README``, ``notes.``, ``.bashrc``, ``data/``)
    """
    name = os.path.basename(os.fspath(path))
    match = _EXTENSION.match(name)
    if match is None:
        return None
    return match.group(1)
