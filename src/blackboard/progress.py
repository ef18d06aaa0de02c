"""
Progress inspection.

Reads the status files of a blackboard without taking the lock; every status
file holds a complete record, so an unlocked read sees either the old or the
new content.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from .status_store import StatusStore


@dataclass
class ProgressSummary:
    """Counts of claimed pairs on one blackboard."""

    directory: Path
    total: int = 0
    by_task: Counter = field(default_factory=Counter)
    by_task_message: Dict[Tuple[str, str], int] = field(default_factory=dict)
    unparseable: List[Path] = field(default_factory=list)

    def count(self, task: str, message: str) -> int:
        return self.by_task_message.get((task, message), 0)


def summarize(store: StatusStore) -> ProgressSummary:
    """
    Summarize every status file in a store.

    Args:
        store: Store to inspect

    Returns:
        ProgressSummary: Totals per task and per (task, message)
    """
    summary = ProgressSummary(directory=store.directory)
    pairs: Counter = Counter()

    for path, record in store.iter_records():
        summary.total += 1
        if record is None:
            summary.unparseable.append(path)
            continue
        summary.by_task[record.task] += 1
        pairs[(record.task, record.message)] += 1

    summary.by_task_message = dict(pairs)
    return summary


def format_summary(summary: ProgressSummary) -> str:
    """Render a summary as indented text, one task per block."""
    lines = [f"Blackboard {summary.directory}: {summary.total} claimed"]
    for task in sorted(summary.by_task):
        lines.append(f"  {task}: {summary.by_task[task]}")
        for (t, message), n in sorted(summary.by_task_message.items()):
            if t == task:
                lines.append(f"    {message or '(no message)'}: {n}")
    if summary.unparseable:
        lines.append(f"  unparseable: {len(summary.unparseable)}")
        for path in summary.unparseable:
            lines.append(f"    {path.name}")
    return "\n".join(lines)
