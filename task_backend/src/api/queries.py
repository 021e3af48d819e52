"""
Batch queries over a point-in-time snapshot of tasks.

Every function is pure: the input sequence is never mutated and a new
collection is returned (except search_by_keyword with a blank keyword, which
returns its input as-is).
"""
from __future__ import annotations

import bisect
import functools
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .models import Priority, Status, Task

_INACTIVE = {Status.COMPLETED, Status.CANCELLED}


@dataclass(frozen=True)
class TaskStatistics:
    """
    Aggregate counts over a task collection.

    completion_rate is pre-formatted, e.g. "40.00%".
    """
    total_tasks: int
    status_counts: Dict[Status, int]
    priority_counts: Dict[Priority, int]
    completion_rate: str


# PUBLIC_INTERFACE
def filter_tasks(
    tasks: Sequence[Task],
    status: Optional[Status] = None,
    priority: Optional[Priority] = None,
    assigned_to: Optional[str] = None,
) -> List[Task]:
    """
    Return tasks matching every supplied criterion exactly; None means
    "no constraint". Input order is preserved. O(n).
    """
    return [
        t for t in tasks
        if (status is None or t.status == status)
        and (priority is None or t.priority == priority)
        and (assigned_to is None or t.assigned_to == assigned_to)
    ]


# PUBLIC_INTERFACE
def top_k(tasks: Sequence[Task], k: int) -> List[Task]:
    """
    Return the k most urgent tasks, most urgent first.

    k <= 0 or an empty input gives []; k larger than the input is clamped.
    """
    if k <= 0 or not tasks:
        return []
    ranked = sorted(tasks, key=functools.cmp_to_key(Task.compare))
    return ranked[:k]


# PUBLIC_INTERFACE
def search_by_keyword(tasks: Sequence[Task], keyword: Optional[str]) -> Sequence[Task]:
    """
    Case-insensitive substring search across title and description.

    A None, empty or whitespace-only keyword returns `tasks` unchanged.
    """
    if keyword is None or not keyword.strip():
        return tasks

    needle = keyword.lower()

    def matches(t: Task) -> bool:
        title = (t.title or "").lower()
        description = (t.description or "").lower()
        return needle in title or needle in description

    return [t for t in tasks if matches(t)]


# PUBLIC_INTERFACE
def group_by_status(tasks: Sequence[Task]) -> Dict[Status, List[Task]]:
    """
    Partition tasks by status. Every Status is present as a key (possibly with
    an empty list); input order is kept within each group.
    """
    grouped: Dict[Status, List[Task]] = {s: [] for s in Status}
    for t in tasks:
        grouped[t.status].append(t)
    return grouped


# PUBLIC_INTERFACE
def find_overdue(tasks: Sequence[Task], now: Optional[datetime] = None) -> List[Task]:
    """
    Tasks with a due date strictly before `now` that are neither completed nor
    cancelled, earliest due date first.
    """
    now = now if now is not None else datetime.now()
    overdue = [
        t for t in tasks
        if t.due_date is not None and t.due_date < now and t.status not in _INACTIVE
    ]
    overdue.sort(key=lambda t: t.due_date)
    return overdue


# PUBLIC_INTERFACE
def compute_statistics(tasks: Sequence[Task]) -> TaskStatistics:
    """Count tasks per status and priority and compute the completion rate."""
    status_counts: Dict[Status, int] = {s: 0 for s in Status}
    priority_counts: Dict[Priority, int] = {p: 0 for p in Priority}
    for t in tasks:
        status_counts[t.status] += 1
        priority_counts[t.priority] += 1

    total = len(tasks)
    rate = status_counts[Status.COMPLETED] * 100.0 / total if total else 0.0
    return TaskStatistics(
        total_tasks=total,
        status_counts=status_counts,
        priority_counts=priority_counts,
        completion_rate=f"{rate:.2f}%",
    )


# PUBLIC_INTERFACE
def binary_search_by_id(tasks: Sequence[Task], task_id: str) -> Optional[Task]:
    """
    Find a task by id in a list already sorted by id. O(log n); None if absent.
    """
    i = bisect.bisect_left(tasks, task_id, key=lambda t: t.id)
    if i < len(tasks) and tasks[i].id == task_id:
        return tasks[i]
    return None
