from __future__ import annotations

import functools
from datetime import datetime
from typing import Dict, List, Optional

from .models import Priority, Task


class DuplicateTaskError(ValueError):
    """Raised when a task id is inserted into an index that already holds it."""


# PUBLIC_INTERFACE
class PriorityIndex:
    """
    Array-backed binary heap of tasks, most urgent at position 0, with an
    id -> position map so any task can be removed or repositioned in O(log n).

    Complexity:
    - insert / extract_top / remove_by_key / update_priority / reschedule: O(log n)
    - peek / size / is_empty: O(1)
    - snapshot_sorted: O(n log n)

    The index holds references to the caller's Task objects. It is not
    thread-safe on its own; callers serialize access.
    """

    def __init__(self) -> None:
        self._heap: List[Task] = []
        self._positions: Dict[str, int] = {}

    def insert(self, task: Task) -> None:
        """Add a task. Raises DuplicateTaskError if its id is already indexed."""
        if task.id in self._positions:
            raise DuplicateTaskError(f"task {task.id!r} is already indexed")
        self._heap.append(task)
        index = len(self._heap) - 1
        self._positions[task.id] = index
        self._bubble_up(index)

    def extract_top(self) -> Optional[Task]:
        """Remove and return the most urgent task, or None if empty."""
        if not self._heap:
            return None

        top = self._heap[0]
        last = self._heap.pop()
        del self._positions[top.id]

        if self._heap:
            self._heap[0] = last
            self._positions[last.id] = 0
            self._bubble_down(0)

        return top

    def peek(self) -> Optional[Task]:
        """Return the most urgent task without removing it, or None if empty."""
        return self._heap[0] if self._heap else None

    def remove_by_key(self, task_id: str) -> bool:
        """Remove the task with `task_id`. Returns False if it is not indexed."""
        index = self._positions.pop(task_id, None)
        if index is None:
            return False

        last = self._heap.pop()
        if index < len(self._heap):
            self._heap[index] = last
            self._positions[last.id] = index
            # Only one of these moves anything.
            self._bubble_down(index)
            self._bubble_up(index)

        return True

    def update_priority(self, task_id: str, new_priority: Priority) -> bool:
        """
        Change a task's priority in place and restore heap order.

        Returns False if the task is not indexed. An unchanged priority is a
        no-op even if due dates would now order the task differently.
        """
        index = self._positions.get(task_id)
        if index is None:
            return False

        task = self._heap[index]
        old_priority = task.priority
        task._priority = new_priority

        if new_priority.rank > old_priority.rank:
            self._bubble_up(index)
        elif new_priority.rank < old_priority.rank:
            self._bubble_down(index)

        return True

    def reschedule(self, task_id: str, due_date: Optional[datetime]) -> bool:
        """Change a task's due date and restore heap order. False if not indexed."""
        index = self._positions.get(task_id)
        if index is None:
            return False

        self._heap[index]._due_date = due_date
        self._bubble_down(index)
        self._bubble_up(self._positions[task_id])
        return True

    def size(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._positions

    def snapshot_unordered(self) -> List[Task]:
        """All held tasks in heap-array order."""
        return list(self._heap)

    def snapshot_sorted(self) -> List[Task]:
        """All held tasks sorted most urgent first. Does not drain the heap."""
        return sorted(self._heap, key=functools.cmp_to_key(Task.compare))

    def check_invariants(self) -> bool:
        """True iff heap order holds and the id map matches array positions exactly."""
        for i in range(1, len(self._heap)):
            if self._heap[i].ranks_before(self._heap[(i - 1) // 2]):
                return False
        if len(self._positions) != len(self._heap):
            return False
        return all(self._positions.get(task.id) == i for i, task in enumerate(self._heap))

    def _bubble_up(self, index: int) -> None:
        while index > 0:
            parent = (index - 1) // 2
            if not self._heap[index].ranks_before(self._heap[parent]):
                break
            self._swap(index, parent)
            index = parent

    def _bubble_down(self, index: int) -> None:
        size = len(self._heap)
        while True:
            left = 2 * index + 1
            right = left + 1
            best = index

            if left < size and self._heap[left].ranks_before(self._heap[best]):
                best = left
            if right < size and self._heap[right].ranks_before(self._heap[best]):
                best = right

            if best == index:
                break

            self._swap(index, best)
            index = best

    def _swap(self, i: int, j: int) -> None:
        heap = self._heap
        heap[i], heap[j] = heap[j], heap[i]
        self._positions[heap[i].id] = i
        self._positions[heap[j].id] = j
