from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from threading import Lock, RLock
from typing import Dict, List, Optional, Sequence

from . import queries
from .models import Priority, Status, Task
from .priority_index import PriorityIndex
from .schemas import TaskCreate, TaskUpdate
from .settings import get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
    def create(self, data: TaskCreate) -> Task:
        """Create and return a new Task."""

    @abstractmethod
    def get(self, task_id: str) -> Optional[Task]:
        """Return a Task by id, or None if not found."""

    @abstractmethod
    def update(self, task_id: str, data: TaskUpdate) -> Optional[Task]:
        """Update fields of an existing Task. Return updated task or None if not found."""

    @abstractmethod
    def delete(self, task_id: str) -> bool:
        """Delete a Task by id. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self) -> List[Task]:
        """Return every task, in no particular order."""

    @abstractmethod
    def list_by_priority(self) -> List[Task]:
        """Return every task, most urgent first."""

    @abstractmethod
    def next_task(self) -> Optional[Task]:
        """Return the single most urgent task, or None if there are none."""

    @abstractmethod
    def top(self, k: int) -> List[Task]:
        """Return the k most urgent tasks, most urgent first."""

    @abstractmethod
    def search(self, keyword: Optional[str]) -> Sequence[Task]:
        """Case-insensitive keyword search over title and description."""

    @abstractmethod
    def filter(
        self,
        status: Optional[Status] = None,
        priority: Optional[Priority] = None,
        assigned_to: Optional[str] = None,
    ) -> List[Task]:
        """Return tasks matching every supplied criterion."""

    @abstractmethod
    def grouped(self) -> Dict[Status, List[Task]]:
        """Return tasks partitioned by status."""

    @abstractmethod
    def overdue(self) -> List[Task]:
        """Return open tasks past their due date, earliest first."""

    @abstractmethod
    def statistics(self) -> queries.TaskStatistics:
        """Return aggregate counts and the completion rate."""


class InMemoryTaskRepository(Repository):
    """
    Thread-safe in-memory repository.

    The id -> Task store and the PriorityIndex are always mutated together
    under one lock. Reads copy tasks out under the lock; batch queries then
    run on that snapshot without holding it.
    """

    def __init__(self, id_prefix: str = "TASK") -> None:
        self._lock = RLock()
        self._items: Dict[str, Task] = {}
        self._index = PriorityIndex()
        self._id_prefix = id_prefix
        self._next_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def _allocate_id(self) -> str:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return f"{self._id_prefix}-{i:04d}"

    def create(self, data: TaskCreate) -> Task:
        with self._lock:
            task = Task(
                id=self._allocate_id(),
                title=data.title,
                description=data.description,
                priority=data.priority,
                status=data.status or Status.TODO,
                created_at=self._now(),
                due_date=data.due_date,
                assigned_to=data.assigned_to,
            )
            self._items[task.id] = task
            self._index.insert(task)
            logger.info("Created task %s priority=%s", task.id, task.priority.value)
            return task.copy()

    def get(self, task_id: str) -> Optional[Task]:
        with self._lock:
            item = self._items.get(task_id)
            if item is None:
                logger.debug("Task %s not found", task_id)
                return None
            return item.copy()

    def update(self, task_id: str, data: TaskUpdate) -> Optional[Task]:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                logger.debug("Update skipped, task %s not found", task_id)
                return None

            fields = data.model_fields_set
            # Title, priority and status are not nullable; ignore explicit nulls
            if data.title is not None:
                existing.title = data.title
            if "description" in fields:
                existing.description = data.description
            if data.status is not None:
                existing.status = data.status
            if "assigned_to" in fields:
                existing.assigned_to = data.assigned_to

            # Rank-affecting fields go through the index so heap order holds
            if data.priority is not None and data.priority != existing.priority:
                self._index.update_priority(task_id, data.priority)
            if "due_date" in fields and data.due_date != existing.due_date:
                self._index.reschedule(task_id, data.due_date)

            logger.info("Updated task %s fields=%s", task_id, sorted(fields))
            return existing.copy()

    def delete(self, task_id: str) -> bool:
        with self._lock:
            removed = self._items.pop(task_id, None)
            if removed is None:
                logger.debug("Delete skipped, task %s not found", task_id)
                return False
            self._index.remove_by_key(task_id)
            logger.info("Deleted task %s", task_id)
            return True

    def snapshot(self) -> List[Task]:
        """Detached copies of every task, taken under the lock."""
        with self._lock:
            return [t.copy() for t in self._items.values()]

    def list(self) -> List[Task]:
        return self.snapshot()

    def list_by_priority(self) -> List[Task]:
        with self._lock:
            return [t.copy() for t in self._index.snapshot_sorted()]

    def next_task(self) -> Optional[Task]:
        with self._lock:
            top = self._index.peek()
            return None if top is None else top.copy()

    def top(self, k: int) -> List[Task]:
        return queries.top_k(self.snapshot(), k)

    def search(self, keyword: Optional[str]) -> Sequence[Task]:
        return queries.search_by_keyword(self.snapshot(), keyword)

    def filter(
        self,
        status: Optional[Status] = None,
        priority: Optional[Priority] = None,
        assigned_to: Optional[str] = None,
    ) -> List[Task]:
        return queries.filter_tasks(self.snapshot(), status, priority, assigned_to)

    def grouped(self) -> Dict[Status, List[Task]]:
        return queries.group_by_status(self.snapshot())

    def overdue(self) -> List[Task]:
        return queries.find_overdue(self.snapshot(), self._now())

    def statistics(self) -> queries.TaskStatistics:
        return queries.compute_statistics(self.snapshot())


_repository: Optional[Repository] = None
_repository_lock = Lock()


# PUBLIC_INTERFACE
def get_repository() -> Repository:
    """
    Return the process-wide repository, created on first use with the
    configured id prefix. Creation is serialized so concurrent first
    requests share one instance.
    """
    global _repository
    if _repository is None:
        with _repository_lock:
            if _repository is None:
                settings = get_settings()
                logger.info("Initialising in-memory task repository (id prefix %s)", settings.task_id_prefix)
                _repository = InMemoryTaskRepository(id_prefix=settings.task_id_prefix)
    return _repository
