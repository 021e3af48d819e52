from __future__ import annotations

import copy
from datetime import datetime
from enum import Enum
from typing import Optional


# PUBLIC_INTERFACE
class Priority(str, Enum):
    """
    Task urgency. Each member carries an explicit numeric rank; a higher rank
    is more urgent. Ordering always goes through `rank`, never declaration order.
    """

    LOW = ("LOW", 1)
    MEDIUM = ("MEDIUM", 2)
    HIGH = ("HIGH", 3)
    CRITICAL = ("CRITICAL", 4)

    def __new__(cls, label: str, rank: int) -> "Priority":
        obj = str.__new__(cls, label)
        obj._value_ = label
        obj.rank = rank
        return obj


# PUBLIC_INTERFACE
class Status(str, Enum):
    """Task lifecycle status."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# PUBLIC_INTERFACE
class Task:
    """
    A unit of work.

    Fields:
    - id: Opaque unique identifier, immutable after creation
    - title / description: Free text, nullable
    - priority: Priority (read-only; changed via PriorityIndex.update_priority)
    - status: Status, TODO by default
    - created_at: Creation timestamp, set once
    - due_date: Optional due datetime (read-only; changed via PriorityIndex.reschedule)
    - assigned_to: Optional assignee

    `priority` and `due_date` decide where the task sits in a PriorityIndex,
    so they have no public setters.
    """

    def __init__(
        self,
        id: str,
        title: Optional[str],
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        status: Status = Status.TODO,
        created_at: Optional[datetime] = None,
        due_date: Optional[datetime] = None,
        assigned_to: Optional[str] = None,
    ) -> None:
        self._id = id
        self.title = title
        self.description = description
        self._priority = priority
        self.status = status
        self._created_at = created_at if created_at is not None else datetime.now()
        self._due_date = due_date
        self.assigned_to = assigned_to

    @property
    def id(self) -> str:
        return self._id

    @property
    def priority(self) -> Priority:
        return self._priority

    @property
    def due_date(self) -> Optional[datetime]:
        return self._due_date

    @property
    def created_at(self) -> datetime:
        return self._created_at

    def ranks_before(self, other: Task) -> bool:
        """True if this task is strictly more urgent than `other`."""
        return self.compare(other) < 0

    def compare(self, other: Task) -> int:
        """
        Three-way comparison by rank: higher priority first, then earlier due
        date. When either due date is missing the two tasks are tied.
        """
        if self._priority.rank != other._priority.rank:
            return -1 if self._priority.rank > other._priority.rank else 1
        if self._due_date is None or other._due_date is None:
            return 0
        if self._due_date < other._due_date:
            return -1
        if self._due_date > other._due_date:
            return 1
        return 0

    def copy(self) -> Task:
        """Return a detached shallow copy (safe to hand out of a lock)."""
        return copy.copy(self)

    def to_dict(self) -> dict:
        return {
            "id": self._id,
            "title": self.title,
            "description": self.description,
            "priority": self._priority,
            "status": self.status,
            "created_at": self._created_at,
            "due_date": self._due_date,
            "assigned_to": self.assigned_to,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return (
            f"Task(id={self._id!r}, title={self.title!r}, priority={self._priority.value}, "
            f"status={self.status.value}, due_date={self._due_date})"
        )
