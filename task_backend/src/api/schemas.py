from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Priority, Status

# Shared type for incoming due_date which can be a date, datetime, or ISO8601 string
DueDateInput = Union[date, datetime, str]


def _parse_due_date(value: Optional[DueDateInput]) -> Optional[datetime]:
    """
    Internal helper to normalize due_date input into a naive local datetime.
    - If value is a string, attempt to parse via datetime.fromisoformat; if time is missing, set to 00:00.
    - If value is a date (not datetime), convert to datetime at 00:00.
    - Timezone-aware datetimes are converted to local time and made naive so they
      compare with created_at and the overdue clock.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _to_naive_local(value)

    if isinstance(value, date):
        # Promote a date to a datetime at midnight
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        try:
            return _to_naive_local(datetime.fromisoformat(s))
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid due_date format. Use ISO8601 date or datetime string (e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for due_date; expected date, datetime, or ISO8601 string.")


def _to_naive_local(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _clean_title(v: str) -> str:
    s = v.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task. Also used for full replacement (PUT).
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Fix login bug",
                "description": "Users are logged out after refresh",
                "priority": "HIGH",
                "status": "TODO",
                "due_date": "2025-02-01",
                "assigned_to": "john@example.com",
            }
        }
    )

    title: str = Field(..., description="Short title for the task", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(default=Priority.MEDIUM, description="LOW, MEDIUM, HIGH or CRITICAL")
    status: Status = Field(default=Status.TODO, description="TODO, IN_PROGRESS, COMPLETED or CANCELLED")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Due date/time of the task. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )
    assigned_to: Optional[str] = Field(default=None, description="Assignee identifier")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        """
        Normalize due_date from str/date/datetime to datetime.
        """
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for partially updating a task.
    All fields are optional; only fields present in the request are applied.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "priority": "CRITICAL",
                "status": "IN_PROGRESS",
                "due_date": "2025-02-02T09:30:00",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the task", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Optional[Priority] = Field(default=None, description="LOW, MEDIUM, HIGH or CRITICAL")
    status: Optional[Status] = Field(default=None, description="TODO, IN_PROGRESS, COMPLETED or CANCELLED")
    due_date: Optional[datetime] = Field(
        default=None,
        description="Due date/time of the task. Send null to clear it",
    )
    assigned_to: Optional[str] = Field(default=None, description="Assignee identifier")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and enforce 1..200 length.
        """
        if v is None:
            return v
        return _clean_title(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return _parse_due_date(v)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "TASK-0001",
                "title": "Fix login bug",
                "description": "Users are logged out after refresh",
                "priority": "HIGH",
                "status": "TODO",
                "created_at": "2025-01-25T10:15:30.123456",
                "due_date": "2025-02-01T00:00:00",
                "assigned_to": "john@example.com",
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the task, e.g. TASK-0001")
    title: Optional[str] = Field(default=None, description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(..., description="Task priority")
    status: Status = Field(..., description="Task status")
    created_at: datetime = Field(..., description="Creation timestamp")
    due_date: Optional[datetime] = Field(default=None, description="Due date/time as an ISO8601 datetime")
    assigned_to: Optional[str] = Field(default=None, description="Assignee identifier")


# PUBLIC_INTERFACE
class StatisticsOut(BaseModel):
    """
    Aggregate statistics over all tasks.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "total_tasks": 5,
                "status_counts": {"TODO": 3, "IN_PROGRESS": 1, "COMPLETED": 1, "CANCELLED": 0},
                "priority_counts": {"LOW": 1, "MEDIUM": 1, "HIGH": 2, "CRITICAL": 1},
                "completion_rate": "20.00%",
            }
        }
    )

    total_tasks: int = Field(..., description="Number of tasks")
    status_counts: Dict[Status, int] = Field(..., description="Task count per status")
    priority_counts: Dict[Priority, int] = Field(..., description="Task count per priority")
    completion_rate: str = Field(..., description="Completed share of all tasks, e.g. '20.00%'")
