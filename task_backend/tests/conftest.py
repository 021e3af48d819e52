from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

import pytest

from src.api.models import Priority, Status, Task


@pytest.fixture()
def sample_tasks() -> List[Task]:
    """
    Five tasks with mixed priority/status; only task 3 has a due date (7 days out).
    """
    now = datetime.now()
    return [
        Task("1", "Fix critical bug", "Production issue", Priority.CRITICAL,
             status=Status.IN_PROGRESS, assigned_to="john@example.com"),
        Task("2", "Update documentation", "README updates", Priority.LOW, status=Status.TODO),
        Task("3", "Implement feature", "New feature request", Priority.HIGH,
             status=Status.TODO, due_date=now + timedelta(days=7)),
        Task("4", "Code review", "Review PR #123", Priority.MEDIUM, status=Status.COMPLETED),
        Task("5", "Fix bug in login", "User reported issue", Priority.HIGH, status=Status.TODO),
    ]
