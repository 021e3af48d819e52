from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..models import Priority, Status, Task
from ..repositories import Repository, get_repository
from ..schemas import StatisticsOut, TaskCreate, TaskOut, TaskUpdate

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)

_NOT_FOUND = "Task not found"


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


def _out(task: Task) -> TaskOut:
    return TaskOut(**task.to_dict())


def _out_list(tasks) -> List[TaskOut]:
    return [_out(t) for t in tasks]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task. The server assigns the id (TASK-0001, ...) and creation time.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_task(payload: TaskCreate, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Create a new task and add it to the priority index.
    """
    return _out(repo.create(payload))


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TaskOut],
    summary="List Tasks",
    description="List every task in insertion order.",
)
def list_tasks(repo: Repository = Depends(_get_repo)) -> List[TaskOut]:
    return _out_list(repo.list())


# PUBLIC_INTERFACE
@router.get(
    "/priority",
    response_model=List[TaskOut],
    summary="List Tasks By Priority",
    description="List every task, most urgent first (priority, then earliest due date).",
)
def list_tasks_by_priority(repo: Repository = Depends(_get_repo)) -> List[TaskOut]:
    return _out_list(repo.list_by_priority())


# PUBLIC_INTERFACE
@router.get(
    "/next",
    response_model=TaskOut,
    summary="Next Task",
    description="Return the single most urgent task without removing it.",
    responses={
        200: {"description": "Most urgent task"},
        204: {"description": "There are no tasks"},
    },
)
def get_next_task(repo: Repository = Depends(_get_repo)):
    """
    Peek at the top of the priority index. Returns 204 when it is empty.
    """
    task = repo.next_task()
    if task is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _out(task)


# PUBLIC_INTERFACE
@router.get(
    "/top/{k}",
    response_model=List[TaskOut],
    summary="Top K Tasks",
    description=(
        "Return the k most urgent tasks, most urgent first. "
        "k <= 0 returns an empty list; k larger than the number of tasks returns all of them."
    ),
)
def get_top_tasks(k: int, repo: Repository = Depends(_get_repo)) -> List[TaskOut]:
    return _out_list(repo.top(k))


# PUBLIC_INTERFACE
@router.get(
    "/search",
    response_model=List[TaskOut],
    summary="Search Tasks",
    description="Case-insensitive substring search in title and description. A blank keyword returns every task.",
)
def search_tasks(
    keyword: Optional[str] = Query(None, description="Text to look for in title/description"),
    repo: Repository = Depends(_get_repo),
) -> List[TaskOut]:
    return _out_list(repo.search(keyword))


# PUBLIC_INTERFACE
@router.get(
    "/filter",
    response_model=List[TaskOut],
    summary="Filter Tasks",
    description=(
        "Filter tasks by any combination of criteria. Omitted criteria do not constrain the result.\n\n"
        "Query parameters:\n"
        "- status: TODO, IN_PROGRESS, COMPLETED or CANCELLED\n"
        "- priority: LOW, MEDIUM, HIGH or CRITICAL\n"
        "- assigned_to: exact assignee match"
    ),
)
def filter_tasks(
    status_: Optional[Status] = Query(None, alias="status", description="Filter by status"),
    priority: Optional[Priority] = Query(None, description="Filter by priority"),
    assigned_to: Optional[str] = Query(None, description="Filter by assignee"),
    repo: Repository = Depends(_get_repo),
) -> List[TaskOut]:
    return _out_list(repo.filter(status_, priority, assigned_to))


# PUBLIC_INTERFACE
@router.get(
    "/grouped",
    response_model=Dict[Status, List[TaskOut]],
    summary="Tasks Grouped By Status",
    description="Tasks partitioned by status. Every status is present, possibly with an empty list.",
)
def get_tasks_grouped(repo: Repository = Depends(_get_repo)) -> Dict[Status, List[TaskOut]]:
    return {s: _out_list(tasks) for s, tasks in repo.grouped().items()}


# PUBLIC_INTERFACE
@router.get(
    "/overdue",
    response_model=List[TaskOut],
    summary="Overdue Tasks",
    description="Open tasks whose due date has passed, earliest due date first.",
)
def get_overdue_tasks(repo: Repository = Depends(_get_repo)) -> List[TaskOut]:
    return _out_list(repo.overdue())


# PUBLIC_INTERFACE
@router.get(
    "/statistics",
    response_model=StatisticsOut,
    summary="Task Statistics",
    description="Total count, counts per status and priority, and completion rate.",
)
def get_statistics(repo: Repository = Depends(_get_repo)) -> StatisticsOut:
    stats = repo.statistics()
    return StatisticsOut(
        total_tasks=stats.total_tasks,
        status_counts=stats.status_counts,
        priority_counts=stats.priority_counts,
        completion_rate=stats.completion_rate,
    )


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: str, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Retrieve a single task by its ID.
    """
    task = repo.get(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return _out(task)


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskOut,
    summary="Replace Task",
    description=(
        "Replace an existing task. Any fields omitted will be set to their default/null "
        "equivalent as per the schema. The id and creation time are kept."
    ),
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
    },
)
def put_task(task_id: str, payload: TaskCreate, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Full update (replace) semantics implemented via the partial-update capable repository by
    mapping TaskCreate into TaskUpdate fields.
    """
    update = TaskUpdate(
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        status=payload.status,
        due_date=payload.due_date,
        assigned_to=payload.assigned_to,
    )
    updated = repo.update(task_id, update)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return _out(updated)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description="Partially update fields of a task. A priority or due date change repositions it in the priority index.",
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
    },
)
def patch_task(task_id: str, payload: TaskUpdate, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Partial update of a task.
    """
    updated = repo.update(task_id, payload)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return _out(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task by ID.",
    responses={
        204: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: str, repo: Repository = Depends(_get_repo)) -> None:
    """
    Delete a task. Returns 204 on success, 404 if not found.
    """
    if not repo.delete(task_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return None
