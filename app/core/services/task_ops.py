"""
Task operations — channel-independent service functions.

Each function takes the repository explicitly so it can be called from
the HTTP layer, the CLI or tests without any Flask dependency.
"""

from __future__ import annotations

import logging
import uuid

from app.core.errors import NotFoundError
from app.core.interfaces.task_repository import TaskRepository
from app.core.models.task import Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)


def get_task(task_id: uuid.UUID, repo: TaskRepository) -> Task:
    """Fetch one task or raise NotFoundError."""
    task = repo.get(task_id)
    if task is None:
        raise NotFoundError("Task", str(task_id))
    return task


def list_tasks_by_user(user_id: uuid.UUID, repo: TaskRepository) -> list[Task]:
    return repo.get_by_user(user_id)


def create_task(
    repo: TaskRepository,
    *,
    user_id: uuid.UUID,
    title: str,
    description: str | None = None,
    priority: TaskPriority | None = None,
) -> Task:
    """Validate and persist a new task."""
    task = Task.create(user_id, title, description, priority)
    created = repo.create(task)
    logger.info("Created task %s for user %s", created.id, created.user_id)
    return created


def update_task(
    task_id: uuid.UUID,
    repo: TaskRepository,
    *,
    title: str | None = None,
    description: str | None = None,
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
) -> Task:
    """Apply changes to an existing task and persist them."""
    current = get_task(task_id, repo)
    updated = current.apply_update(
        title=title,
        description=description,
        status=status,
        priority=priority,
    )
    repo.update(updated)
    logger.info("Updated task %s (status=%s)", updated.id, updated.status.value)
    return updated


def delete_task(task_id: uuid.UUID, repo: TaskRepository) -> Task:
    """Delete a task and return the removed snapshot."""
    current = get_task(task_id, repo)
    repo.delete(task_id)
    logger.info("Deleted task %s", task_id)
    return current


def check_readiness(repo: TaskRepository) -> None:
    """Raise ExternalError when the database is unreachable."""
    repo.health_check()
