"""
Task repository — the storage contract for tasks.

Services only talk to storage through this interface. Implementations
raise ``ExternalError`` for backend failures and never leak driver
exceptions.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod

from app.core.models.task import Task


class TaskRepository(ABC):
    """Abstract base class for task storage backends."""

    @abstractmethod
    def create(self, task: Task) -> Task:
        """Persist a new task and return the stored row."""

    @abstractmethod
    def get(self, task_id: uuid.UUID) -> Task | None:
        """Fetch a task by id, or None if it does not exist."""

    @abstractmethod
    def get_by_user(self, user_id: uuid.UUID) -> list[Task]:
        """All tasks of a user, newest first."""

    @abstractmethod
    def update(self, task: Task) -> None:
        """Overwrite the mutable fields of an existing task."""

    @abstractmethod
    def delete(self, task_id: uuid.UUID) -> None:
        """Remove a task. Deleting a missing id is a no-op."""

    @abstractmethod
    def health_check(self) -> None:
        """Raise ``ExternalError`` if the backend is unreachable."""
