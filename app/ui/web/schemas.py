"""
Request and response bodies for the tasks API.
"""

from __future__ import annotations

import uuid

from pydantic import BaseModel

from app.core.models.task import Task, TaskPriority, TaskStatus


class CreateTaskRequest(BaseModel):
    title: str
    description: str | None = None
    priority: TaskPriority | None = None
    user_id: uuid.UUID | None = None


class UpdateTaskRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None


class TaskResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    created_at: str
    updated_at: str
    completed_at: str | None

    @classmethod
    def from_task(cls, task: Task) -> TaskResponse:
        return cls(
            id=str(task.id),
            user_id=str(task.user_id),
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            created_at=task.created_at.isoformat(),
            updated_at=task.updated_at.isoformat(),
            completed_at=task.completed_at.isoformat() if task.completed_at else None,
        )

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
