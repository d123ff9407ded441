"""
Task model — the single entity managed by the service.

Tasks are owned by a user and move through a small status lifecycle.
Construction goes through ``Task.create`` and changes through
``Task.apply_update`` so that title and lifecycle rules are always checked.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from app.core.errors import BusinessRuleViolation, ValidationError

TITLE_MIN_LENGTH = 1
TITLE_MAX_LENGTH = 200


class TaskStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


def validate_title(value: str) -> str:
    """Trim and length-check a task title."""
    trimmed = value.strip()
    if len(trimmed) < TITLE_MIN_LENGTH:
        raise ValidationError("Title cannot be empty", field="title")
    if len(trimmed) > TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title cannot exceed {TITLE_MAX_LENGTH} characters", field="title"
        )
    return trimmed


def _clean_description(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def _now() -> datetime:
    return datetime.now(UTC)


class Task(BaseModel):
    """A unit of work owned by a user."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    user_id: uuid.UUID
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    completed_at: datetime | None = None

    @classmethod
    def create(
        cls,
        user_id: uuid.UUID,
        title: str,
        description: str | None = None,
        priority: TaskPriority | None = None,
    ) -> Task:
        """Build a new pending task, validating the title."""
        now = _now()
        return cls(
            user_id=user_id,
            title=validate_title(title),
            description=_clean_description(description),
            priority=priority or TaskPriority.MEDIUM,
            created_at=now,
            updated_at=now,
        )

    def apply_update(
        self,
        *,
        title: str | None = None,
        description: str | None = None,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
    ) -> Task:
        """Return a copy with the given changes applied.

        Raises:
            BusinessRuleViolation: The task is cancelled.
            ValidationError: The new title is invalid.
        """
        if self.status == TaskStatus.CANCELLED:
            raise BusinessRuleViolation(
                "cancelled_task_immutable", "Cancelled tasks cannot be modified"
            )

        changes: dict = {"updated_at": _now()}
        if title is not None:
            changes["title"] = validate_title(title)
        if description is not None:
            changes["description"] = _clean_description(description)
        if priority is not None:
            changes["priority"] = priority
        if status is not None and status != self.status:
            changes["status"] = status
            if status == TaskStatus.COMPLETED:
                changes["completed_at"] = changes["updated_at"]
            else:
                changes["completed_at"] = None

        return self.model_copy(update=changes)
