"""
Task events — lifecycle messages published to the event stream.

Every write to a task (create, update, delete) produces one ``TaskEvent``.
Updates carry the previous snapshot in ``old_data``.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from app.core.models.task import Task, TaskPriority, TaskStatus

EVENT_VERSION = "1.0"
SOURCE_SERVICE = "service-template"


class TaskEventType(str, Enum):
    CREATED = "Created"
    UPDATED = "Updated"
    DELETED = "Deleted"


class TaskEventData(BaseModel):
    """Snapshot of task fields carried by an event."""

    id: uuid.UUID
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_task(cls, task: Task) -> TaskEventData:
        return cls.model_validate(task.model_dump())


class EventMetadata(BaseModel):
    """Tracking and correlation info."""

    source_service: str = SOURCE_SERVICE
    correlation_id: str
    user_id: uuid.UUID


class TaskEvent(BaseModel):
    """Complete event envelope."""

    event_type: TaskEventType
    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    version: str = EVENT_VERSION
    old_data: TaskEventData | None = None
    data: TaskEventData
    metadata: EventMetadata

    @classmethod
    def _build(
        cls,
        event_type: TaskEventType,
        data: TaskEventData,
        correlation_id: str,
        old_data: TaskEventData | None = None,
    ) -> TaskEvent:
        return cls(
            event_type=event_type,
            data=data,
            old_data=old_data,
            metadata=EventMetadata(correlation_id=correlation_id, user_id=data.user_id),
        )

    @classmethod
    def created(cls, data: TaskEventData, correlation_id: str) -> TaskEvent:
        return cls._build(TaskEventType.CREATED, data, correlation_id)

    @classmethod
    def updated(
        cls, data: TaskEventData, old_data: TaskEventData, correlation_id: str
    ) -> TaskEvent:
        return cls._build(TaskEventType.UPDATED, data, correlation_id, old_data=old_data)

    @classmethod
    def deleted(cls, data: TaskEventData, correlation_id: str) -> TaskEvent:
        return cls._build(TaskEventType.DELETED, data, correlation_id)
