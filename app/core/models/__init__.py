"""
Domain models — pydantic types for the task service.

Re-exported here for convenient access:

    from app.core.models import Task, TaskStatus, TaskPriority
"""

from app.core.models.events import EventMetadata, TaskEvent, TaskEventData, TaskEventType
from app.core.models.task import Task, TaskPriority, TaskStatus, validate_title

__all__ = [
    "EventMetadata",
    "Task",
    "TaskEvent",
    "TaskEventData",
    "TaskEventType",
    "TaskPriority",
    "TaskStatus",
    "validate_title",
]
