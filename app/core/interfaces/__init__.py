"""
Interfaces — abstract contracts between services and adapters.
"""

from app.core.interfaces.event_producer import EventProducer
from app.core.interfaces.task_repository import TaskRepository

__all__ = [
    "EventProducer",
    "TaskRepository",
]
