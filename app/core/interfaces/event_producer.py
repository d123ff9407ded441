"""
Event producer — the publishing contract for task lifecycle events.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.core.models.events import TaskEvent


class EventProducer(ABC):
    """Publishes task events to a message broker."""

    @abstractmethod
    def publish_task_event(self, event: TaskEvent) -> None:
        """Publish one event.

        Raises:
            ExternalError: The broker rejected or timed out the message.
        """

    def close(self) -> None:
        """Flush and release broker resources."""
