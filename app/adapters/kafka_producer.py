"""
Kafka event service — publishes task lifecycle events.

``KafkaEventService`` implements ``EventProducer`` on top of kafka-python.
The underlying producer is created on first publish so that the service
can start (and its readiness endpoint answer) while the broker is down.

``PublishingTaskRepository`` decorates any ``TaskRepository`` and emits a
``TaskEvent`` after every successful write.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from typing import Any

from kafka import KafkaProducer
from kafka.errors import KafkaError

from app.core.config.settings import KafkaConfig
from app.core.errors import ExternalError
from app.core.interfaces.event_producer import EventProducer
from app.core.interfaces.task_repository import TaskRepository
from app.core.models.events import TaskEvent, TaskEventData
from app.core.models.task import Task

logger = logging.getLogger(__name__)

# Seconds to wait for a broker acknowledgement per message
SEND_TIMEOUT = 10

ProducerFactory = Callable[..., Any]


class KafkaEventService(EventProducer):
    """Kafka-backed event producer."""

    def __init__(
        self,
        config: KafkaConfig,
        producer_factory: ProducerFactory = KafkaProducer,
    ) -> None:
        self._config = config
        self._factory = producer_factory
        self._producer: Any = None
        self._lock = threading.Lock()
        logger.info(
            "Kafka event service configured (bootstrap=%s, topic=%s)",
            config.bootstrap_servers,
            config.task_topic,
        )

    @property
    def topic(self) -> str:
        return self._config.task_topic

    def _get_producer(self) -> Any:
        with self._lock:
            if self._producer is None:
                try:
                    self._producer = self._factory(
                        bootstrap_servers=self._config.bootstrap_servers,
                        client_id=self._config.client_id,
                        **self._config.producer_options,
                    )
                except KafkaError as e:
                    raise ExternalError(f"Failed to create Kafka producer: {e}") from e
                logger.info("Kafka producer connected for topic %s", self.topic)
            return self._producer

    def publish_task_event(self, event: TaskEvent) -> None:
        producer = self._get_producer()
        payload = event.model_dump_json().encode("utf-8")
        key = str(event.data.id).encode("utf-8")

        logger.debug(
            "Publishing task event: event_id=%s, event_type=%s, topic=%s",
            event.event_id,
            event.event_type.value,
            self.topic,
        )

        try:
            future = producer.send(
                self.topic,
                key=key,
                value=payload,
                headers=[("event_type", event.event_type.value.encode("utf-8"))],
            )
            metadata = future.get(timeout=SEND_TIMEOUT)
        except KafkaError as e:
            logger.error("Failed to publish task event %s: %s", event.event_id, e)
            raise ExternalError(f"Failed to publish event to Kafka: {e}") from e

        logger.info(
            "Published task event %s (partition=%s, offset=%s)",
            event.event_id,
            metadata.partition,
            metadata.offset,
        )

    def close(self) -> None:
        with self._lock:
            if self._producer is not None:
                self._producer.flush()
                self._producer.close()
                self._producer = None


class PublishingTaskRepository(TaskRepository):
    """Repository decorator that publishes an event after each write.

    Publishing happens after the write has been committed. A failed publish
    is logged and does not undo or fail the write.
    """

    def __init__(self, inner: TaskRepository, producer: EventProducer) -> None:
        self._inner = inner
        self._producer = producer

    def _publish(self, event: TaskEvent) -> None:
        try:
            self._producer.publish_task_event(event)
        except ExternalError as e:
            logger.error("Task event %s not published: %s", event.event_id, e)

    def create(self, task: Task) -> Task:
        created = self._inner.create(task)
        self._publish(TaskEvent.created(TaskEventData.from_task(created), str(uuid.uuid4())))
        return created

    def get(self, task_id: uuid.UUID) -> Task | None:
        return self._inner.get(task_id)

    def get_by_user(self, user_id: uuid.UUID) -> list[Task]:
        return self._inner.get_by_user(user_id)

    def update(self, task: Task) -> None:
        previous = self._inner.get(task.id)
        self._inner.update(task)
        if previous is None:
            return
        self._publish(
            TaskEvent.updated(
                TaskEventData.from_task(task),
                TaskEventData.from_task(previous),
                str(uuid.uuid4()),
            )
        )

    def delete(self, task_id: uuid.UUID) -> None:
        previous = self._inner.get(task_id)
        self._inner.delete(task_id)
        if previous is None:
            return
        self._publish(TaskEvent.deleted(TaskEventData.from_task(previous), str(uuid.uuid4())))

    def health_check(self) -> None:
        self._inner.health_check()
