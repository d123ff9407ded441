"""
Adapters — concrete storage and messaging backends.
"""

from app.adapters.database import Database, run_migrations
from app.adapters.kafka_producer import KafkaEventService, PublishingTaskRepository
from app.adapters.sqlite_repository import SqliteTaskRepository

__all__ = [
    "Database",
    "KafkaEventService",
    "PublishingTaskRepository",
    "SqliteTaskRepository",
    "run_migrations",
]
