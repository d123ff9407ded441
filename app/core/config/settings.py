"""
Service settings — typed configuration and shared application state.

``AppConfig`` is built by ``app.core.config.loader.load_config`` from the
environment. ``AppState`` bundles the config with the wired collaborators
and is handed to the HTTP layer at app creation.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.interfaces import EventProducer, TaskRepository


# ── Server defaults ─────────────────────────────────────────────


def default_server_host() -> str:
    return "0.0.0.0"


def default_server_port() -> int:
    return 3000


# ── Database configuration ──────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite connection settings."""

    timeout: float = Field(default=30.0, gt=0, description="Lock wait timeout in seconds")
    journal_mode: str = Field(default="WAL", description="SQLite journal mode")


# ── Kafka configuration for event streaming ─────────────────────


def default_bootstrap_servers() -> str:
    return "localhost:9092"


def default_client_id() -> str:
    return "service-template"


def default_task_topic() -> str:
    return "task-events"


class KafkaConfig(BaseModel):
    """Producer settings for publishing task lifecycle events."""

    bootstrap_servers: str = Field(default_factory=default_bootstrap_servers)
    client_id: str = Field(default_factory=default_client_id)
    task_topic: str = Field(default_factory=default_task_topic)
    producer_options: dict[str, int | str] = Field(
        default_factory=lambda: dict(KAFKA_PRODUCER_DEFAULTS),
    )


KAFKA_PRODUCER_DEFAULTS: dict[str, int | str] = {
    "acks": "all",
    "retries": 3,
    "retry_backoff_ms": 1000,
    "request_timeout_ms": 10000,
}


# ── CORS (Cross-Origin Resource Sharing) configuration ──────────


def _split_csv(value: object) -> object:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


class CorsConfig(BaseModel):
    """Which origins, methods and headers are allowed cross-origin.

    Use ``["*"]`` for origins and headers in development only.
    """

    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    allowed_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allowed_headers: list[str] = Field(default_factory=lambda: ["*"])
    allow_credentials: bool = False
    max_age: int = Field(default=3600, ge=0)

    split_lists = field_validator(
        "allowed_origins", "allowed_methods", "allowed_headers", mode="before"
    )(_split_csv)


# ── Application configuration ───────────────────────────────────


class AppConfig(BaseModel):
    """Application configuration loaded from environment variables."""

    model_config = ConfigDict(use_attribute_docstrings=True)

    database_url: str = "sqlite:///tasks.db"
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    """Uses defaults when unset."""
    server_host: str = Field(default_factory=default_server_host)
    server_port: int = Field(default_factory=default_server_port, gt=0, lt=65536)
    jwt_secret: str = Field(min_length=32)
    jwt_audience: str = "service-template"
    kafka_config: KafkaConfig = Field(default_factory=KafkaConfig)
    """Uses defaults when unset."""
    cors_config: CorsConfig = Field(default_factory=CorsConfig)
    """Uses defaults when unset."""


@dataclass
class AppState:
    """Application state shared across request handlers."""

    config: AppConfig
    task_repository: TaskRepository
    event_producer: EventProducer | None = None
