"""
Domain errors — business logic failures.

Raised by models, services and repositories. The HTTP layer maps each
subclass to an API error code (see ``app.ui.web.errors``).
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for every domain failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """Resource not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(f"Resource not found: {resource_type} with id '{resource_id}'")
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(DomainError):
    """Input validation failures and malformed data."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(f"Validation error: {message}")
        self.field = field


class BusinessRuleViolation(DomainError):
    """Domain logic violations (invalid transitions, limits)."""

    def __init__(self, rule: str, message: str) -> None:
        super().__init__(f"Business rule violation: {message}")
        self.rule = rule


class ExternalError(DomainError):
    """External system failures (database, message broker)."""

    def __init__(self, message: str) -> None:
        super().__init__(f"External system error: {message}")
        self.detail = message

    @property
    def is_database(self) -> bool:
        return self.detail.startswith("Database")


class UnauthorizedError(DomainError):
    """Access control violations."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Unauthorized access: {message}")
