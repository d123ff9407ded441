"""
Generator errors.

Every failure the scaffolding CLI reports derives from ``ScaffoldError``;
the command layer prints it and exits non-zero.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for generator failures."""


class StepFailed(ScaffoldError):
    """Wraps the error of a command step with the step's description."""

    def __init__(self, step: str, cause: Exception) -> None:
        self.step = step
        super().__init__(f"Failed to {step}: {cause}")


class InvalidNameError(ScaffoldError):
    """The requested project name is not usable as a directory/package name."""


class OutputPathError(ScaffoldError):
    """The output directory exists already or escapes the working directory."""


class GenerationError(ScaffoldError):
    """Copying or rewriting a file failed."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(f"{message}: {path}" if path is not None else message)


class TransformError(ScaffoldError):
    """A text transform could not be applied cleanly."""


class GitError(ScaffoldError):
    """A git command exited non-zero."""

    def __init__(self, command: list[str], stderr: str) -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(f"`{' '.join(command)}` failed: {stderr.strip()}")


class GitHubError(ScaffoldError):
    """The GitHub API rejected a request, or no token is available."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        self.message = message
        if status is None:
            super().__init__(message)
        else:
            super().__init__(f"GitHub API error ({status}): {message}")
