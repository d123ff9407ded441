"""
Generator commands — ``create`` and ``scaffold`` without any click dependency.

``app.cli.main`` parses arguments and prints; the functions here do the
work and report progress through an ``echo`` callable.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from app.cli import git
from app.cli.errors import OutputPathError, ScaffoldError, StepFailed
from app.cli.generator import ProjectGenerator, default_template_root
from app.cli.github import CreatedRepository, GitHubClient, get_github_token
from app.cli.plan import ProjectIdentity

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]


def _silent(_: str) -> None:
    return None


@contextmanager
def step(description: str) -> Iterator[None]:
    """Re-raise generator failures as ``Failed to <description>: <cause>``."""
    try:
        yield
    except StepFailed:
        raise
    except (ScaffoldError, OSError) as e:
        logger.debug("Step failed: %s", description, exc_info=True)
        raise StepFailed(description, e) from e


def commit_message(with_events: bool) -> str:
    if with_events:
        return "feat: initial commit with event streaming support"
    return "feat: initial commit without event streaming"


def validate_output_path(path: Path, cwd: Path | None = None) -> Path:
    """Resolve ``path`` and require it to sit inside ``cwd`` and not exist.

    Raises:
        OutputPathError: The path escapes ``cwd`` or already exists.
    """
    base = (cwd or Path.cwd()).resolve()
    resolved = (base / path).resolve()
    if not resolved.is_relative_to(base):
        raise OutputPathError("Output path must be within the current directory")
    if resolved.exists():
        raise OutputPathError(
            f"Output directory '{path}' already exists. "
            "Please remove it or choose a different location."
        )
    return resolved


# ── create ──────────────────────────────────────────────────────────


@dataclass
class CreateResult:
    repository: CreatedRepository
    branch: str


def execute_create(
    name: str,
    github_user: str,
    *,
    private: bool = False,
    description: str | None = None,
    with_events: bool = True,
    template: Path | None = None,
    client: GitHubClient | None = None,
    echo: Echo = _silent,
) -> CreateResult:
    """Create a GitHub repository, generate the project and push it."""
    if client is None:
        client = GitHubClient(get_github_token())
    ProjectIdentity.parse(name)

    echo(f"Creating GitHub repository '{name}'...")
    with step("create GitHub repository"):
        repo = client.create_repository(name, description, private, github_user)
    echo(f"✓ Created repository: {repo.html_url}")

    with tempfile.TemporaryDirectory(prefix="svc-template-") as tmp:
        target = Path(tmp) / name

        echo("Generating service files...")
        with step("generate service files"):
            ProjectGenerator(
                template or default_template_root(), target, name, with_events
            ).generate()
        echo(_generated_line(with_events))

        echo("Initializing git repository...")
        with step("initialize git repository"):
            git.init_repo(target)
        with step("add git remote"):
            git.add_remote(target, "origin", repo.clone_url)
        with step("stage files"):
            git.add_all(target)
        with step("commit changes"):
            git.commit(target, commit_message(with_events))

        echo("Pushing to GitHub...")
        with step("push to remote. Make sure you have access to GitHub"):
            branch = git.push_with_fallback(target)

    return CreateResult(repository=repo, branch=branch)


# ── scaffold ────────────────────────────────────────────────────────


def execute_scaffold(
    name: str,
    *,
    output: Path | None = None,
    with_events: bool = True,
    template: Path | None = None,
    echo: Echo = _silent,
) -> Path:
    """Generate the project locally and commit it to a fresh repository."""
    ProjectIdentity.parse(name)
    target = validate_output_path(output if output is not None else Path(name))

    echo(f"Scaffolding service '{name}'...")
    with step("generate service files"):
        ProjectGenerator(template or default_template_root(), target, name, with_events).generate()
    echo(_generated_line(with_events))

    echo("Initializing git repository...")
    with step("initialize git repository"):
        git.init_repo(target)
    with step("stage files"):
        git.add_all(target)
    with step("commit changes"):
        git.commit(target, commit_message(with_events))

    return target


def _generated_line(with_events: bool) -> str:
    if with_events:
        return "✓ Generated service with event streaming support"
    return "✓ Generated service without event streaming support"
