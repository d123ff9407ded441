"""
Git runner — the handful of git commands run on a freshly generated tree.

Each call is one ``git`` subprocess with captured output. A non-zero
exit raises ``GitError`` with the command and its stderr verbatim.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from app.cli.errors import GitError

logger = logging.getLogger(__name__)

COMMIT_AUTHOR = "Service Template CLI"
COMMIT_EMAIL = "cli@localhost"


def run_git(*args: str, cwd: Path, timeout: int = 60) -> str:
    """Run a git command and return stdout."""
    cmd = ["git", *args]
    logger.debug("Running %s in %s", " ".join(cmd), cwd)
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise GitError(cmd, "git executable not found on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(cmd, f"timed out after {timeout}s") from e

    if result.returncode != 0:
        raise GitError(cmd, result.stderr)
    return result.stdout


def init_repo(path: Path) -> None:
    run_git("init", cwd=path)


def add_all(path: Path) -> None:
    run_git("add", ".", cwd=path)


def commit(
    path: Path,
    message: str,
    user_name: str = COMMIT_AUTHOR,
    user_email: str = COMMIT_EMAIL,
) -> None:
    """Commit staged changes as the given author (set repo-locally)."""
    run_git("config", "user.name", user_name, cwd=path)
    run_git("config", "user.email", user_email, cwd=path)
    run_git("commit", "-m", message, cwd=path)


def add_remote(path: Path, name: str, url: str) -> None:
    run_git("remote", "add", name, url, cwd=path)


def push(path: Path, remote: str, branch: str) -> None:
    run_git("push", "-u", remote, branch, cwd=path, timeout=300)


def push_with_fallback(
    path: Path,
    remote: str = "origin",
    branches: tuple[str, ...] = ("main", "master"),
) -> str:
    """Push the first branch name that works; return it.

    Raises:
        GitError: No branch names were given, or the last one failed too.
    """
    if not branches:
        raise GitError(["git", "push", remote], "no branch names to push")

    *fallbacks, last = branches
    for branch in fallbacks:
        try:
            push(path, remote, branch)
        except GitError as e:
            logger.info("Push of %s failed, trying next branch: %s", branch, e.stderr.strip())
            continue
        return branch
    push(path, remote, last)
    return last
