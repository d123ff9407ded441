"""
Project generator — copy the template tree and rewrite it into a new project.

Run order (see ``app.cli.plan``)::

    Created → Copied → (FeatureStripped | Skipped) → IdentityRewritten → Done

Everything is written into a hidden staging directory next to the target
first. Only when every step (and the syntax check of rewritten Python
files) succeeded is the staging directory renamed onto the target path;
on failure it is deleted, so the target never holds a partial tree.
"""

from __future__ import annotations

import ast
import logging
import os
import shutil
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath

from app.cli.errors import GenerationError, OutputPathError, TransformError
from app.cli.plan import IDENTITY_STEP, FileEdit, ProjectIdentity, Step, build_plan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExclusionRule:
    path: str
    is_directory: bool


EXCLUDED_PATHS: tuple[ExclusionRule, ...] = (
    ExclusionRule(".git", True),
    ExclusionRule("build", True),
    ExclusionRule("dist", True),
    ExclusionRule(".tmp", True),
    ExclusionRule("app/cli", True),
    ExclusionRule("tests/cli", True),
    ExclusionRule("uv.lock", False),
    ExclusionRule(".env", False),
)

# Interpreter caches and local virtualenvs, excluded wherever they appear
EXCLUDED_NAMES = frozenset({
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".venv",
})
EXCLUDED_SUFFIXES = (".egg-info",)


class GenerationState(str, Enum):
    CREATED = "Created"
    COPIED = "Copied"
    FEATURE_STRIPPED = "FeatureStripped"
    SKIPPED = "Skipped"
    IDENTITY_REWRITTEN = "IdentityRewritten"
    DONE = "Done"


def default_template_root() -> Path:
    """The repository this generator is installed from."""
    return Path(__file__).resolve().parents[2]


def is_excluded(rel: PurePosixPath, is_dir: bool) -> bool:
    """Whether a source-relative path is left out of generated projects."""
    if any(part in EXCLUDED_NAMES or part.endswith(EXCLUDED_SUFFIXES) for part in rel.parts):
        return True
    rel_str = rel.as_posix()
    for rule in EXCLUDED_PATHS:
        if rule.is_directory:
            if is_dir and rel_str == rule.path:
                return True
        elif not is_dir and rel_str == rule.path:
            return True
    return False


class ProjectGenerator:
    """Generate one project from a template tree.

    Args:
        source: Template root (read only).
        target: Output directory; must not exist.
        name: Project name, validated on construction.
        with_events: Keep the event streaming integration.
    """

    def __init__(
        self,
        source: Path,
        target: Path,
        name: str,
        with_events: bool = True,
    ) -> None:
        self.identity = ProjectIdentity.parse(name)
        self.source = Path(source).resolve()
        self.target = Path(target).resolve()
        self.with_events = with_events
        self.state = GenerationState.CREATED
        self.history: list[GenerationState] = [self.state]
        self.plan: list[Step] = build_plan(self.identity, with_events)
        self._staging = self.target.parent / f".{self.target.name}.staging-{uuid.uuid4().hex[:8]}"
        self._rewritten: set[Path] = set()

        if not (self.source / "pyproject.toml").is_file() or not (self.source / "app").is_dir():
            raise GenerationError("Not a service template (no pyproject.toml/app)", self.source)
        if self.target.exists():
            raise OutputPathError(
                f"Output directory '{self.target}' already exists. "
                "Please remove it or choose a different location."
            )

    def generate(self) -> Path:
        """Run the whole plan and publish the result at ``target``."""
        logger.info(
            "Generating %s from %s (events=%s)",
            self.identity.name,
            self.source,
            "on" if self.with_events else "off",
        )
        try:
            self._run()
        except BaseException:
            shutil.rmtree(self._staging, ignore_errors=True)
            raise

        self._enter(GenerationState.DONE)
        logger.info("Generated project at %s", self.target)
        return self.target

    # ── Pipeline ────────────────────────────────────────────────────

    def _run(self) -> None:
        # Outermost parent directory this run creates, if any
        created_root: Path | None = None
        parent = self.target.parent
        while not parent.exists():
            created_root, parent = parent, parent.parent

        try:
            self.target.parent.mkdir(parents=True, exist_ok=True)
            self._staging.mkdir()
        except OSError as e:
            raise GenerationError(f"Cannot create staging directory ({e})", self._staging) from e

        self._copy_tree(skip={self.target, self._staging, created_root})
        self._enter(GenerationState.COPIED)

        for step in self.plan:
            if step.name == IDENTITY_STEP and self.with_events:
                self._enter(GenerationState.SKIPPED)
            logger.debug("Step %s: requires %s", step.name, step.requires)
            self._run_step(step)
            logger.debug("Step %s: ensures %s", step.name, step.ensures)
            if step.feature_strip:
                self._enter(GenerationState.FEATURE_STRIPPED)
        self._enter(GenerationState.IDENTITY_REWRITTEN)

        self._check_syntax()

        if self.target.exists():
            raise OutputPathError(f"Output directory '{self.target}' appeared during generation")
        try:
            os.rename(self._staging, self.target)
        except OSError as e:
            raise GenerationError(f"Cannot move generated tree into place ({e})", self.target) from e

    def _enter(self, state: GenerationState) -> None:
        if state != self.state:
            logger.debug("State %s -> %s", self.state.value, state.value)
            self.state = state
            self.history.append(state)

    def _copy_tree(self, skip: set[Path | None]) -> None:
        copied = 0

        for dirpath, dirnames, filenames in os.walk(self.source):
            current = Path(dirpath)
            rel_dir = PurePosixPath(current.relative_to(self.source).as_posix())

            kept_dirs = []
            for d in sorted(dirnames):
                full = current / d
                if full in skip or is_excluded(rel_dir / d, is_dir=True):
                    continue
                if full.is_symlink():
                    self._copy_file(full, rel_dir / d)
                    continue
                kept_dirs.append(d)
            dirnames[:] = kept_dirs

            dest_dir = self._staging / rel_dir
            try:
                dest_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise GenerationError(f"Cannot create directory ({e})", dest_dir) from e

            for f in sorted(filenames):
                if is_excluded(rel_dir / f, is_dir=False):
                    continue
                self._copy_file(current / f, rel_dir / f)
                copied += 1

        logger.info("Copied %d files", copied)

    def _copy_file(self, src: Path, rel: PurePosixPath) -> None:
        dest = self._staging / rel
        try:
            shutil.copy2(src, dest, follow_symlinks=False)
        except OSError as e:
            raise GenerationError(f"Failed to copy file ({e})", src) from e

    def _run_step(self, step: Step) -> None:
        for rel in step.remove:
            path = self._staging / rel
            if not path.exists():
                logger.debug("Nothing to remove at %s", rel)
                continue
            try:
                path.unlink()
            except OSError as e:
                raise GenerationError(f"Failed to remove file ({e})", rel) from e

        for edit in step.edits:
            self._edit(edit)

    def _edit(self, edit: FileEdit) -> None:
        path = self._staging / edit.path
        if not path.is_file():
            if edit.required:
                raise GenerationError("Required template file missing", edit.path)
            logger.debug("Optional file %s absent, skipping", edit.path)
            return

        try:
            with open(path, encoding="utf-8", newline="") as f:
                original = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise GenerationError(f"Failed to read ({e})", edit.path) from e

        text = original
        for transform in edit.transforms:
            try:
                text = transform.apply(text)
            except TransformError as e:
                raise TransformError(f"{edit.path}: {e}") from e

        if text == original:
            return
        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise GenerationError(f"Failed to write ({e})", edit.path) from e
        if path.suffix == ".py":
            self._rewritten.add(path)

    def _check_syntax(self) -> None:
        for path in sorted(self._rewritten):
            rel = path.relative_to(self._staging).as_posix()
            try:
                ast.parse(path.read_text(encoding="utf-8"), filename=rel)
            except SyntaxError as e:
                raise TransformError(
                    f"{rel} is no longer valid Python after rewriting: "
                    f"{e.msg} (line {e.lineno})"
                ) from e
