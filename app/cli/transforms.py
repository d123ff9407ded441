"""
Text transforms — line-oriented rewrites applied to template files.

Each transform is a small immutable object with ``apply(text) -> str``.
They operate on lines, not on a parse tree: markers are plain substrings,
so a marker inside a string literal or a comment is matched too. The
generator re-parses every rewritten Python file afterwards to catch a
transform that left broken syntax behind.

Line endings are preserved; a transform only ever drops or rewrites
whole lines (except the ``*Replace`` transforms, which work on raw text).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.cli.errors import TransformError

_OPENERS = "([{"
_CLOSERS = ")]}"


def _lines(text: str) -> list[str]:
    return text.splitlines(keepends=True)


def _content(line: str) -> str:
    return line.rstrip("\r\n")


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


class Transform(ABC):
    """A whole-file text rewrite."""

    @abstractmethod
    def apply(self, text: str) -> str:
        """Return the rewritten text."""


# ── Line filters ────────────────────────────────────────────────────


@dataclass(frozen=True)
class LineFilter(Transform):
    """Drop every line containing any of ``markers``."""

    markers: tuple[str, ...]

    def apply(self, text: str) -> str:
        return "".join(
            line for line in _lines(text)
            if not any(m in line for m in self.markers)
        )


@dataclass(frozen=True)
class LiteralRemoval(Transform):
    """Drop lines whose stripped text equals ``literal`` exactly."""

    literal: str

    def apply(self, text: str) -> str:
        return "".join(line for line in _lines(text) if line.strip() != self.literal)


@dataclass(frozen=True)
class PairedLineFilter(Transform):
    """Drop a marker line and, if it matches, the line right after it.

    Used for a field whose attribute docstring sits on the next line:
    after the marker line is dropped a one-shot flag is raised; the next
    line is dropped when its stripped text equals ``follower``, and the
    flag is cleared on that line either way.
    """

    marker: str
    follower: str

    def apply(self, text: str) -> str:
        out: list[str] = []
        pending = False
        for line in _lines(text):
            if pending:
                pending = False
                if line.strip() == self.follower:
                    continue
            if self.marker in line:
                pending = True
                continue
            out.append(line)
        return "".join(out)


# ── Exact-line and raw text replacement ─────────────────────────────


@dataclass(frozen=True)
class ImportNarrowing(Transform):
    """Replace a line equal to ``old`` with ``new``; no match is a no-op."""

    old: str
    new: str

    def apply(self, text: str) -> str:
        out: list[str] = []
        for line in _lines(text):
            content = _content(line)
            if content == self.old:
                line = self.new + line[len(content):]
            out.append(line)
        return "".join(out)


@dataclass(frozen=True)
class FirstReplace(Transform):
    """Replace the first occurrence of ``old``."""

    old: str
    new: str

    def apply(self, text: str) -> str:
        return text.replace(self.old, self.new, 1)


@dataclass(frozen=True)
class ReplaceAll(Transform):
    old: str
    new: str

    def apply(self, text: str) -> str:
        return text.replace(self.old, self.new)


# ── Region removal ──────────────────────────────────────────────────


@dataclass(frozen=True)
class MarkerSkip(Transform):
    """Drop lines from the one containing ``start`` up to ``stop``.

    The ``stop`` line itself is kept. Reaching end of file before
    ``stop`` raises ``TransformError``.
    """

    start: str
    stop: str

    def apply(self, text: str) -> str:
        out: list[str] = []
        skipping = False
        for line in _lines(text):
            if skipping:
                if self.stop not in line:
                    continue
                skipping = False
            elif self.start in line:
                skipping = True
                continue
            out.append(line)
        if skipping:
            raise TransformError(
                f"Reached end of file looking for {self.stop!r} after {self.start!r}"
            )
        return "".join(out)


@dataclass(frozen=True)
class BlockSkip(Transform):
    """Remove a section bounded by a start marker and a terminator marker.

    States are *scanning* and *skipping*. The start line switches to
    skipping and is dropped. While skipping, every ``([{`` raises the
    bracket depth and every ``)]}`` lowers it; a line made only of closers
    that brings the depth back to zero completes one bracketed block. The
    terminator is honoured only at depth zero: that line is kept and
    scanning resumes.

    Raises:
        TransformError: The terminator is reached before ``min_blocks``
            blocks were closed, or the file ends while skipping.
    """

    start: str
    terminator: str
    min_blocks: int = 1

    def apply(self, text: str) -> str:
        out: list[str] = []
        skipping = False
        depth = 0
        blocks = 0

        for lineno, line in enumerate(_lines(text), start=1):
            if not skipping:
                if self.start in line:
                    skipping, depth, blocks = True, 0, 0
                    continue
                out.append(line)
                continue

            if depth == 0 and self.terminator in line:
                if blocks < self.min_blocks:
                    raise TransformError(
                        f"Line {lineno}: reached {self.terminator!r} after "
                        f"{blocks} block(s), expected at least {self.min_blocks}"
                    )
                skipping = False
                out.append(line)
                continue

            before = depth
            for ch in line:
                if ch in _OPENERS:
                    depth += 1
                elif ch in _CLOSERS:
                    depth -= 1
            if depth < 0:
                raise TransformError(f"Line {lineno}: unbalanced closing bracket")

            stripped = line.strip().rstrip(",")
            if before > 0 and depth == 0 and stripped and all(c in _CLOSERS for c in stripped):
                blocks += 1

        if skipping:
            raise TransformError(
                f"Reached end of file before {self.terminator!r} "
                f"(after {self.start!r})"
            )
        return "".join(out)


@dataclass(frozen=True)
class IndentedBlockRemoval(Transform):
    """Remove YAML mapping entries by key, with everything nested under them.

    A line whose stripped text is one of ``keys`` (e.g. ``kafka:``) starts
    a skip; it ends at the first non-blank line indented no deeper than
    that key.
    """

    keys: tuple[str, ...]

    def apply(self, text: str) -> str:
        out: list[str] = []
        skip_indent: int | None = None
        for line in _lines(text):
            if skip_indent is not None:
                if not line.strip() or _indent(line) > skip_indent:
                    continue
                skip_indent = None
            if line.strip() in self.keys:
                skip_indent = _indent(line)
                continue
            out.append(line)
        return "".join(out)
