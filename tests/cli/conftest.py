"""
Fixtures for generator tests.
"""

from __future__ import annotations

import shutil
import textwrap
from pathlib import Path

import pytest

GIT_AVAILABLE = shutil.which("git") is not None


def pytest_runtest_setup(item: pytest.Item) -> None:
    if item.get_closest_marker("requires_git") and not GIT_AVAILABLE:
        pytest.skip("git not installed")


@pytest.fixture
def template_root() -> Path:
    """The real template repository (this checkout)."""
    return Path(__file__).resolve().parents[2]


def write_files(root: Path, files: dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


@pytest.fixture
def mini_template(tmp_path: Path) -> Path:
    """A minimal template tree with one file under every exclusion rule."""
    root = tmp_path / "template"
    write_files(root, {
        "pyproject.toml": textwrap.dedent("""\
            [project]
            name = "service-template"

            [project.scripts]
            service-template = "app.main:cli"
            svc-template = "app.cli.main:cli"
        """),
        "app/__init__.py": '__all__ = [\n    "cli",\n    "core",\n]\n',
        "app/main.py": 'SERVICE_NAME = "service_template"\n',
        "app/core/__init__.py": "",
        "app/cli/main.py": "# generator\n",
        "tests/test_app.py": "def test_ok():\n    pass\n",
        "tests/cli/test_gen.py": "def test_gen():\n    pass\n",
        ".git/config": "[core]\n",
        "build/lib/x.py": "",
        "dist/pkg.whl": "",
        ".tmp/scratch": "",
        "uv.lock": "",
        ".env": "SECRET=1\n",
        ".env.example": "SECRET=\n",
        "app/__pycache__/main.cpython-312.pyc": "",
        "service_template.egg-info/PKG-INFO": "",
        "docs/build.md": "build notes\n",
    })
    return root
