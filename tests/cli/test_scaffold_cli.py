"""
Tests for the svc-template CLI — create and scaffold end to end.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from app.cli import commands, git
from app.cli.errors import GitError, GitHubError, OutputPathError, ScaffoldError, StepFailed
from app.cli.github import CreatedRepository
from app.cli.main import cli


class FakeClient:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[Any, ...]] = []

    def create_repository(
        self, name: str, description: str | None, private: bool, owner: str
    ) -> CreatedRepository:
        self.calls.append((name, description, private, owner))
        if self.fail:
            raise GitHubError("name already exists on this account", status=422)
        # "org/user" creates the repository under the organization
        account = owner.split("/")[0]
        return CreatedRepository(
            full_name=f"{account}/{name}",
            html_url=f"https://github.com/{account}/{name}",
            ssh_url=f"git@github.com:{account}/{name}.git",
            clone_url=f"https://github.com/{account}/{name}.git",
            private=private,
        )


@pytest.fixture
def git_calls(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, ...]]:
    """Record git operations instead of running them."""
    calls: list[tuple[str, ...]] = []

    def record(op: str, result: Any = None):  # type: ignore[no-untyped-def]
        def fn(path: Path, *args: Any, **kwargs: Any) -> Any:
            assert (path / "pyproject.toml").is_file()
            calls.append((op, *map(str, args)))
            return result
        return fn

    monkeypatch.setattr(git, "init_repo", record("init"))
    monkeypatch.setattr(git, "add_remote", record("remote"))
    monkeypatch.setattr(git, "add_all", record("add"))
    monkeypatch.setattr(git, "commit", record("commit"))
    monkeypatch.setattr(git, "push_with_fallback", record("push", "main"))
    return calls


# ── Command functions ───────────────────────────────────────────────


class TestValidateOutputPath:
    def test_inside(self, tmp_path: Path):
        assert commands.validate_output_path(Path("svc"), cwd=tmp_path) == (
            tmp_path / "svc"
        ).resolve()

    def test_escape(self, tmp_path: Path):
        with pytest.raises(OutputPathError, match="within the current directory"):
            commands.validate_output_path(Path("../escape"), cwd=tmp_path)

    def test_exists(self, tmp_path: Path):
        (tmp_path / "svc").mkdir()
        with pytest.raises(OutputPathError, match="already exists"):
            commands.validate_output_path(Path("svc"), cwd=tmp_path)


class TestStep:
    def test_wraps_cause(self):
        with pytest.raises(StepFailed) as exc:
            with commands.step("commit changes"):
                raise GitError(["git", "commit"], "nothing to commit")
        assert str(exc.value).startswith("Failed to commit changes: ")
        assert "nothing to commit" in str(exc.value)

    def test_other_errors_pass_through(self):
        with pytest.raises(KeyError):
            with commands.step("anything"):
                raise KeyError("x")


class TestExecuteCreate:
    def test_sequence(self, mini_template: Path, git_calls: list[tuple[str, ...]]):
        client = FakeClient()
        result = commands.execute_create(
            "demo",
            "octocat",
            private=True,
            template=mini_template,
            client=client,  # type: ignore[arg-type]
        )
        assert client.calls == [("demo", None, True, "octocat")]
        assert [c[0] for c in git_calls] == ["init", "remote", "add", "commit", "push"]
        assert git_calls[1] == ("remote", "origin", "https://github.com/octocat/demo.git")
        assert git_calls[3] == ("commit", commands.commit_message(True))
        assert result.branch == "main"

    def test_org_owner_remote(self, mini_template: Path, git_calls: list[tuple[str, ...]]):
        client = FakeClient()
        commands.execute_create(
            "demo",
            "acme/octocat",
            template=mini_template,
            client=client,  # type: ignore[arg-type]
        )
        assert client.calls == [("demo", None, False, "acme/octocat")]
        remotes = [c for c in git_calls if c[0] == "remote"]
        assert remotes == [("remote", "origin", "https://github.com/acme/demo.git")]

    def test_repository_failure_stops(self, mini_template: Path, git_calls: list[tuple[str, ...]]):
        with pytest.raises(StepFailed, match="Failed to create GitHub repository"):
            commands.execute_create(
                "demo", "octocat", template=mini_template, client=FakeClient(fail=True)  # type: ignore[arg-type]
            )
        assert git_calls == []

    def test_invalid_name_before_api(self, mini_template: Path):
        client = FakeClient()
        with pytest.raises(ScaffoldError):
            commands.execute_create("bad/name", "octocat", client=client)  # type: ignore[arg-type]
        assert client.calls == []


# ── CLI ─────────────────────────────────────────────────────────────


class TestCreateCommand:
    def test_missing_token(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        result = CliRunner().invoke(cli, ["create", "demo", "--github-user", "octocat"])
        assert result.exit_code == 1
        assert "GITHUB_TOKEN" in result.output

    def test_strip_failure_reported(
        self,
        mini_template: Path,
        git_calls: list[tuple[str, ...]],
        monkeypatch: pytest.MonkeyPatch,
    ):
        client = FakeClient()
        monkeypatch.setattr(commands, "GitHubClient", lambda token: client)
        monkeypatch.setattr(commands, "get_github_token", lambda: "tok")

        result = CliRunner().invoke(cli, [
            "create", "demo",
            "--github-user", "octocat",
            "--without-kafka",
            "--template", str(mini_template),
        ])
        # The minimal tree has no event integration to strip
        assert result.exit_code == 1
        assert "Failed to generate service files" in result.output

    def test_success_with_events(
        self,
        mini_template: Path,
        git_calls: list[tuple[str, ...]],
        monkeypatch: pytest.MonkeyPatch,
    ):
        client = FakeClient()
        monkeypatch.setattr(commands, "GitHubClient", lambda token: client)
        monkeypatch.setattr(commands, "get_github_token", lambda: "tok")

        result = CliRunner().invoke(cli, [
            "create", "demo",
            "--github-user", "octocat",
            "--description", "Demo service",
            "--template", str(mini_template),
        ])
        assert result.exit_code == 0, result.output
        assert "https://github.com/octocat/demo" in result.output
        assert "Branch: main" in result.output
        assert client.calls == [("demo", "Demo service", False, "octocat")]


class TestScaffoldCommand:
    @pytest.mark.requires_git
    def test_scaffold(self, mini_template: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.chdir(work)

        result = CliRunner().invoke(cli, ["scaffold", "demo", "--template", str(mini_template)])
        assert result.exit_code == 0, result.output
        assert (work / "demo" / "pyproject.toml").is_file()
        assert (work / "demo" / ".git").is_dir()
        log = git.run_git("log", "--format=%s", cwd=work / "demo").strip()
        assert log == commands.commit_message(True)

    def test_existing_directory_untouched(
        self, mini_template: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "demo").mkdir()
        (tmp_path / "demo" / "keep.txt").write_text("mine")

        result = CliRunner().invoke(cli, ["scaffold", "demo", "--template", str(mini_template)])
        assert result.exit_code == 1
        assert "already exists" in result.output
        assert [p.name for p in (tmp_path / "demo").iterdir()] == ["keep.txt"]

    def test_output_escape(
        self, mini_template: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.chdir(work)

        result = CliRunner().invoke(
            cli, ["scaffold", "demo", "--output", "../escape", "--template", str(mini_template)]
        )
        assert result.exit_code == 1
        assert "within the current directory" in result.output
        assert not (tmp_path / "escape").exists()

    def test_invalid_name(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["scaffold", "a:b"])
        assert result.exit_code == 1
        assert list(tmp_path.iterdir()) == []
