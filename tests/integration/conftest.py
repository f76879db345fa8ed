import os
import shutil
import subprocess
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from rich.console import Console

from zdp.cli import create_app
from zdp.cli._commands import CLIContext

from tests.conftest import Corpus


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)
            item.add_marker(
                pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
            )


def git(path: Path, *args: str) -> str:
    """Run a git command in ``path`` and return its standard output."""
    result = subprocess.run(  # noqa: S603
        ["git", *args],  # noqa: S607
        cwd=str(path),
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def init_git_repo(path: Path) -> None:
    """Initialize a minimal git repository in the given path."""
    _ = git(path, "init")
    _ = git(path, "config", "user.email", "test@example.com")
    _ = git(path, "config", "user.name", "Test User")
    _ = git(path, "config", "commit.gpgsign", "false")


def commit_all(path: Path, message: str = "Update corpus") -> None:
    _ = git(path, "add", "--all")
    _ = git(path, "commit", "--quiet", "-m", message)


@pytest.fixture
def git_corpus(corpus: Corpus) -> Corpus:
    """The shared corpus, committed to a fresh git repository at its root."""
    init_git_repo(corpus.root)
    commit_all(corpus.root, "Add intro")
    return corpus


@pytest.fixture
def cli_env(
    git_corpus: Corpus,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[Corpus]:
    """Run CLI commands from the corpus root with isolated configuration."""
    for name in [key for key in os.environ if key.startswith("ZDP_")]:
        monkeypatch.delenv(name)
    monkeypatch.setenv("ZDP_LOGGING__FILE", str(tmp_path / "logs" / "cli.log"))
    monkeypatch.setattr(
        "zdp.config._discovery.get_user_config_path",
        lambda: tmp_path / "user" / "config.toml",
    )
    monkeypatch.chdir(git_corpus.root)

    yield git_corpus

    CLIContext.reset()


@pytest.fixture
def zdp_cli(console: Console, cli_env: Corpus) -> Callable[..., int]:  # noqa: ARG001
    """Run CLI commands and return the exit code (0 if no SystemExit)."""
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app(list(args))
        except SystemExit as e:
            if e.code is None:
                return 0
            return e.code if isinstance(e.code, int) else 1
        return 0

    return _run
