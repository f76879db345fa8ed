# ruff: noqa: TC003  # Path needed at runtime for Protocol method bodies
"""History provider protocol for type-safe dependency injection.

This module defines a runtime-checkable Protocol describing the narrow set of
version-control operations the lifecycle controller consumes, so tests can
substitute an in-memory fake for a real Git checkout.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from zdp.repository._models import CommitInfo


@runtime_checkable
class HistoryProvider(Protocol):
    """Protocol for history-preserving moves and history lookups.

    GitRepository implements this protocol against a real checkout and
    FakeRepository implements it in memory.

    Example:
        >>> def relocate(provider: HistoryProvider, src: Path, dst: Path) -> None:
        ...     provider.move(src, dst)
        >>> relocate(GitRepository(), Path("01-draft/0001-a.md"), Path("06-final/0001-a.md"))
    """

    @property
    def root(self) -> Path:
        """Root directory of the working tree.

        Returns:
            The absolute path to the repository root directory.
        """
        ...

    def move(self, source: Path, destination: Path) -> None:
        """Rename a tracked file so that its history follows it.

        Args:
            source: Absolute path of the tracked file.
            destination: Absolute destination path; its parent must exist.

        Raises:
            RepositoryCommandError: If the move is refused (destination
                exists, file untracked, conflicting changes).
        """
        ...

    def stage(self, paths: Iterable[Path]) -> frozenset[Path]:
        """Register files with version control.

        Args:
            paths: Absolute paths to stage.

        Returns:
            Frozenset of staged file paths.

        Raises:
            RepositoryCommandError: If staging fails.
        """
        ...

    def tracked_files(self, directory: Path) -> list[Path]:
        """List tracked files directly inside a directory.

        Args:
            directory: Absolute directory path.

        Returns:
            Sorted absolute paths of tracked files whose parent is ``directory``.
        """
        ...

    def history(self, path: Path) -> list[CommitInfo]:
        """Return the commits that touched a file, newest first.

        Args:
            path: Absolute path of the file.

        Returns:
            Commits following renames, newest first; empty for files with
            no history.

        Raises:
            RepositoryCommandError: If the history query fails.
        """
        ...
