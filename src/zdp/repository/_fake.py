# ruff: noqa: TC003  # Path and datetime needed at runtime for dataclass fields
"""Fake repository for testing.

This module provides a FakeRepository class that implements HistoryProvider
on top of a real directory without requiring an actual Git repository.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import Self

from zdp.exceptions import RepositoryCommandError
from zdp.repository._models import CommitInfo


@dataclass(slots=True)
class FakeRepository:
    """Fake Git repository for testing.

    Files live on the real filesystem under ``root`` so the lifecycle can read
    and write them; tracking state and history are held in memory.

    The fake maintains internal state that can be manipulated for testing:
    - tracked holds the paths version control knows about
    - staged records every path passed to stage()
    - histories maps a path to its commits, newest first
    - moves records every (source, destination) pair moved

    Example:
        >>> repo = FakeRepository(root=tmp_path)
        >>> repo.track(tmp_path / "01-draft" / "0001-a.md")
        >>> repo.add_commit(tmp_path / "01-draft" / "0001-a.md", author="Ada")
        >>> repo.move(tmp_path / "01-draft" / "0001-a.md", tmp_path / "06-final" / "0001-a.md")
    """

    root: Path = field(default_factory=lambda: Path("/fake/project"))
    tracked: set[Path] = field(default_factory=set)
    staged: set[Path] = field(default_factory=set)
    histories: dict[Path, list[CommitInfo]] = field(default_factory=dict)
    moves: list[tuple[Path, Path]] = field(default_factory=list)
    fail_moves: bool = False
    _commit_counter: int = field(default=0)

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the repository (no-op for fake)."""

    # =========================================================================
    # HistoryProvider Methods
    # =========================================================================

    def move(self, source: Path, destination: Path) -> None:
        """Rename a tracked file on disk, carrying its history along.

        Raises:
            RepositoryCommandError: If the source is untracked, the destination
                exists, or ``fail_moves`` is set.
        """
        command = ["git", "mv", "--", str(source), str(destination)]
        if self.fail_moves:
            msg = "git mv failed"
            raise RepositoryCommandError(
                msg, command=command, output="fatal: simulated failure"
            )
        if source not in self.tracked:
            msg = "git mv failed"
            raise RepositoryCommandError(
                msg,
                command=command,
                output=f"fatal: not under version control, source={source}",
            )
        if destination.exists():
            msg = "git mv failed"
            raise RepositoryCommandError(
                msg,
                command=command,
                output=f"fatal: destination exists, destination={destination}",
            )

        _ = source.rename(destination)
        self.tracked.discard(source)
        self.tracked.add(destination)
        if source in self.histories:
            self.histories[destination] = self.histories.pop(source)
        self.moves.append((source, destination))

    def stage(self, paths: Iterable[Path]) -> frozenset[Path]:
        """Stage files, which also starts tracking them.

        Returns:
            Frozenset of staged file paths.
        """
        staged = frozenset(paths)
        self.staged.update(staged)
        self.tracked.update(staged)
        return staged

    def tracked_files(self, directory: Path) -> list[Path]:
        """List tracked files whose parent is ``directory``."""
        return sorted(path for path in self.tracked if path.parent == directory)

    def history(self, path: Path) -> list[CommitInfo]:
        """Return the recorded commits for ``path``, newest first."""
        return list(self.histories.get(path, []))

    # =========================================================================
    # Test Helpers
    # =========================================================================

    def track(self, *paths: Path) -> None:
        """Mark files as tracked without staging them."""
        self.tracked.update(paths)

    def add_commit(
        self,
        path: Path,
        *,
        author: str = "Test User",
        email: str = "test@example.com",
        when: datetime | None = None,
        message: str = "Update document",
    ) -> CommitInfo:
        """Record a commit touching ``path`` as its newest history entry.

        Args:
            path: The file the commit touched.
            author: Author name.
            email: Author email.
            when: Author timestamp. If None, uses the current UTC time.
            message: Commit subject line.

        Returns:
            The recorded commit.
        """
        self._commit_counter += 1
        commits = self.histories.setdefault(path, [])
        commit = CommitInfo(
            sha=f"fake{self._commit_counter:08x}",
            message=message,
            author_name=author,
            author_email=email,
            timestamp=when or datetime.now(UTC),
            parent_shas=(commits[0].sha,) if commits else (),
        )
        commits.insert(0, commit)
        self.tracked.add(path)
        return commit
