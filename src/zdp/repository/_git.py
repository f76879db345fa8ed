"""Git-backed history provider.

GitRepository opens the working tree with dulwich and implements the four
operations the lifecycle needs: history-preserving moves, staging, tracked
file listing and per-file history.
"""

import os
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Final, Self

from dulwich import porcelain
from dulwich.errors import NoIndexPresent, NotGitRepository
from dulwich.repo import Repo

from zdp.exceptions import RepositoryCommandError, RepositoryNotInitializedError
from zdp.repository._models import CommitInfo

if TYPE_CHECKING:
    from dulwich.objects import Commit


def discover_root(working_dir: Path) -> Path:
    """Find the Git working tree root enclosing ``working_dir``.

    Walks up the directory tree until a ``.git`` directory or file is found.
    Linked worktrees use a ``.git`` file, so both are accepted.

    Args:
        working_dir: The directory to start discovery from.

    Returns:
        The resolved path to the repository root.

    Raises:
        RepositoryNotInitializedError: If no ``.git`` is found in
            working_dir or any of its ancestors.
    """
    current = working_dir.resolve()

    while True:
        if (current / ".git").exists():
            return current

        parent = current.parent
        if parent == current:
            msg = f"Not inside a Git repository: {working_dir}"
            raise RepositoryNotInitializedError(msg, path=working_dir)
        current = parent


class GitRepository:
    """History provider backed by a Git working tree.

    When used as a context manager, the underlying dulwich Repo is closed
    on exit.

    Example:
        >>> with GitRepository(Path("docs")) as repo:
        ...     repo.move(draft, final)
    """

    __slots__: Final = ("_repo", "_root")

    def __init__(self, working_dir: Path | None = None) -> None:
        """Initialize the repository.

        Args:
            working_dir: The directory to discover from. If None, uses the
                current working directory.

        Raises:
            RepositoryNotInitializedError: If no Git repository is found at
                or above the working directory.
        """
        if working_dir is None:
            working_dir = Path.cwd()
        self._root: Path = discover_root(working_dir)
        try:
            self._repo: Repo = Repo(str(self._root))
        except NotGitRepository as e:
            msg = f"Not a usable Git repository: {self._root}"
            raise RepositoryNotInitializedError(msg, path=working_dir) from e

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
        """Release file handles held by the dulwich Repo."""
        self._repo.close()

    @property
    def root(self) -> Path:
        """Root directory of the working tree."""
        return self._root

    # =========================================================================
    # Path Helpers
    # =========================================================================

    def _relative(self, path: Path) -> str:
        """Convert a path to a repository-relative POSIX string.

        Raises:
            ValueError: If the path is outside the working tree.
        """
        resolved = path if path.is_absolute() else Path.cwd() / path
        return resolved.resolve().relative_to(self._root).as_posix()

    # =========================================================================
    # HistoryProvider Methods
    # =========================================================================

    def move(self, source: Path, destination: Path) -> None:
        """Rename a tracked file in the working tree and the index."""
        command = ("git", "mv", "--", str(source), str(destination))
        try:
            porcelain.mv(self._repo, self._relative(source), self._relative(destination))
        except (porcelain.Error, ValueError, OSError) as e:
            raise _refused(command, e) from e

    def stage(self, paths: Iterable[Path]) -> frozenset[Path]:
        """Add files to the index."""
        staged = frozenset(paths)
        if not staged:
            return staged
        command = ("git", "add", "--", *sorted(str(path) for path in staged))
        try:
            _ = porcelain.add(self._repo, paths=sorted(self._relative(path) for path in staged))
        except (ValueError, OSError) as e:
            raise _refused(command, e) from e
        return staged

    def tracked_files(self, directory: Path) -> list[Path]:
        """List index entries whose parent is ``directory``."""
        try:
            base = self._root / self._relative(directory)
            index = self._repo.open_index()
        except (ValueError, NoIndexPresent):
            return []
        files = [self._root / os.fsdecode(entry) for entry in index]
        return sorted(path for path in files if path.parent == base)

    def history(self, path: Path) -> list[CommitInfo]:
        """Return commits touching ``path`` across renames, newest first."""
        try:
            head = self._repo.head()
        except KeyError:
            # No commits yet.
            return []
        try:
            relative = self._relative(path)
        except ValueError as e:
            raise _refused(("git", "log", "--follow", "--", str(path)), e) from e
        walker = self._repo.get_walker(
            include=[head], paths=[os.fsencode(relative)], follow=True
        )
        return [_commit_info(entry.commit) for entry in walker]


def _refused(command: Sequence[str], error: Exception) -> RepositoryCommandError:
    msg = f"{command[0]} {command[1]} failed"
    return RepositoryCommandError(msg, command=command, output=str(error))


def _split_identity(identity: bytes) -> tuple[str, str]:
    """Split a ``Name <email>`` identity line into name and email.

    Lines without an email part yield an empty email.
    """
    text = identity.decode("utf-8", errors="replace")
    if "<" in text and text.endswith(">"):
        name, email = text.rsplit("<", 1)
        return name.strip(), email.rstrip(">")
    return text.strip(), ""


def _commit_info(commit: "Commit") -> CommitInfo:
    """Convert a dulwich commit, keeping only the subject line of its message."""
    name, email = _split_identity(commit.author)
    # Offsets are seconds east of UTC.
    tz = timezone(timedelta(seconds=commit.author_timezone))
    lines = commit.message.decode("utf-8", errors="replace").splitlines()
    return CommitInfo(
        sha=commit.id.decode("ascii"),
        message=lines[0] if lines else "",
        author_name=name,
        author_email=email,
        timestamp=datetime.fromtimestamp(commit.author_time, tz=tz),
        parent_shas=tuple(parent.decode("ascii") for parent in commit.parents),
    )
