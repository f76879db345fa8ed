"""zdp repository access.

This package provides the version-control seam the document lifecycle uses
for history-preserving moves, staging, and per-file history lookups.

Classes:
    GitRepository: Subprocess-backed provider for a real Git working tree.
    FakeRepository: In-memory provider for tests.
    HistoryProvider: Runtime-checkable protocol for dependency injection.

Models:
    CommitInfo: Metadata about a single commit.

Example:
    >>> from zdp.repository import GitRepository
    >>> with GitRepository(Path("docs")) as repo:
    ...     commits = repo.history(Path("docs/01-draft/0001-intro.md"))
"""

from zdp.repository._fake import FakeRepository
from zdp.repository._git import GitRepository, discover_root
from zdp.repository._models import CommitInfo
from zdp.repository._protocol import HistoryProvider

__all__ = [
    "CommitInfo",
    "FakeRepository",
    "GitRepository",
    "HistoryProvider",
    "discover_root",
]
