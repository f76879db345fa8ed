"""Authorship and date inference from version-control history."""

from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Final

from zdp.repository import CommitInfo, HistoryProvider

from ._models import HistoryFacts

__all__ = ["UNKNOWN_AUTHOR", "HistoryInference"]

UNKNOWN_AUTHOR: Final = "Unknown"


class HistoryInference:
    """Derive missing envelope metadata from a path's commit history.

    Each query falls back to ``"Unknown"`` or today's date when the path has
    no history yet, such as a new, uncommitted file.
    """

    __slots__: Final = ("_provider", "_today")

    def __init__(
        self,
        provider: HistoryProvider,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._provider: HistoryProvider = provider
        self._today: Callable[[], date] = today

    def _commits(self, path: Path) -> list[CommitInfo]:
        # Newest first, as git log reports them.
        return self._provider.history(path)

    def author_of(self, path: Path) -> str:
        """Return the author of the earliest commit touching ``path``."""
        commits = self._commits(path)
        if not commits or not commits[-1].author_name:
            return UNKNOWN_AUTHOR
        return commits[-1].author_name

    def created_date_of(self, path: Path) -> date:
        """Return the date of the earliest commit touching ``path``."""
        commits = self._commits(path)
        return commits[-1].timestamp.date() if commits else self._today()

    def updated_date_of(self, path: Path) -> date:
        """Return the date of the latest commit touching ``path``."""
        commits = self._commits(path)
        return commits[0].timestamp.date() if commits else self._today()

    def facts_for(self, path: Path) -> HistoryFacts:
        """Return author, created and updated for ``path`` in one query."""
        commits = self._commits(path)
        if not commits:
            today = self._today()
            return HistoryFacts(author=UNKNOWN_AUTHOR, created=today, updated=today)
        return HistoryFacts(
            author=commits[-1].author_name or UNKNOWN_AUTHOR,
            created=commits[-1].timestamp.date(),
            updated=commits[0].timestamp.date(),
        )
