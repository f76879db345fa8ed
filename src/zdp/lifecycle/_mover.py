"""History-preserving document relocation."""

from pathlib import Path
from typing import Final

from zdp.exceptions import MoveFailureError, RepositoryError
from zdp.repository import HistoryProvider

__all__ = ["DocumentMover"]


class DocumentMover:
    """Relocate tracked documents through the history provider.

    There is no copy-then-delete fallback: a move either keeps the file's
    history or fails.
    """

    __slots__: Final = ("_provider",)

    def __init__(self, provider: HistoryProvider) -> None:
        self._provider: HistoryProvider = provider

    def move(self, source: Path, destination: Path) -> Path:
        """Move ``source`` to ``destination``, creating the parent directory.

        Args:
            source: Tracked file to move.
            destination: Target file path.

        Returns:
            The destination path.

        Raises:
            MoveFailureError: If the destination exists or the provider
                refuses the move. Provider diagnostics are included in the
                message.
        """
        if destination.exists():
            msg = f"Failed to move document: destination already exists: {destination}"
            raise MoveFailureError(msg, source=source, destination=destination)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to move document: cannot create {destination.parent}: {e}"
            raise MoveFailureError(msg, source=source, destination=destination, cause=e) from e

        try:
            self._provider.move(source, destination)
        except RepositoryError as e:
            msg = f"Failed to move document: {e}"
            raise MoveFailureError(msg, source=source, destination=destination, cause=e) from e
        return destination
