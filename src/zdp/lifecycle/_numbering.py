"""Sequential document numbering."""

import re
from pathlib import Path

from zdp.exceptions import DocumentIOError

from ._index import IndexDocument

__all__ = ["assign_and_rename", "format_number", "has_number_prefix", "next_number"]


def has_number_prefix(filename: str, width: int = 4) -> bool:
    """Check for a fixed-width leading numeric prefix such as ``0015-``."""
    return re.match(rf"^\d{{{width}}}-", filename) is not None


def next_number(index: IndexDocument) -> int:
    """Return one more than the highest number in the index table.

    Gaps left by missing numbers are never reused; an empty table yields 1.
    """
    return max(index.numbers(), default=0) + 1


def format_number(number: int, width: int = 4) -> str:
    """Left-pad a document number with zeros."""
    return f"{number:0{width}d}"


def assign_and_rename(path: Path, number: int, width: int = 4) -> Path:
    """Prefix a file name with its zero-padded number.

    The file is renamed in place; ``draft.md`` with number 7 becomes
    ``0007-draft.md``.

    Args:
        path: File to rename.
        number: Number to assign.
        width: Zero-padding width.

    Returns:
        The new path.

    Raises:
        DocumentIOError: If the target exists or the rename fails.
    """
    target = path.with_name(f"{format_number(number, width)}-{path.name}")
    if target.exists():
        msg = f"Cannot rename {path.name}: {target.name} already exists"
        raise DocumentIOError(msg, path=target, operation="rename")
    try:
        return path.rename(target)
    except OSError as e:
        msg = f"Failed to rename file: {e}"
        raise DocumentIOError(msg, path=path, operation="rename", cause=e) from e
