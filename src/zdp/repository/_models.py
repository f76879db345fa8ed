# ruff: noqa: TC003  # datetime needed at runtime for dataclass fields
"""History records returned by repositories."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """One commit touching a document, as reported by ``git log``.

    ``message`` is the subject line only. ``timestamp`` is the author date
    in the author's offset. A root commit has no ``parent_shas``.
    """

    sha: str
    message: str
    author_name: str
    author_email: str
    timestamp: datetime
    parent_shas: tuple[str, ...] = ()
