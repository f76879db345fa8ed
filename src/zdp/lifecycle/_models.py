# ruff: noqa: TC003  # Path and date needed at runtime for dataclass fields
"""Data models for the document lifecycle.

This module defines the value objects exchanged between the lifecycle
components and returned to callers as operation results.
"""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from pathlib import Path
from typing import Self

__all__ = [
    "AddResult",
    "ChangeKind",
    "DocumentFields",
    "HeaderReport",
    "HistoryFacts",
    "IndexAddResult",
    "IndexChange",
    "IndexEntry",
    "MoveResult",
    "ResyncReport",
    "TransitionResult",
]


# =============================================================================
# Document Models
# =============================================================================


@dataclass(frozen=True, slots=True)
class HistoryFacts:
    """Authorship and dates inferred from version-control history.

    Attributes:
        author: Earliest contributor, or "Unknown".
        created: Date of the earliest commit touching the file.
        updated: Date of the latest commit touching the file.
    """

    author: str
    created: date
    updated: date


@dataclass(frozen=True, slots=True)
class DocumentFields:
    """Envelope fields mirrored by the aggregate index.

    Attributes:
        number: Zero-padded document number as written in the envelope.
        title: Document title.
        state: Envelope state value.
        updated: Last updated date as written in the envelope.
    """

    number: str
    title: str
    state: str
    updated: str


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """One row of the aggregate index table."""

    number: str
    title: str
    state: str
    updated: str

    @property
    def numeric(self) -> int | None:
        """Return the row number as an integer, or None if not numeric."""
        text = self.number.strip()
        return int(text) if text.isdigit() else None

    @classmethod
    def from_fields(cls, fields: DocumentFields) -> Self:
        return cls(
            number=fields.number,
            title=fields.title,
            state=fields.state,
            updated=fields.updated,
        )


# =============================================================================
# Operation Results
# =============================================================================


@dataclass(frozen=True, slots=True)
class HeaderReport:
    """Result of adding or completing a document envelope.

    Attributes:
        path: The document that was processed.
        fields: Every envelope field and its value after synthesis.
        added: Fields that were missing and have been inferred.
    """

    path: Path
    fields: dict[str, str]
    added: tuple[str, ...]

    @property
    def changed(self) -> bool:
        """Return True if any field was added."""
        return bool(self.added)


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Result of moving a document to a new lifecycle state.

    Attributes:
        source: Path before the move.
        destination: Path after the move.
        previous_state: Envelope state before the transition.
        new_state: Canonical display name of the target state.
        updated: Date written to the envelope and the index row.
        headers: Envelope synthesis report, if the document had no envelope.
    """

    source: Path
    destination: Path
    previous_state: str
    new_state: str
    updated: str
    headers: HeaderReport | None = None


@dataclass(frozen=True, slots=True)
class MoveResult:
    """Result of moving a document to match its envelope state."""

    source: Path
    destination: Path
    state: str
    headers: HeaderReport | None = None


@dataclass(frozen=True, slots=True)
class IndexAddResult:
    """Result of registering a document in the aggregate index.

    Attributes:
        path: Corpus-relative path of the document.
        number: Document number.
        added_row: Whether a table row was inserted.
        added_bullet: Whether a section bullet was inserted.
    """

    path: str
    number: str
    added_row: bool
    added_bullet: bool

    @property
    def already_indexed(self) -> bool:
        """Return True if the document needed no index changes."""
        return not (self.added_row or self.added_bullet)


@dataclass(frozen=True, slots=True)
class AddResult:
    """Result of onboarding a new document into the corpus.

    Attributes:
        path: Final location of the document.
        number: Number assigned to or found on the document.
        renamed_from: Original path when a number prefix was assigned.
        moved_into_root: Whether the file was moved into the corpus root.
        moved_into_state: Directory the file was placed in, if it was moved.
        headers: Envelope synthesis report, if headers were added.
        header_state_synced: Directory state written over a mismatched header.
        index: Result of indexing the document.
    """

    path: Path
    number: str
    index: IndexAddResult
    renamed_from: Path | None = None
    moved_into_root: bool = False
    moved_into_state: str | None = None
    headers: HeaderReport | None = None
    header_state_synced: str | None = None


# =============================================================================
# Resync Report
# =============================================================================


class ChangeKind(StrEnum):
    """Kinds of edits made while resynchronizing the index."""

    ADDED = "added"
    UPDATED_DATE = "updated_date"
    UPDATED_STATE = "updated_state"
    REMOVED = "removed"
    HEADER_SYNCED = "header_synced"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class IndexChange:
    """A single reported resync edit.

    Attributes:
        kind: What happened.
        scope: "table", "envelope", or the display name of a state section.
        filename: Base name of the affected document.
        before: Previous value for updates.
        after: New value for updates, or the reason for a skip.
    """

    kind: ChangeKind
    scope: str
    filename: str
    before: str = ""
    after: str = ""


@dataclass(frozen=True, slots=True)
class ResyncReport:
    """Result of a full index resynchronization.

    Attributes:
        changes: Content edits and warnings, in the order they happened.
        formatting_changed: Whether normalization changed the index layout.
        written: Whether the index file was rewritten.
    """

    changes: tuple[IndexChange, ...] = ()
    formatting_changed: bool = False
    written: bool = False

    @property
    def content_changes(self) -> list[IndexChange]:
        """Return edits that changed index or envelope content."""
        return [c for c in self.changes if c.kind is not ChangeKind.SKIPPED]

    @property
    def warnings(self) -> list[IndexChange]:
        """Return documents that were skipped."""
        return [c for c in self.changes if c.kind is ChangeKind.SKIPPED]

    @property
    def up_to_date(self) -> bool:
        """Return True if nothing needed to change."""
        return not self.content_changes and not self.formatting_changed

    def in_scope(self, scope: str) -> list[IndexChange]:
        """Return the changes reported for one scope."""
        return [c for c in self.changes if c.scope == scope]
