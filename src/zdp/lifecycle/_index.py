"""Aggregate index model and synchronization.

The aggregate index (``00-index.md``) holds a pipe table of every document
and a "Documents by State" section with one ``###`` sub-section per
non-empty state. ``IndexDocument`` parses it into an ordered list of nodes,
applies structural edits to the nodes, and serializes back to text. Lines
that are not edited keep their exact original text.
"""

import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Final, Self

from zdp.exceptions import DuplicateDocumentNumberError, IndexFormatError

from ._formatting import normalize_lines
from ._io import read_text, write_text_atomic
from ._models import ChangeKind, DocumentFields, IndexChange, IndexEntry
from ._states import StateRegistry, normalize_state

__all__ = [
    "DOCUMENTS_BY_STATE",
    "Bullet",
    "Heading",
    "IndexDocument",
    "IndexNode",
    "TableHeader",
    "TableRow",
    "TableSeparator",
    "Text",
    "TrackedDocument",
    "full_resync",
]

DOCUMENTS_BY_STATE = "Documents by State"

_HEADING = re.compile(r"^(#{1,6}) (.*)$")
_BULLET = re.compile(r"^- \[(.*)\]\(([^)]*)\)\s*$")
_SEPARATOR = re.compile(r"^\|?\s*:?-{3,}")


# =============================================================================
# Nodes
# =============================================================================


@dataclass(frozen=True, slots=True)
class Heading:
    """A Markdown ATX heading line."""

    level: int
    text: str
    raw: str

    @classmethod
    def make(cls, level: int, text: str) -> Self:
        return cls(level=level, text=text, raw=f"{'#' * level} {text}")


@dataclass(frozen=True, slots=True)
class TableHeader:
    """The header row of the document table."""

    raw: str


@dataclass(frozen=True, slots=True)
class TableSeparator:
    """The ``|---|---|`` row under the table header."""

    raw: str


@dataclass(frozen=True, slots=True)
class TableRow:
    """A data row of the document table.

    Attributes:
        cells: Stripped cell values, without the outer pipes.
        raw: Original line text.
    """

    cells: tuple[str, ...]
    raw: str

    @classmethod
    def parse(cls, line: str) -> Self:
        parts = line.split("|")
        inner = parts[1:-1] if line.rstrip().endswith("|") else parts[1:]
        return cls(cells=tuple(cell.strip() for cell in inner), raw=line)

    @classmethod
    def make(cls, entry: IndexEntry) -> Self:
        line = f"| {entry.number} | {entry.title} | {entry.state} | {entry.updated} |"
        return cls.parse(line)

    def _cell(self, index: int) -> str:
        return self.cells[index] if index < len(self.cells) else ""

    @property
    def number(self) -> str:
        return self._cell(0)

    @property
    def numeric(self) -> int | None:
        return int(self.number) if self.number.isdigit() else None

    @property
    def entry(self) -> IndexEntry:
        """Return the row as an IndexEntry."""
        return IndexEntry(
            number=self._cell(0),
            title=self._cell(1),
            state=self._cell(2),
            updated=self._cell(3),
        )

    def with_state(self, state: str, updated: str) -> Self:
        """Return a copy with the state and updated cells rewritten.

        Every other byte of the row, including the title cell, is preserved.
        """
        parts = self.raw.split("|")
        min_parts = 5
        if len(parts) < min_parts:
            return self
        parts[3] = f" {state} "
        parts[4] = f" {updated} "
        return type(self).parse("|".join(parts))


@dataclass(frozen=True, slots=True)
class Bullet:
    """A ``- [<number> - <title>](<path>)`` link line."""

    label: str
    target: str
    raw: str

    @classmethod
    def make(cls, number: str, title: str, target: str) -> Self:
        label = f"{number} - {title}"
        return cls(label=label, target=target, raw=f"- [{label}]({target})")

    @property
    def number(self) -> str:
        head, sep, _ = self.label.partition(" - ")
        return head.strip() if sep else ""

    @property
    def numeric(self) -> int | None:
        return int(self.number) if self.number.isdigit() else None

    def points_to(self, target: str) -> bool:
        return PurePosixPath(self.target) == PurePosixPath(target)


@dataclass(frozen=True, slots=True)
class Text:
    """Any other line, including blank lines."""

    raw: str

    @property
    def blank(self) -> bool:
        return not self.raw.strip()


IndexNode = Heading | TableHeader | TableSeparator | TableRow | Bullet | Text


def _is_table_header(line: str) -> bool:
    if not line.startswith("|"):
        return False
    cells = line.split("|")
    return len(cells) > 1 and cells[1].strip().lower() == "number"


def parse_nodes(lines: Sequence[str]) -> list[IndexNode]:
    """Classify each index line into a node."""
    nodes: list[IndexNode] = []
    in_table = False
    for line in lines:
        if in_table and not line.startswith("|"):
            in_table = False

        if in_table:
            if _SEPARATOR.match(line) and "---" in line:
                nodes.append(TableSeparator(line))
            else:
                nodes.append(TableRow.parse(line))
            continue

        if _is_table_header(line):
            in_table = True
            nodes.append(TableHeader(line))
            continue

        heading = _HEADING.match(line)
        if heading is not None:
            nodes.append(
                Heading(level=len(heading.group(1)), text=heading.group(2).strip(), raw=line)
            )
            continue

        bullet = _BULLET.match(line)
        if bullet is not None:
            nodes.append(Bullet(label=bullet.group(1), target=bullet.group(2), raw=line))
            continue

        nodes.append(Text(line))
    return nodes


# =============================================================================
# Index Document
# =============================================================================


class IndexDocument:
    """Structured, editable view of the aggregate index.

    Every structural edit is followed by formatting normalization, so the
    node list always serializes to normalized text.
    """

    __slots__: Final = ("_nodes", "path")

    def __init__(self, nodes: Sequence[IndexNode], *, path: Path | None = None) -> None:
        self._nodes: list[IndexNode] = list(nodes)
        self.path: Path | None = path

    @classmethod
    def parse(cls, text: str, *, path: Path | None = None) -> Self:
        """Parse index text into a document."""
        return cls(parse_nodes(text.split("\n")), path=path)

    @classmethod
    def load(cls, path: Path) -> Self:
        """Read and parse the index file at ``path``."""
        return cls.parse(read_text(path), path=path)

    @property
    def nodes(self) -> list[IndexNode]:
        """Return a copy of the node list."""
        return list(self._nodes)

    def raw_text(self) -> str:
        """Serialize the nodes exactly as they are, without normalization."""
        return "\n".join(node.raw for node in self._nodes)

    def render(self) -> str:
        """Serialize the index with normalized formatting."""
        return "\n".join(normalize_lines([node.raw for node in self._nodes]))

    def save(self, path: Path | None = None) -> None:
        """Atomically write the rendered index."""
        target = path or self.path
        if target is None:
            msg = "No path to save the index to"
            raise IndexFormatError(msg)
        write_text_atomic(target, self.render())

    def _normalize(self) -> None:
        self._nodes = parse_nodes(normalize_lines([node.raw for node in self._nodes]))

    # -------------------------------------------------------------------------
    # Table
    # -------------------------------------------------------------------------

    def _table_bounds(self) -> tuple[int, int]:
        """Return the index of the table header and one past the last table node."""
        for start, node in enumerate(self._nodes):
            if isinstance(node, TableHeader):
                end = start + 1
                while end < len(self._nodes) and isinstance(
                    self._nodes[end], (TableSeparator, TableRow)
                ):
                    end += 1
                return start, end
        msg = "Index has no document table (expected a '| Number | Title |' header)"
        raise IndexFormatError(msg, path=self.path)

    def has_table(self) -> bool:
        """Check whether the index contains a document table."""
        return any(isinstance(node, TableHeader) for node in self._nodes)

    def _rows(self) -> Iterator[tuple[int, TableRow]]:
        if not self.has_table():
            return
        start, end = self._table_bounds()
        for position in range(start + 1, end):
            node = self._nodes[position]
            if isinstance(node, TableRow) and node.number:
                yield position, node

    def table_rows(self) -> list[IndexEntry]:
        """Return every data row of the table, in file order."""
        return [row.entry for _, row in self._rows()]

    def numbers(self) -> list[int]:
        """Return every numeric document number in the table."""
        return [row.numeric for _, row in self._rows() if row.numeric is not None]

    def _find_row(self, number: str) -> tuple[int, TableRow] | None:
        wanted = int(number) if number.isdigit() else None
        for position, row in self._rows():
            if row.number == number or (wanted is not None and row.numeric == wanted):
                return position, row
        return None

    def row_for(self, number: str) -> IndexEntry | None:
        """Return the table row for a document number, if present."""
        found = self._find_row(number)
        return found[1].entry if found is not None else None

    def add_table_row(self, entry: IndexEntry) -> None:
        """Insert a row keeping the table in ascending numeric order.

        Raises:
            IndexFormatError: If the index has no table.
            DuplicateDocumentNumberError: If the number is already in the table.
        """
        start, end = self._table_bounds()
        if self._find_row(entry.number) is not None:
            msg = f"Document number {entry.number} is already in the index table"
            raise DuplicateDocumentNumberError(msg, number=entry.number)

        insert_at = end
        wanted = entry.numeric
        if wanted is not None:
            for position, row in self._rows():
                if row.numeric is not None and wanted < row.numeric:
                    insert_at = position
                    break
        if insert_at == end and end == start + 1:
            # Header without a separator row.
            self._nodes.insert(end, TableSeparator("|--------|-------|-------|---------|"))
            insert_at += 1
        self._nodes.insert(insert_at, TableRow.make(entry))
        self._normalize()

    def update_table_row(self, number: str, state: str, updated: str) -> bool:
        """Rewrite the state and updated cells of a row.

        Returns:
            True if a row with that number exists.
        """
        found = self._find_row(number)
        if found is None:
            return False
        position, row = found
        self._nodes[position] = row.with_state(state, updated)
        return True

    # -------------------------------------------------------------------------
    # Sections
    # -------------------------------------------------------------------------

    def _region(self) -> tuple[int, int] | None:
        """Return the node range of the "Documents by State" section body."""
        for start, node in enumerate(self._nodes):
            if (
                isinstance(node, Heading)
                and node.level == 2  # noqa: PLR2004
                and node.text == DOCUMENTS_BY_STATE
            ):
                end = start + 1
                while end < len(self._nodes):
                    candidate = self._nodes[end]
                    if isinstance(candidate, Heading) and candidate.level <= 2:  # noqa: PLR2004
                        break
                    end += 1
                return start + 1, end
        return None

    def _section_bounds(self, display: str) -> tuple[int, int] | None:
        """Return the heading index and end of the section for a state."""
        region = self._region()
        if region is None:
            return None
        key = normalize_state(display)
        start, end = region
        for position in range(start, end):
            node = self._nodes[position]
            if (
                isinstance(node, Heading)
                and node.level == 3  # noqa: PLR2004
                and normalize_state(node.text) == key
            ):
                stop = position + 1
                while stop < end and not isinstance(self._nodes[stop], Heading):
                    stop += 1
                return position, stop
        return None

    def _section_bullets(self, display: str) -> list[tuple[int, Bullet]]:
        bounds = self._section_bounds(display)
        if bounds is None:
            return []
        heading, stop = bounds
        bullets: list[tuple[int, Bullet]] = []
        for position in range(heading + 1, stop):
            node = self._nodes[position]
            if isinstance(node, Bullet):
                bullets.append((position, node))
        return bullets

    def section_names(self) -> list[str]:
        """Return the heading text of every state section, in file order."""
        region = self._region()
        if region is None:
            return []
        start, end = region
        return [
            node.text
            for node in self._nodes[start:end]
            if isinstance(node, Heading) and node.level == 3  # noqa: PLR2004
        ]

    def section_paths(self, display: str) -> list[str]:
        """Return the link targets listed in a state's section."""
        return [bullet.target for _, bullet in self._section_bullets(display)]

    def section_of(self, path: str) -> str | None:
        """Return the name of the section that links to ``path``, if any."""
        for name in self.section_names():
            if any(bullet.points_to(path) for _, bullet in self._section_bullets(name)):
                return name
        return None

    def add_to_section(self, number: str, title: str, path: str, display: str) -> bool:
        """Insert a bullet into a state section in ascending number order.

        The section is created directly under the "Documents by State"
        heading when it does not exist; that heading is appended to the end
        of the index when it is missing too.

        Returns:
            False if the section already links to ``path``.
        """
        bullets = self._section_bullets(display)
        if any(bullet.points_to(path) for _, bullet in bullets):
            return False

        new = Bullet.make(number, title, path)
        bounds = self._section_bounds(display)
        if bounds is None:
            region = self._region()
            if region is None:
                self._nodes.extend([Text(""), Heading.make(2, DOCUMENTS_BY_STATE)])
                region = (len(self._nodes), len(self._nodes))
            self._nodes[region[0] : region[0]] = [Text(""), Heading.make(3, display), new]
            self._normalize()
            return True

        heading, _ = bounds
        insert_at = bullets[-1][0] + 1 if bullets else heading + 1
        wanted = int(number) if number.isdigit() else None
        if wanted is not None:
            for position, bullet in bullets:
                if bullet.numeric is not None and wanted < bullet.numeric:
                    insert_at = position
                    break
        self._nodes.insert(insert_at, new)
        self._normalize()
        return True

    def remove_from_section(self, path: str, display: str | None = None) -> bool:
        """Remove the bullet linking to ``path``.

        Without ``display``, the bullet is removed from whichever section
        holds it. A section left without content loses its heading.

        Returns:
            True if a bullet was removed.
        """
        name = display if display is not None else self.section_of(path)
        if name is None:
            return False
        for position, bullet in self._section_bullets(name):
            if bullet.points_to(path):
                del self._nodes[position]
                break
        else:
            return False

        bounds = self._section_bounds(name)
        if bounds is not None:
            heading, stop = bounds
            body = self._nodes[heading + 1 : stop]
            if all(isinstance(node, Text) and node.blank for node in body):
                del self._nodes[heading:stop]
        self._normalize()
        return True


# =============================================================================
# Full Resynchronization
# =============================================================================


@dataclass(frozen=True, slots=True)
class TrackedDocument:
    """A document considered during resynchronization.

    Attributes:
        path: Corpus-relative POSIX path.
        fields: Parsed envelope fields, or None if the envelope is unusable.
        error: Why the envelope could not be used.
    """

    path: str
    fields: DocumentFields | None = None
    error: str = ""

    @property
    def filename(self) -> str:
        return PurePosixPath(self.path).name


def _sync_table(
    index: IndexDocument,
    tracked: Sequence[TrackedDocument],
    untracked: Sequence[TrackedDocument],
    registry: StateRegistry,
) -> list[IndexChange]:
    changes: list[IndexChange] = []
    seen: dict[str, str] = {}
    # Untracked documents only correct rows that already exist.
    candidates = [(doc, True) for doc in tracked] + [(doc, False) for doc in untracked]
    for doc, is_tracked in candidates:
        if doc.fields is None:
            if is_tracked:
                changes.append(
                    IndexChange(ChangeKind.SKIPPED, "table", doc.filename, after=doc.error)
                )
            continue
        fields = doc.fields
        if not fields.number.isdigit():
            if is_tracked:
                reason = "missing document number"
                changes.append(
                    IndexChange(ChangeKind.SKIPPED, "table", doc.filename, after=reason)
                )
            continue
        key = str(int(fields.number))
        if key in seen:
            if is_tracked:
                reason = f"duplicate document number {fields.number} (also {seen[key]})"
                changes.append(
                    IndexChange(ChangeKind.SKIPPED, "table", doc.filename, after=reason)
                )
            continue
        seen[key] = doc.filename

        state = registry.display_form(fields.state) if fields.state in registry else fields.state
        existing = index.row_for(fields.number)
        if existing is None:
            if is_tracked:
                index.add_table_row(
                    IndexEntry(fields.number, fields.title, state, fields.updated)
                )
                changes.append(IndexChange(ChangeKind.ADDED, "table", doc.filename))
            continue
        if existing.updated != fields.updated or existing.state != state:
            _ = index.update_table_row(fields.number, state, fields.updated)
        if existing.updated != fields.updated:
            changes.append(
                IndexChange(
                    ChangeKind.UPDATED_DATE,
                    "table",
                    doc.filename,
                    before=existing.updated,
                    after=fields.updated,
                )
            )
        if existing.state != state:
            changes.append(
                IndexChange(
                    ChangeKind.UPDATED_STATE,
                    "table",
                    doc.filename,
                    before=existing.state,
                    after=state,
                )
            )
    return changes


def _sync_section(
    index: IndexDocument,
    display: str,
    on_disk: Sequence[TrackedDocument],
) -> list[IndexChange]:
    changes: list[IndexChange] = []
    listed = index.section_paths(display)
    listed_keys = {PurePosixPath(path) for path in listed}
    present_keys = {PurePosixPath(doc.path) for doc in on_disk}

    for doc in on_disk:
        if PurePosixPath(doc.path) in listed_keys:
            continue
        if doc.fields is None:
            changes.append(IndexChange(ChangeKind.SKIPPED, display, doc.filename, after=doc.error))
            continue
        if not doc.fields.number.isdigit():
            reason = "missing document number"
            changes.append(IndexChange(ChangeKind.SKIPPED, display, doc.filename, after=reason))
            continue
        _ = index.add_to_section(doc.fields.number, doc.fields.title, doc.path, display)
        changes.append(IndexChange(ChangeKind.ADDED, display, doc.filename))

    for path in listed:
        if PurePosixPath(path) not in present_keys:
            _ = index.remove_from_section(path, display)
            changes.append(
                IndexChange(ChangeKind.REMOVED, display, PurePosixPath(path).name)
            )
    return changes


def full_resync(
    index: IndexDocument,
    tracked: Sequence[TrackedDocument],
    on_disk: Mapping[str, Sequence[TrackedDocument]],
    registry: StateRegistry,
) -> list[IndexChange]:
    """Reconcile the table and every state section.

    For every tracked document, adds a missing table row or rewrites a stale
    state/updated value. Untracked documents on disk, such as a file moved
    by hand, correct their existing row but never add one. For every state,
    adds bullets for files present in its directory and removes bullets
    whose file is gone. Running it again with no filesystem change makes no
    further edits.

    Args:
        index: The index to edit in place.
        tracked: Version-controlled documents in state directories.
        on_disk: Documents present in each state directory, keyed by the
            state's display name.
        registry: The state registry.

    Returns:
        The edits made and documents skipped, in order.
    """
    tracked_paths = {PurePosixPath(doc.path) for doc in tracked}
    untracked = [
        doc
        for documents in on_disk.values()
        for doc in documents
        if PurePosixPath(doc.path) not in tracked_paths
    ]
    changes = _sync_table(index, tracked, untracked, registry)
    for state in registry:
        changes.extend(_sync_section(index, state.display, on_disk.get(state.display, ())))
    return changes
