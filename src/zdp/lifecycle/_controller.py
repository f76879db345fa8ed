"""Document lifecycle controller.

LifecycleController is the entry point for every operation that changes the
corpus: state transitions, moving a document to match its envelope, onboarding
new documents, and resynchronizing the aggregate index with the files on disk.
It composes the envelope codec, the state registry, the mover, numbering,
history inference and the index model.

Every public operation either completes or raises a ``ZdpError`` subclass.
Two files are written independently (the document and the index), so an
interrupted operation can leave them out of step; ``resync_index`` is the
recovery path.
"""

from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Final

from zdp.exceptions import (
    AlreadyInCorrectDirectoryError,
    AlreadyInStateError,
    DocumentFormatError,
    DocumentIOError,
    DocumentNotFoundError,
    MoveFailureError,
)
from zdp.repository import HistoryProvider
from zdp.utils import create_null_logger

from ._envelope import (
    has_envelope,
    has_placeholder_number,
    parse_envelope,
    read_document_fields,
    synthesize_envelope,
    update_envelope,
)
from ._formatting import normalize_text
from ._history import HistoryInference
from ._index import IndexDocument, TrackedDocument, full_resync
from ._io import read_text, write_text_atomic
from ._models import (
    AddResult,
    ChangeKind,
    DocumentFields,
    HeaderReport,
    IndexAddResult,
    IndexChange,
    IndexEntry,
    MoveResult,
    ResyncReport,
    TransitionResult,
)
from ._mover import DocumentMover
from ._numbering import assign_and_rename, format_number, has_number_prefix, next_number
from ._states import State, StateRegistry

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

__all__ = ["LifecycleController"]


class LifecycleController:
    """Orchestrates document lifecycle operations for one corpus.

    Paths passed to the public methods may be absolute or relative to the
    current working directory. Paths written into the index are relative to
    the corpus root, with forward slashes.

    Example:
        >>> controller = LifecycleController(root, StateRegistry(), GitRepository(root))
        >>> controller.transition(Path("01-draft/0015-widgets.md"), "under review")
    """

    __slots__: Final = (
        "_history",
        "_index_file",
        "_logger",
        "_mover",
        "_number_width",
        "_provider",
        "_registry",
        "_root",
        "_suffix",
        "_today",
    )

    def __init__(  # noqa: PLR0913
        self,
        root: Path,
        registry: StateRegistry,
        provider: HistoryProvider,
        *,
        index_file: str = "00-index.md",
        number_width: int = 4,
        suffix: str = ".md",
        today: Callable[[], date] = date.today,
        logger: "FilteringBoundLogger | None" = None,
    ) -> None:
        """Initialize the controller.

        Args:
            root: Corpus root holding the index file and state directories.
            registry: The lifecycle states.
            provider: Version-control collaborator for moves and history.
            index_file: Index file name, relative to ``root``.
            number_width: Zero-padding width of document numbers.
            suffix: File suffix of corpus documents.
            today: Clock used for ``updated`` dates.
            logger: Logger for operation diagnostics. Logging is disabled
                when None.
        """
        self._root: Path = root.resolve()
        self._registry: StateRegistry = registry
        self._provider: HistoryProvider = provider
        self._index_file: str = index_file
        self._number_width: int = number_width
        self._suffix: str = suffix
        self._today: Callable[[], date] = today
        self._logger: "FilteringBoundLogger" = logger or create_null_logger()
        self._mover: DocumentMover = DocumentMover(provider)
        self._history: HistoryInference = HistoryInference(provider, today=today)

    @property
    def root(self) -> Path:
        """Corpus root directory."""
        return self._root

    @property
    def registry(self) -> StateRegistry:
        """The lifecycle states."""
        return self._registry

    @property
    def index_path(self) -> Path:
        """Absolute path of the aggregate index."""
        return self._root / self._index_file

    # =========================================================================
    # Path Helpers
    # =========================================================================

    def _existing(self, path: Path) -> Path:
        resolved = path.resolve()
        if not resolved.is_file():
            msg = f"File not found: {path}"
            raise DocumentNotFoundError(msg, path=path)
        return resolved

    def _relative(self, path: Path) -> str | None:
        try:
            return path.relative_to(self._root).as_posix()
        except ValueError:
            return None

    def _index_target(self, path: Path) -> str:
        relative = self._relative(path)
        return relative if relative is not None else path.as_posix()

    def _state_directory_of(self, path: Path) -> State | None:
        """Return the state whose directory directly contains ``path``."""
        if path.parent.parent != self._root:
            return None
        return self._registry.state_for_directory(path.parent.name)

    def _documents_in(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            entry
            for entry in directory.iterdir()
            if entry.is_file()
            and entry.suffix == self._suffix
            and not entry.name.startswith(".")
            and entry != self.index_path
        )

    def _load_index(self) -> IndexDocument:
        return IndexDocument.load(self.index_path)

    # =========================================================================
    # Envelope Operations
    # =========================================================================

    def add_headers(self, path: Path) -> HeaderReport:
        """Add or complete a document's envelope.

        Missing fields are inferred from the file name, the first heading and
        version-control history. Fields already present are kept.

        Args:
            path: The document.

        Returns:
            The fields written and the names of those that were added.

        Raises:
            DocumentNotFoundError: If the file does not exist.
            DocumentIOError: If the file cannot be read or written.
        """
        path = self._existing(path)
        content = read_text(path)
        facts = self._history.facts_for(path)
        synthesized = synthesize_envelope(
            path.name,
            content,
            facts,
            default_state=self._registry.default.display,
            number_width=self._number_width,
        )
        if synthesized.content != content:
            write_text_atomic(path, synthesized.content)

        self._logger.info(
            "headers added",
            path=str(path),
            added=list(synthesized.added),
        )
        return HeaderReport(path=path, fields=synthesized.fields, added=synthesized.added)

    def _ensure_envelope(self, path: Path) -> HeaderReport | None:
        if has_envelope(read_text(path)):
            return None
        self._logger.debug("document missing headers", path=str(path))
        return self.add_headers(path)

    def _read_fields(self, path: Path) -> DocumentFields:
        return read_document_fields(read_text(path), path=path)

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(self, path: Path, target_state: str) -> TransitionResult:
        """Move a document to a new lifecycle state.

        The envelope's ``state`` and ``updated`` lines are rewritten, the file
        is moved into the target state's directory, and the index table row
        and both affected sections are updated. Any state may move to any
        other state.

        Args:
            path: The document.
            target_state: Any spelling of the target state.

        Returns:
            Where the document went and what changed.

        Raises:
            DocumentNotFoundError: If the document or the index does not exist.
            MissingStateFieldError: If the envelope has no ``state``.
            UnsupportedStateError: If the target state is not registered.
            AlreadyInStateError: If the document is already in the target state.
            MoveFailureError: If the move is refused.
        """
        path = self._existing(path)
        headers = self._ensure_envelope(path)
        fields = self._read_fields(path)
        current = fields.state

        target = self._registry.get(target_state)
        if self._registry.same_state(current, target.key):
            msg = f'Document is already in state "{current}"'
            raise AlreadyInStateError(msg, path=path, state=current)

        index = self._load_index()
        stamp = self._today()
        content = read_text(path)
        write_text_atomic(path, update_envelope(content, target.display, today=stamp, path=path))

        try:
            destination = self._mover.move(path, self._root / target.directory / path.name)
        except MoveFailureError:
            write_text_atomic(path, content)
            raise
        self._logger.info(
            "document moved",
            source=str(path),
            destination=str(destination),
            previous_state=current,
            new_state=target.display,
        )

        old_display = (
            self._registry.display_form(current)
            if self._registry.is_supported(current)
            else current
        )
        self._reindex_moved(
            index,
            fields,
            source=path,
            destination=destination,
            old_display=old_display,
            new_display=target.display,
            updated=stamp.isoformat(),
        )
        index.save()
        self._logger.info("index updated", path=str(self.index_path))

        return TransitionResult(
            source=path,
            destination=destination,
            previous_state=current,
            new_state=target.display,
            updated=stamp.isoformat(),
            headers=headers,
        )

    def _reindex_moved(  # noqa: PLR0913
        self,
        index: IndexDocument,
        fields: DocumentFields,
        *,
        source: Path,
        destination: Path,
        old_display: str,
        new_display: str,
        updated: str,
    ) -> None:
        """Point the index at a document's new location and state."""
        if not index.update_table_row(fields.number, new_display, updated) and (
            fields.number.isdigit() and index.has_table()
        ):
            index.add_table_row(IndexEntry(fields.number, fields.title, new_display, updated))

        old_target = self._relative(source)
        if old_target is not None and not index.remove_from_section(old_target, old_display):
            _ = index.remove_from_section(old_target)
        _ = index.add_to_section(
            fields.number, fields.title, self._index_target(destination), new_display
        )

    def sync_to_header(self, path: Path) -> MoveResult:
        """Move a document into the directory matching its envelope state.

        Args:
            path: The document.

        Returns:
            Where the document went.

        Raises:
            DocumentNotFoundError: If the document or the index does not exist.
            MissingStateFieldError: If the envelope has no ``state``.
            UnsupportedStateError: If the envelope state is not registered.
            AlreadyInCorrectDirectoryError: If no move is needed.
            MoveFailureError: If the move is refused.
        """
        path = self._existing(path)
        headers = self._ensure_envelope(path)
        fields = self._read_fields(path)
        state = self._registry.get(fields.state)

        if path.parent == self._root / state.directory:
            msg = f'Document is already in the correct directory for state "{fields.state}"'
            raise AlreadyInCorrectDirectoryError(msg, path=path, state=fields.state)

        index = self._load_index()
        old_state = self._state_directory_of(path)
        destination = self._mover.move(path, self._root / state.directory / path.name)
        self._logger.info(
            "document moved",
            source=str(path),
            destination=str(destination),
            state=fields.state,
        )

        self._reindex_moved(
            index,
            fields,
            source=path,
            destination=destination,
            old_display=old_state.display if old_state is not None else state.display,
            new_display=state.display,
            updated=fields.updated,
        )
        index.save()

        return MoveResult(
            source=path,
            destination=destination,
            state=fields.state,
            headers=headers,
        )

    # =========================================================================
    # Onboarding
    # =========================================================================

    def add_to_index(self, path: Path) -> IndexAddResult:
        """Register a document in the index table and its state section.

        Args:
            path: The document.

        Returns:
            Which parts of the index were added; both False when the
            document was already indexed.

        Raises:
            DocumentNotFoundError: If the document or the index does not exist.
            DocumentFormatError: If the envelope lacks a state or a number.
            UnsupportedStateError: If the envelope state is not registered.
        """
        path = self._existing(path)
        fields = self._read_fields(path)
        if not fields.number.isdigit():
            msg = f"Document has no number in its metadata: {path}"
            raise DocumentFormatError(msg, path=path)
        display = self._registry.display_form(fields.state)
        target = self._index_target(path)

        index = self._load_index()
        added_row = index.row_for(fields.number) is None
        if added_row:
            index.add_table_row(
                IndexEntry(fields.number, fields.title, display, fields.updated)
            )
        added_bullet = index.section_of(target) is None
        if added_bullet:
            _ = index.add_to_section(fields.number, fields.title, target, display)

        result = IndexAddResult(
            path=target,
            number=fields.number,
            added_row=added_row,
            added_bullet=added_bullet,
        )
        if not result.already_indexed:
            index.save()
            self._logger.info(
                "document indexed",
                path=target,
                added_row=added_row,
                added_bullet=added_bullet,
            )
        return result

    def _relocate(self, source: Path, destination: Path) -> Path:
        """Rename a file that is not yet under version control."""
        if destination.exists():
            msg = f"Cannot move {source.name}: {destination} already exists"
            raise DocumentIOError(msg, path=destination, operation="move")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            return source.rename(destination)
        except OSError as e:
            msg = f"Failed to move file: {e}"
            raise DocumentIOError(msg, path=source, operation="move", cause=e) from e

    def _needs_headers(self, content: str) -> bool:
        if not has_envelope(content) or has_placeholder_number(content):
            return True
        return not parse_envelope(content).get("state")

    def add_document(self, path: Path) -> AddResult:
        """Onboard a new document into the corpus.

        Steps, each skipped when already satisfied:

        1. Assign the next free number and prefix the file name with it.
        2. Move the file into the corpus root.
        3. Move the file into the default state directory.
        4. Add or repair the envelope.
        5. Rewrite a header state that disagrees with the directory.
        6. Stage the file.
        7. Add the file to the index.

        Args:
            path: The new document.

        Returns:
            What each step did.

        Raises:
            DocumentNotFoundError: If the document or the index does not exist.
            DocumentIOError: If a rename target already exists.
            RepositoryCommandError: If staging fails.
        """
        path = self._existing(path)
        index = self._load_index()

        renamed_from: Path | None = None
        if not has_number_prefix(path.name, self._number_width):
            number = next_number(index)
            renamed_from = path
            path = assign_and_rename(path, number, self._number_width)
            self._logger.info(
                "number assigned",
                number=format_number(number, self._number_width),
                path=str(path),
            )

        moved_into_root = False
        if self._relative(path) is None:
            path = self._relocate(path, self._root / path.name)
            moved_into_root = True

        moved_into_state: str | None = None
        if self._state_directory_of(path) is None:
            default = self._registry.default
            path = self._relocate(path, self._root / default.directory / path.name)
            moved_into_state = default.directory

        headers: HeaderReport | None = None
        if self._needs_headers(read_text(path)):
            headers = self.add_headers(path)

        header_state_synced: str | None = None
        directory_state = self._state_directory_of(path)
        content = read_text(path)
        current = parse_envelope(content, path=path).get("state", "")
        if directory_state is not None and not self._registry.same_state(
            current, directory_state.key
        ):
            write_text_atomic(
                path,
                update_envelope(content, directory_state.display, today=self._today(), path=path),
            )
            header_state_synced = directory_state.display
            self._logger.info(
                "header state synced",
                path=str(path),
                previous_state=current,
                state=directory_state.display,
            )

        _ = self._provider.stage([path])
        self._logger.info("document staged", path=str(path))

        index_result = self.add_to_index(path)
        fields = self._read_fields(path)
        return AddResult(
            path=path,
            number=fields.number,
            index=index_result,
            renamed_from=renamed_from,
            moved_into_root=moved_into_root,
            moved_into_state=moved_into_state,
            headers=headers,
            header_state_synced=header_state_synced,
        )

    # =========================================================================
    # Resynchronization
    # =========================================================================

    def _scan(self, path: Path) -> TrackedDocument:
        relative = self._index_target(path)
        try:
            fields = self._read_fields(path)
        except (DocumentFormatError, DocumentIOError) as e:
            return TrackedDocument(path=relative, error=str(e))
        return TrackedDocument(path=relative, fields=fields)

    def _sync_header(self, path: Path, state: State) -> IndexChange | None:
        """Rewrite a header state that disagrees with the file's directory."""
        try:
            content = read_text(path)
            current = parse_envelope(content, path=path).get("state", "")
        except (DocumentFormatError, DocumentIOError):
            return None
        if not current or self._registry.same_state(current, state.key):
            return None
        write_text_atomic(
            path, update_envelope(content, state.display, today=self._today(), path=path)
        )
        return IndexChange(
            ChangeKind.HEADER_SYNCED,
            "envelope",
            path.name,
            before=current,
            after=state.display,
        )

    def resync_index(self) -> ResyncReport:
        """Reconcile the index with the documents on disk.

        The directory a document lives in is authoritative: a header state
        that disagrees with it is rewritten first. Table rows are then added
        or updated for every tracked document, and each state section gets
        bullets for the files in its directory and loses bullets whose file
        is gone. Formatting is normalized and the index is written only when
        something changed.

        Returns:
            The edits made, documents skipped, and whether the index was
            written.

        Raises:
            DocumentNotFoundError: If the index does not exist.
            IndexFormatError: If a row must be added but the index has no table.
        """
        original = read_text(self.index_path)
        index = IndexDocument.parse(original, path=self.index_path)

        changes: list[IndexChange] = []
        tracked: list[TrackedDocument] = []
        on_disk: dict[str, list[TrackedDocument]] = {}
        for state in self._registry:
            directory = self._root / state.directory
            tracked_paths = set(self._provider.tracked_files(directory))
            documents: list[TrackedDocument] = []
            for path in self._documents_in(directory):
                change = self._sync_header(path, state)
                if change is not None:
                    changes.append(change)
                document = self._scan(path)
                documents.append(document)
                if path in tracked_paths:
                    tracked.append(document)
            on_disk[state.display] = documents

        changes.extend(full_resync(index, tracked, on_disk, self._registry))

        rendered = index.render()
        report = ResyncReport(
            changes=tuple(changes),
            formatting_changed=normalize_text(original) != original,
            written=rendered != original,
        )
        if report.written:
            write_text_atomic(self.index_path, rendered)

        self._logger.info(
            "index resynced",
            changes=len(report.content_changes),
            warnings=len(report.warnings),
            formatting_changed=report.formatting_changed,
            written=report.written,
        )
        return report

    # =========================================================================
    # Listing
    # =========================================================================

    def list_by_state(self) -> dict[str, list[str]]:
        """Return document file names grouped by state display name.

        Only states with at least one document are included, ordered
        alphabetically by display name.
        """
        listing: dict[str, list[str]] = {}
        for state in self._registry:
            names = [path.name for path in self._documents_in(self._root / state.directory)]
            if names:
                listing[state.display] = names
        return dict(sorted(listing.items()))

