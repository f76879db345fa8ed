"""Document lifecycle management.

This package moves documents between lifecycle state directories and keeps
the aggregate index consistent with the corpus.

Classes:
    LifecycleController: Orchestrates transitions, onboarding and resyncs.
    StateRegistry: Immutable state ↔ directory ↔ display table.
    IndexDocument: Structured, editable view of the aggregate index.
    DocumentMover: History-preserving relocation.
    HistoryInference: Authorship and dates from version-control history.

Example:
    >>> from zdp.lifecycle import LifecycleController, StateRegistry
    >>> from zdp.repository import GitRepository
    >>> controller = LifecycleController(root, StateRegistry(), GitRepository(root))
    >>> report = controller.resync_index()
    >>> report.up_to_date
    True
"""

from ._controller import LifecycleController
from ._envelope import (
    ENVELOPE_KEYS,
    SynthesizedEnvelope,
    envelope_span,
    has_envelope,
    has_placeholder_number,
    number_from_filename,
    parse_envelope,
    read_document_fields,
    synthesize_envelope,
    title_from_content,
    update_envelope,
)
from ._formatting import is_bullet, is_header, normalize_lines, normalize_text
from ._history import UNKNOWN_AUTHOR, HistoryInference
from ._index import (
    DOCUMENTS_BY_STATE,
    Bullet,
    Heading,
    IndexDocument,
    IndexNode,
    TableHeader,
    TableRow,
    TableSeparator,
    Text,
    TrackedDocument,
    full_resync,
)
from ._io import read_text, write_text_atomic
from ._models import (
    AddResult,
    ChangeKind,
    DocumentFields,
    HeaderReport,
    HistoryFacts,
    IndexAddResult,
    IndexChange,
    IndexEntry,
    MoveResult,
    ResyncReport,
    TransitionResult,
)
from ._mover import DocumentMover
from ._numbering import assign_and_rename, format_number, has_number_prefix, next_number
from ._states import DEFAULT_STATES, State, StateRegistry, normalize_state

__all__ = [
    "DEFAULT_STATES",
    "DOCUMENTS_BY_STATE",
    "ENVELOPE_KEYS",
    "UNKNOWN_AUTHOR",
    "AddResult",
    "Bullet",
    "ChangeKind",
    "DocumentFields",
    "DocumentMover",
    "HeaderReport",
    "Heading",
    "HistoryFacts",
    "HistoryInference",
    "IndexAddResult",
    "IndexChange",
    "IndexDocument",
    "IndexEntry",
    "IndexNode",
    "LifecycleController",
    "MoveResult",
    "ResyncReport",
    "State",
    "StateRegistry",
    "SynthesizedEnvelope",
    "TableHeader",
    "TableRow",
    "TableSeparator",
    "Text",
    "TrackedDocument",
    "TransitionResult",
    "assign_and_rename",
    "envelope_span",
    "format_number",
    "full_resync",
    "has_envelope",
    "has_number_prefix",
    "has_placeholder_number",
    "is_bullet",
    "is_header",
    "next_number",
    "normalize_lines",
    "normalize_state",
    "normalize_text",
    "number_from_filename",
    "parse_envelope",
    "read_document_fields",
    "read_text",
    "synthesize_envelope",
    "title_from_content",
    "update_envelope",
    "write_text_atomic",
]
