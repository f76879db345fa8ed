# pyright: reportAny=false
"""Metadata envelope codec.

A document starts with an envelope: a ``---`` marker line, ``key: value``
lines, and a closing ``---`` marker line. This module parses envelopes,
rewrites the ``state``/``updated`` lines in place, and synthesizes complete
envelopes for documents that lack one.
"""

import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path

import yaml

from zdp.exceptions import MalformedEnvelopeError, MissingStateFieldError

from ._models import DocumentFields, HistoryFacts

__all__ = [
    "ENVELOPE_KEYS",
    "SynthesizedEnvelope",
    "envelope_span",
    "has_envelope",
    "has_placeholder_number",
    "number_from_filename",
    "parse_envelope",
    "read_document_fields",
    "synthesize_envelope",
    "title_from_content",
    "update_envelope",
]

ENVELOPE_KEYS: tuple[str, ...] = (
    "number",
    "title",
    "author",
    "created",
    "updated",
    "state",
    "supersedes",
    "superseded-by",
)

_ENVELOPE = re.compile(r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_ENVELOPE_WITH_GAP = re.compile(
    r"\A---[ \t]*\r?\n(?:.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)(?:[ \t]*\r?\n)?", re.DOTALL
)
_LEADING_NUMBER = re.compile(r"^(\d+)-")
_SLUG = re.compile(r"^\d+-(.+)\.[^.]+$")
_PLACEHOLDER_NUMBER = re.compile(r"^N+$")
_QUOTES = "\"'"


@dataclass(frozen=True, slots=True)
class SynthesizedEnvelope:
    """Result of envelope synthesis.

    Attributes:
        content: The full document content with the new envelope.
        fields: Every envelope field and the value written for it.
        added: Names of fields that were missing and have been inferred.
    """

    content: str
    fields: dict[str, str]
    added: tuple[str, ...]


def envelope_span(content: str) -> tuple[int, int] | None:
    """Return the ``(start, end)`` offsets of the envelope body lines.

    The span covers the ``key: value`` lines only, excluding both markers.
    Returns ``None`` when the content does not start with an envelope.
    """
    match = _ENVELOPE.match(content)
    if match is None:
        return None
    if match.group(1) is None:
        start = content.index("\n") + 1
        return start, start
    return match.span(1)


def has_envelope(content: str) -> bool:
    """Check whether content starts with a metadata envelope."""
    return _ENVELOPE.match(content) is not None


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:  # noqa: PLR2004
        try:
            loaded = yaml.load(value, Loader=yaml.BaseLoader)  # noqa: S506
        except yaml.YAMLError:
            return value[1:-1]
        if isinstance(loaded, str):
            return loaded
        return value[1:-1]
    return value


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _split_line(line: str) -> tuple[str, str] | None:
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or ":" not in stripped:
        return None
    key, _, value = stripped.partition(":")
    return key.strip(), value.strip()


def parse_envelope(content: str, *, path: Path | None = None) -> dict[str, str]:
    """Extract key/value pairs from a document's envelope.

    Values are kept as strings; quoted values are unquoted. Lines without a
    colon (comments, continuation lines) are ignored.

    Args:
        content: Full document content.
        path: Document path, used for error context only.

    Returns:
        Mapping of envelope keys to values, in file order.

    Raises:
        MalformedEnvelopeError: If the content has no envelope.
    """
    match = _ENVELOPE.match(content)
    if match is None:
        where = f" in {path}" if path is not None else ""
        msg = f"Could not parse metadata envelope{where}"
        raise MalformedEnvelopeError(msg, path=path)

    fields: dict[str, str] = {}
    for line in (match.group(1) or "").splitlines():
        pair = _split_line(line)
        if pair is None:
            continue
        key, value = pair
        if key:
            fields[key] = _unquote(value)
    return fields


def update_envelope(
    content: str,
    new_state: str,
    *,
    today: date | None = None,
    path: Path | None = None,
) -> str:
    """Rewrite the ``state`` and ``updated`` lines of the envelope.

    Only those two lines inside the envelope change; all other bytes,
    including the body, are preserved.

    Args:
        content: Full document content.
        new_state: State value to write (already in display form).
        today: Date written to ``updated``. Defaults to the current date.
        path: Document path, used for error context only.

    Returns:
        The rewritten content.

    Raises:
        MalformedEnvelopeError: If the content has no envelope.
        MissingStateFieldError: If the envelope has no ``state`` line.
    """
    span = envelope_span(content)
    if span is None:
        where = f" in {path}" if path is not None else ""
        msg = f"Could not parse metadata envelope{where}"
        raise MalformedEnvelopeError(msg, path=path)

    start, end = span
    stamp = (today or date.today()).isoformat()
    found_state = False
    lines: list[str] = []
    for line in content[start:end].splitlines(keepends=True):
        pair = _split_line(line)
        body = line.rstrip("\r\n")
        ending = line[len(body) :]
        if pair is not None and pair[0] == "state" and not line[:1].isspace():
            found_state = True
            line = f"state: {new_state}{ending}"  # noqa: PLW2901
        elif pair is not None and pair[0] == "updated" and not line[:1].isspace():
            line = f"updated: {stamp}{ending}"  # noqa: PLW2901
        lines.append(line)

    if not found_state:
        where = f" in {path}" if path is not None else ""
        msg = f"No 'state' field found in document metadata{where}"
        raise MissingStateFieldError(msg, path=path)

    return content[:start] + "".join(lines) + content[end:]


def number_from_filename(filename: str, width: int = 4) -> str | None:
    """Return the zero-padded leading number of a filename, if any."""
    match = _LEADING_NUMBER.match(filename)
    if match is None:
        return None
    return match.group(1).zfill(width)


def title_from_content(content: str, filename: str) -> str:
    """Infer a document title.

    Uses the first ``# `` heading, else the filename slug in title case,
    else ``Untitled Document``.
    """
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("# "):
            return stripped[2:].strip()

    match = _SLUG.match(filename)
    if match is not None:
        return " ".join(word.capitalize() for word in match.group(1).split("-"))

    return "Untitled Document"


def has_placeholder_number(content: str) -> bool:
    """Check whether the envelope still carries a template number such as ``NNNN``."""
    if not has_envelope(content):
        return False
    number = parse_envelope(content).get("number", "")
    return _PLACEHOLDER_NUMBER.match(number.strip()) is not None


def _is_missing(key: str, value: str | None) -> bool:
    if value is None or not value.strip():
        return True
    return key == "number" and _PLACEHOLDER_NUMBER.match(value.strip()) is not None


def synthesize_envelope(
    filename: str,
    content: str,
    facts: HistoryFacts,
    *,
    default_state: str = "Draft",
    number_width: int = 4,
) -> SynthesizedEnvelope:
    """Build a complete envelope, merging any fields already present.

    Existing non-empty values win over inferred ones. Keys outside the
    standard set are carried over after the standard keys.

    Args:
        filename: Document file name, used for number and title inference.
        content: Full document content, with or without an envelope.
        facts: Authorship and dates inferred from version-control history.
        default_state: State written when the envelope has none.
        number_width: Zero-padding width for inferred numbers.

    Returns:
        The new content together with the fields written and those added.
    """
    existing: dict[str, str] = {}
    body = content
    if has_envelope(content):
        existing = parse_envelope(content)
        body = _ENVELOPE_WITH_GAP.sub("", content, count=1)

    inferred: dict[str, str] = {
        "number": number_from_filename(filename, number_width) or "0" * number_width,
        "title": title_from_content(body, filename),
        "author": facts.author,
        "created": facts.created.isoformat(),
        "updated": facts.updated.isoformat(),
        "state": default_state,
        "supersedes": "None",
        "superseded-by": "None",
    }

    fields: dict[str, str] = {}
    added: list[str] = []
    for key in ENVELOPE_KEYS:
        value = existing.get(key)
        if _is_missing(key, value):
            fields[key] = inferred[key]
            added.append(key)
        else:
            fields[key] = value or ""

    lines = ["---"]
    for key in ENVELOPE_KEYS:
        value = _quote(fields[key]) if key == "title" else fields[key]
        lines.append(f"{key}: {value}")
    for key, value in existing.items():
        if key not in fields:
            fields[key] = value
            needs_quotes = ": " in value or " #" in value or value[:1] in _QUOTES
            lines.append(f"{key}: {_quote(value) if needs_quotes else value}")
    lines.extend(["---", "", ""])

    return SynthesizedEnvelope(
        content="\n".join(lines) + body,
        fields=fields,
        added=tuple(added),
    )


def read_document_fields(content: str, *, path: Path | None = None) -> DocumentFields:
    """Parse the index-relevant fields of a document.

    Raises:
        MalformedEnvelopeError: If the content has no envelope.
        MissingStateFieldError: If the envelope has no ``state`` field.
    """
    fields = parse_envelope(content, path=path)
    state = fields.get("state", "")
    if not state:
        where = f" in {path}" if path is not None else ""
        msg = f"No 'state' field found in document metadata{where}"
        raise MissingStateFieldError(msg, path=path)
    return DocumentFields(
        number=fields.get("number", ""),
        title=fields.get("title", ""),
        state=state,
        updated=fields.get("updated", ""),
    )
