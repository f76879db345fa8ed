"""Whitespace normalization for the aggregate index.

Structural edits to the index (inserting or removing bullets and sections)
leave irregular blank lines behind. ``normalize_lines`` restores the
conventions in one pass: exactly one blank line around section headers, and
no blank lines between consecutive bullet items. It is idempotent.
"""

from collections.abc import Sequence

__all__ = ["is_bullet", "is_header", "normalize_lines", "normalize_text"]


def is_header(line: str) -> bool:
    """Check whether a line is a ``##`` or ``###`` section header."""
    return line.startswith(("## ", "### "))


def is_bullet(line: str) -> bool:
    """Check whether a line is a document link bullet."""
    return line.startswith("- [")


def _next_non_blank(lines: Sequence[str], start: int) -> int:
    index = start
    while index < len(lines) and lines[index] == "":
        index += 1
    return index


def normalize_lines(lines: Sequence[str]) -> list[str]:
    """Normalize blank lines around headers and between bullets.

    Args:
        lines: Index content split on newlines.

    Returns:
        The normalized lines.
    """
    result: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]

        if is_header(line):
            while result and result[-1] == "":
                _ = result.pop()
            if result:
                result.append("")
            result.append(line)

            j = _next_non_blank(lines, i + 1)
            if j < len(lines) and not is_header(lines[j]):
                result.append("")
            i = j
            continue

        result.append(line)
        if is_bullet(line):
            j = _next_non_blank(lines, i + 1)
            if j < len(lines) and is_bullet(lines[j]):
                i = j
                continue
        i += 1

    # A trailing header swallows the final empty line; keep the newline.
    if lines and lines[-1] == "" and result and result[-1] != "":
        result.append("")
    return result


def normalize_text(text: str) -> str:
    """Normalize a whole index document."""
    return "\n".join(normalize_lines(text.split("\n")))
