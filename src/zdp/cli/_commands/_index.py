# pyright: reportUnusedCallResult=false
"""Aggregate index commands."""

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.markup import escape

from zdp.lifecycle import ChangeKind, IndexChange, ResyncReport

from ._context import CLIContext
from ._controller import open_controller
from ._shared import get_console

__all__ = ["add_to_index", "describe_change", "update_index"]


def describe_change(change: IndexChange) -> str:
    """Render one resync edit as a report line.

    Args:
        change: The edit to describe.

    Returns:
        An indented line with a status mark, e.g. ``  ✓ Added: 0001-a.md``.
    """
    match change.kind:
        case ChangeKind.ADDED:
            return f"  ✓ Added: {change.filename}"
        case ChangeKind.UPDATED_DATE:
            return f"  ✓ Updated date: {change.filename} ({change.before} → {change.after})"
        case ChangeKind.UPDATED_STATE:
            return f"  ✓ Updated state: {change.filename} ({change.before} → {change.after})"
        case ChangeKind.HEADER_SYNCED:
            return f"  ✓ Synced state: {change.filename} ({change.before} → {change.after})"
        case ChangeKind.REMOVED:
            return f"  ✗ Removed: {change.filename} (file not found)"
        case ChangeKind.SKIPPED:
            return f"  ⚠ Skipped {change.filename}: {change.after}"


def _report_scope(title: str, changes: list[IndexChange]) -> None:
    if not changes:
        return
    console = get_console()
    console.print(escape(title))
    for change in changes:
        console.print(escape(describe_change(change)))
    console.print()


def _print_report(report: ResyncReport, sections: list[str]) -> None:
    ctx = CLIContext.get_current()
    console = get_console()

    _report_scope("Header Updates:", report.in_scope("envelope"))
    _report_scope("Table Updates:", report.in_scope("table"))
    for display in sections:
        _report_scope(f"Section Updates ({display}):", report.in_scope(display))

    if report.up_to_date:
        console.print("Index is already up to date!")

    if report.formatting_changed:
        console.print("Formatting Cleanup:")
        console.print("  ✓ Fixed section heading spacing and bullet list formatting")
        console.print()

    content_changes = report.content_changes
    if content_changes:
        console.print(f"Summary: {len(content_changes)} content changes made to index")
    elif report.formatting_changed:
        console.print("Summary: Formatting cleanup applied to index")

    if ctx.verbose and report.warnings:
        console.print(f"{len(report.warnings)} document(s) skipped")


def update_index() -> None:
    """Synchronize the index with git-tracked documents.

    Adds missing table rows and section bullets, refreshes stale states and
    dates, removes bullets whose file is gone, and normalizes formatting.
    This is also the recovery path after an interrupted operation.
    """
    ctx = CLIContext.get_current()
    if not ctx.quiet:
        console = get_console()
        console.print("Synchronizing index with git-tracked documents...")
        console.print()

    with open_controller("update-index") as controller:
        report = controller.resync_index()
        sections = [state.display for state in controller.registry]

    _print_report(report, sections)


def add_to_index(
    path: Annotated[Path, Parameter(help="Document to add to the index")],
) -> None:
    """Add a document to the index table and its state section."""
    with open_controller("index") as controller:
        result = controller.add_to_index(path)

    console = get_console()
    if result.already_indexed:
        console.print("Document already indexed correctly")
        return
    console.print(f"Added {escape(Path(result.path).name)} to index")
