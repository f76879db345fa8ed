# pyright: reportUnusedCallResult=false
"""Document commands: onboarding, headers, transitions and moves."""

from pathlib import Path
from typing import Annotated

from cyclopts import Parameter
from rich.markup import escape

from zdp.lifecycle import HeaderReport

from ._context import CLIContext
from ._controller import open_controller
from ._listing import list_documents
from ._shared import ExitCode, get_console, get_error_console

__all__ = [
    "USAGE",
    "add_document",
    "add_headers",
    "dispatch",
    "sync_to_header",
    "transition",
]

USAGE = """\
Usage:
  zdp                           - List all documents by state
  zdp states                    - List supported states
  zdp update-index              - Sync index with git-tracked docs
  zdp add <doc.md>              - Add new document with full processing
  zdp <doc.md> <new-state>      - Transition document to new state
  zdp <doc.md>                  - Move document to match header state
  zdp index <doc.md>            - Add document to index
  zdp add-headers <doc.md>      - Add/update YAML frontmatter headers"""


def _print_headers(report: HeaderReport) -> None:
    console = get_console()
    name = escape(report.path.name)
    if not report.added:
        console.print(f"All headers already present in {name}")
        return
    console.print(f"Added/updated headers in {name}:")
    for key in report.added:
        console.print(f"  {escape(key)}: {escape(report.fields.get(key, ''))}")


def add_headers(
    path: Annotated[Path, Parameter(help="Document to add headers to")],
) -> None:
    """Add or update the YAML frontmatter headers of a document.

    Missing fields are inferred from the file name, the first heading and
    git history; fields already present are kept.
    """
    with open_controller("add-headers") as controller:
        report = controller.add_headers(path)
    _print_headers(report)


def add_document(
    path: Annotated[Path, Parameter(help="New document to add")],
) -> None:
    """Add a new document with full processing.

    Assigns a number, moves the file into the draft directory, adds headers,
    stages it with git and adds it to the index.
    """
    console = get_console()
    console.print(f"Adding document: {escape(str(path))}")
    console.print()

    with open_controller("add") as controller:
        result = controller.add_document(path)
        root = controller.root
        default = controller.registry.default

    def shown(target: Path) -> str:
        return escape(target.relative_to(root).as_posix())

    name = escape(result.path.name)
    if result.renamed_from is not None:
        console.print("File does not have a numbered prefix, assigning number...")
        console.print(f"Assigning number: {result.number}")
        console.print(f"Renamed to: {name}")
        console.print()
    if result.moved_into_root:
        console.print("File is outside project directory, moving to project root...")
        console.print(f"Moved to: {shown(root / result.path.name)}")
        console.print()
    if result.moved_into_state is not None:
        console.print(
            f"File is not in a state directory, moving to "
            f"{escape(default.key)} ({escape(result.moved_into_state)})..."
        )
        console.print(f"Moved to: {shown(result.path)}")
        console.print()
    if result.headers is not None:
        console.print("Adding/updating YAML frontmatter headers...")
        _print_headers(result.headers)
        console.print()
    if result.header_state_synced is not None:
        console.print(
            "State header mismatch, updating to match directory: "
            f"{escape(result.header_state_synced)}"
        )
        console.print()

    console.print("Adding file to git...")
    console.print(f"Git staged: {shown(result.path)}")
    console.print()
    console.print("Updating index...")
    if result.index.already_indexed:
        console.print("Document already indexed correctly")
    else:
        console.print(f"Added {name} to index")
    console.print()
    console.print(f"Successfully added document: {name}")


def transition(path: Path, state: str) -> None:
    """Transition a document to a new state."""
    with open_controller("transition") as controller:
        result = controller.transition(path, state)

    console = get_console()
    if result.headers is not None:
        console.print("Document missing headers, adding them automatically...")
    console.print(
        f"Moved {escape(result.destination.name)} from "
        f"{escape(result.previous_state)} to {escape(result.new_state)}"
    )
    console.print("Updated index")


def sync_to_header(path: Path) -> None:
    """Move a document to the directory matching its header state."""
    with open_controller("sync") as controller:
        result = controller.sync_to_header(path)

    console = get_console()
    if result.headers is not None:
        console.print("Document missing headers, adding them automatically...")
    console.print(
        f"Moved {escape(result.destination.name)} to "
        f"{escape(result.destination.parent.name)} (state: {escape(result.state)})"
    )


def dispatch(
    *args: Annotated[str, Parameter(show=False, allow_leading_hyphen=False)],
) -> None:
    """Manage numbered documents and their lifecycle states.

    With no arguments, lists all documents by state. With a document path,
    moves the document to the directory matching its header state. With a
    document path and a state, transitions the document to that state.
    """
    ctx = CLIContext.get_current()
    if len(args) == 0:
        list_documents()
        return
    if len(args) == 1:
        sync_to_header(Path(args[0]))
        return
    if len(args) == 2:  # noqa: PLR2004
        transition(Path(args[0]), args[1])
        return

    if ctx.logger is not None:
        ctx.logger.warning("unrecognized invocation", args=list(args))
    get_error_console().print(USAGE, markup=False)
    raise SystemExit(ExitCode.VALIDATION_ERROR)
