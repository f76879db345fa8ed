# pyright: reportUnusedCallResult=false
# ruff: noqa: A002
"""Read-only listing commands."""

from typing import Annotated

from cyclopts import Parameter
from rich.markup import escape

from zdp.lifecycle import StateRegistry

from ._context import CLIContext, OutputFormat
from ._controller import open_controller
from ._shared import (
    format_json,
    format_table,
    format_yaml,
    get_console,
)

__all__ = ["list_documents", "list_states"]


def list_documents(
    *,
    format: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """List all documents grouped by state."""
    with open_controller("list") as controller:
        listing = controller.list_by_state()

    console = get_console()

    if format == OutputFormat.JSON:
        console.print(format_json(listing), markup=False)
        return
    if format == OutputFormat.YAML:
        console.print(format_yaml(listing), markup=False, end="")
        return
    if format == OutputFormat.TABLE:
        rows = [[state, name] for state, names in listing.items() for name in names]
        console.print(format_table(["State", "Document"], rows))
        return

    for state, names in listing.items():
        console.print(escape(state))
        for name in names:
            console.print(f" - {escape(name)}")
        console.print()


def list_states(
    *,
    format: Annotated[
        OutputFormat, Parameter(name=["--format", "-f"], help="Output format")
    ] = OutputFormat.TEXT,
) -> None:
    """List supported states."""
    ctx = CLIContext.get_current()
    registry = StateRegistry.from_config(ctx.config.corpus)

    console = get_console()
    states = sorted(registry, key=lambda state: state.display)

    if format in {OutputFormat.JSON, OutputFormat.YAML}:
        data = {
            "states": [
                {"name": state.display, "directory": state.directory}
                for state in states
            ],
            "default": registry.default.display,
        }
        text = format_json(data) if format == OutputFormat.JSON else format_yaml(data)
        console.print(text, markup=False, end="" if format == OutputFormat.YAML else "\n")
        return
    if format == OutputFormat.TABLE:
        rows = [[state.display, state.directory] for state in states]
        console.print(format_table(["State", "Directory"], rows))
        return

    for state in states:
        console.print(escape(state.display))
