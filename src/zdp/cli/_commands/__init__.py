"""zdp CLI commands."""
# pyright: reportUnusedCallResult=false

from typing import TYPE_CHECKING

from ._context import CLIContext, OutputFormat
from ._documents import (
    USAGE,
    add_document,
    add_headers,
    dispatch,
    sync_to_header,
    transition,
)
from ._index import add_to_index, describe_change, update_index
from ._listing import list_documents, list_states
from ._shared import (
    ExitCode,
    FormattableData,
    exit_code_for_exception,
    exit_with_error,
    format_json,
    format_table,
    format_yaml,
    get_console,
    get_error_console,
)

if TYPE_CHECKING:
    from cyclopts import App

__all__ = [
    "USAGE",
    "CLIContext",
    "ExitCode",
    "FormattableData",
    "OutputFormat",
    "add_document",
    "add_headers",
    "add_to_index",
    "describe_change",
    "dispatch",
    "exit_code_for_exception",
    "exit_with_error",
    "format_json",
    "format_table",
    "format_yaml",
    "get_console",
    "get_error_console",
    "list_documents",
    "list_states",
    "register_commands",
    "sync_to_header",
    "transition",
    "update_index",
]


def register_commands(app: "App") -> None:
    app.default(dispatch)
    app.command(list_documents, name="list")
    app.command(list_states, name="states")
    app.command(update_index, name="update-index")
    app.command(add_to_index, name="index")
    app.command(add_headers, name="add-headers")
    app.command(add_document, name="add")
