# pyright: reportExplicitAny=false
"""Exit codes, output formatters and consoles used by every zdp command."""

from enum import IntEnum
from typing import TYPE_CHECKING, Any, Never

from zdp.exceptions import (
    ConfigError,
    DocumentFormatError,
    DocumentIOError,
    DocumentNotFoundError,
    RepositoryError,
    UserInputError,
    ZdpError,
)

if TYPE_CHECKING:
    from rich.console import Console
    from rich.table import Table

FormattableData = dict[str, Any]

__all__ = [
    "ExitCode",
    "FormattableData",
    "exit_code_for_exception",
    "exit_with_error",
    "format_json",
    "format_table",
    "format_yaml",
    "get_console",
    "get_error_console",
]


class ExitCode(IntEnum):
    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    IO_ERROR = 4
    INTERNAL_ERROR = 5


# Checked in order; the first matching class decides.
_EXIT_CODES: tuple[tuple[type[ZdpError] | tuple[type[ZdpError], ...], ExitCode], ...] = (
    (ConfigError, ExitCode.LOAD_ERROR),
    (DocumentNotFoundError, ExitCode.NOT_FOUND),
    ((UserInputError, DocumentFormatError), ExitCode.VALIDATION_ERROR),
    ((DocumentIOError, RepositoryError), ExitCode.IO_ERROR),
)


def exit_code_for_exception(error: ZdpError) -> ExitCode:
    """Exit status for a library error. Anything unrecognized is internal."""
    for kinds, code in _EXIT_CODES:
        if isinstance(error, kinds):
            return code
    return ExitCode.INTERNAL_ERROR


def format_json(data: FormattableData, *, indent: bool = True) -> str:
    import orjson

    return orjson.dumps(data, option=orjson.OPT_INDENT_2 if indent else 0).decode()


def format_yaml(data: FormattableData) -> str:
    """Block-style YAML with non-ASCII titles left readable."""
    import yaml

    return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True)


def format_table(headers: list[str], rows: list[list[str]]) -> "Table":
    from rich.table import Table

    table = Table(*headers)
    for cells in rows:
        table.add_row(*cells)
    return table


def get_console() -> "Console":
    """stdout console for command output.

    Soft wrapping keeps long paths on one line. ``--no-color`` is honoured.
    """
    from rich.console import Console

    from ._context import CLIContext

    return Console(
        highlight=False, soft_wrap=True, no_color=CLIContext.get_current().no_color
    )


def get_error_console() -> "Console":
    from rich.console import Console

    return Console(stderr=True, highlight=False, soft_wrap=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.INTERNAL_ERROR,
    *,
    console: "Console | None" = None,
) -> Never:
    """Report ``message`` as ``Error: ...`` on stderr and exit with ``code``.

    The message is escaped, so brackets in paths print literally.

    Raises:
        SystemExit: Always.
    """
    from rich.markup import escape

    (console or get_error_console()).print(f"[red]Error:[/red] {escape(message)}")
    raise SystemExit(code)
