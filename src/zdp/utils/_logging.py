"""structlog loggers for zdp.

Loggers are built with ``structlog.wrap_logger`` and never touch the global
structlog configuration, so importing zdp as a library has no logging side
effects. The CLI logger writes only to a file; the console is reserved for
command output.
"""

import logging
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, NoReturn, TextIO, cast

import structlog

from ._paths import get_cli_log_file

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

LogFormatType = Literal["json", "text"]

DEBUG_ENV_VAR = "ZDP_DEBUG"


def _threshold(level: str) -> int:
    # ZDP_DEBUG beats whatever the configuration asks for.
    if getenv(DEBUG_ENV_VAR):
        return logging.DEBUG
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


def _renderers(log_format: LogFormatType) -> list["Processor"]:
    if log_format == "text":
        return [structlog.dev.ConsoleRenderer(colors=False)]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]


def open_log_file(log_file: str = "") -> TextIO:
    """Open ``log_file``, or the per-user CLI log when empty, for appending."""
    path = Path(log_file) if log_file else get_cli_log_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path.open("a", encoding="utf-8")


def create_cli_logger(  # noqa: PLR0913
    *,
    level: str = "info",
    log_format: LogFormatType = "json",
    log_file: str = "",
    command: str = "",
    stream: TextIO | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Return a logger appending to ``log_file`` or the per-user CLI log.

    Entries carry an ISO timestamp and their level. JSON output is one
    object per line; text output is structlog's plain console rendering.
    A non-empty ``command`` is bound to every entry.

    When ``stream`` is given it is written to instead and ``log_file`` is
    ignored; the caller owns and closes it. Otherwise the file stays open
    for the life of the process.
    """
    if stream is None:
        stream = open_log_file(log_file)
    logger_factory = structlog.WriteLoggerFactory(file=stream)

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        *_renderers(log_format),
    ]
    logger = cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            logger_factory(),
            processors=processors,
            wrapper_class=structlog.make_filtering_bound_logger(_threshold(level)),
            context_class=dict,
        ),
    )
    return logger.bind(command=command) if command else logger


def _drop(_logger: object, _method: str, _event: object) -> NoReturn:
    raise structlog.DropEvent


def create_null_logger() -> "FilteringBoundLogger":  # noqa: UP037
    """Logger for library callers that did not pass one. Drops everything."""
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.ReturnLogger(),
            processors=[_drop],
            wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
            context_class=dict,
        ),
    )
