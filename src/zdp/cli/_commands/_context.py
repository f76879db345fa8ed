# pyright: reportUnusedCallResult=false
# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""Per-invocation state shared between the meta command and subcommands."""

import contextvars
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from zdp.config import Config, find_project_root

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


class OutputFormat(StrEnum):
    TEXT = "text"
    JSON = "json"
    YAML = "yaml"
    TABLE = "table"


_active: contextvars.ContextVar["CLIContext | None"] = contextvars.ContextVar(
    "zdp_cli_context", default=None
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global options and loaded configuration for one ``zdp`` run.

    ``config_error`` holds the reason the defaults were used when the
    configuration could not be loaded. ``logger`` writes to the log file
    only and is None outside the CLI.
    """

    config: Config = field(repr=False)
    verbose: bool = False
    quiet: bool = False
    no_color: bool = False
    project_root: Path | None = None
    config_error: str | None = None
    logger: "FilteringBoundLogger | None" = field(default=None, repr=False)

    def resolve_root(self) -> Path:
        """Corpus root: ``--project-root``, else the nearest marked ancestor, else cwd."""
        if self.project_root is not None:
            return self.project_root.resolve()
        return (
            find_project_root(index_file=self.config.corpus.index_file)
            or Path.cwd().resolve()
        )

    @classmethod
    def get_current(cls) -> "CLIContext":
        """The active context, or a fresh one on default configuration."""
        return _active.get() or cls(config=Config.from_dict({}))

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:
        _active.set(ctx)

    @classmethod
    def reset(cls) -> None:
        _active.set(None)
