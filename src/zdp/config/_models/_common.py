# ruff: noqa: TC003
"""Enums and the source record shared by the configuration models."""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any


class LogLevel(StrEnum):
    """Minimum severity written to the log file, most verbose first."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    JSON = "json"
    TEXT = "text"


class ConfigSourceName(StrEnum):
    """Configuration layers. Earlier members win when layers are merged."""

    CLI = "cli"
    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """One configuration layer as discovered on this machine.

    ``path`` is None for layers that are not files. For those, ``exists``
    reports whether the layer contributes anything at all.
    """

    name: ConfigSourceName
    path: Path | None
    exists: bool
    values: dict[str, Any]  # pyright: ignore[reportExplicitAny]
