"""The ``[logging]`` table."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from zdp.config._models._common import LogFormat, LogLevel


class LoggingConfig(BaseModel):
    """Where and how the CLI log is written.

    An empty ``file`` selects the per-user log file under the platform log
    directory.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = Field(default="", description="Log file path; empty for the default.")
