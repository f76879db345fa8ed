"""Typed configuration sections and the merged ``Config``."""

from zdp.config._models._common import (
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from zdp.config._models._config import Config
from zdp.config._models._corpus import CorpusConfig, StateConfig
from zdp.config._models._logging import LoggingConfig

__all__ = [
    "Config",
    "ConfigSource",
    "ConfigSourceName",
    "CorpusConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "StateConfig",
]
