"""Layered zdp configuration.

Built-in defaults, the user file, the corpus's ``zdp.toml``, ``ZDP_*``
environment variables and CLI overrides are merged, strongest last, into one
validated :class:`Config`.
"""

from zdp.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import (
    PROJECT_CONFIG_FILE,
    discover_sources,
    find_project_root,
    get_user_config_path,
)
from ._load import safe_load_config
from ._loader import deep_merge, parse_env_vars, read_toml_file, set_nested_key
from ._models import (
    Config,
    ConfigSource,
    ConfigSourceName,
    CorpusConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    StateConfig,
)
from ._validation import (
    ValidationIssue,
    raise_if_validation_errors,
    validate_config,
    validate_source,
)

__all__ = [
    "DEFAULT_CONFIG",
    "PROJECT_CONFIG_FILE",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "CorpusConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "StateConfig",
    "ValidationIssue",
    "deep_merge",
    "discover_sources",
    "find_project_root",
    "get_user_config_path",
    "parse_env_vars",
    "raise_if_validation_errors",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
    "validate_config",
    "validate_source",
]
