"""Shared utilities for zdp."""

from ._logging import LogFormatType, create_cli_logger, create_null_logger, open_log_file
from ._paths import APP_NAME, get_cli_log_file, get_log_dir

__all__ = [
    "APP_NAME",
    "LogFormatType",
    "create_cli_logger",
    "create_null_logger",
    "get_cli_log_file",
    "get_log_dir",
    "open_log_file",
]
