"""Platform-specific paths used by zdp."""

from pathlib import Path

import platformdirs

APP_NAME = "zdp"


def get_log_dir() -> Path:
    """Get the user log directory for zdp."""
    return platformdirs.user_log_path(APP_NAME)


def get_cli_log_file() -> Path:
    """Get the path to the CLI log file.

    Returns:
        Path to ``cli.log`` inside the user log directory.
    """
    return get_log_dir() / "cli.log"
