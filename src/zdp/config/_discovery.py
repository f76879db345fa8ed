"""Where configuration comes from: the corpus root, the user file, defaults."""

from pathlib import Path
from typing import Any

import platformdirs

from ._defaults import DEFAULT_CONFIG
from ._models._common import ConfigSource, ConfigSourceName

PROJECT_CONFIG_FILE = "zdp.toml"


def find_project_root(
    start: Path | None = None,
    *,
    index_file: str = "00-index.md",
) -> Path | None:
    """Walk up from ``start`` (default: cwd) to the nearest corpus root.

    A corpus root is a directory holding either the aggregate index or a
    ``zdp.toml``. Returns None when the filesystem root is passed.
    """
    here = (start or Path.cwd()).resolve()
    for candidate in (here, *here.parents):
        markers = (candidate / index_file, candidate / PROJECT_CONFIG_FILE)
        if any(marker.is_file() for marker in markers):
            return candidate
    return None


def get_user_config_path() -> Path:
    """Per-user ``config.toml`` in the platform config directory.

    The file need not exist.
    """
    return platformdirs.user_config_path("zdp") / "config.toml"


def _is_readable_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _file_source(name: ConfigSourceName, path: Path) -> ConfigSource:
    return ConfigSource(name=name, path=path, exists=_is_readable_file(path), values={})


def discover_sources(
    project_root: Path | None = None,
    *,
    include_env: bool = True,
    include_cli: bool = False,
    cli_overrides: dict[str, Any] | None = None,  # pyright: ignore[reportExplicitAny]
) -> list[ConfigSource]:
    """List every configuration layer, strongest first.

    File layers are reported even when their file is missing, with
    ``exists=False``. The project layer is left out entirely when no corpus
    root can be found. Environment values are read later, at load time.
    """
    root = project_root or find_project_root()
    sources: list[ConfigSource] = []

    if include_cli:
        overrides = cli_overrides or {}
        sources.append(
            ConfigSource(ConfigSourceName.CLI, None, exists=bool(overrides), values=overrides)
        )
    if include_env:
        sources.append(ConfigSource(ConfigSourceName.ENV, None, exists=True, values={}))
    if root:
        sources.append(_file_source(ConfigSourceName.PROJECT, root / PROJECT_CONFIG_FILE))
    sources.append(_file_source(ConfigSourceName.USER, get_user_config_path()))
    sources.append(
        ConfigSource(ConfigSourceName.DEFAULT, None, exists=True, values=DEFAULT_CONFIG)
    )
    return sources
