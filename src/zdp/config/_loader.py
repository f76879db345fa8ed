# pyright: reportAny=false, reportExplicitAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Raw configuration sources: TOML files, environment variables, merging.

Everything here works on plain dictionaries. Typed access and validation
live in ``_models`` and ``_validation``.
"""

import copy
import json
import os
import tomllib
from pathlib import Path
from typing import Any

from zdp.exceptions import ConfigLoadError

# Separates nesting levels in variable names: ZDP_CORPUS__INDEX_FILE.
_NESTING = "__"


def read_toml_file(path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ConfigLoadError: If the content is not valid TOML.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file {path}: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` layered on top.

    Tables merge key by key. Anything else in ``override``, lists included,
    replaces the value in ``base`` outright, so a configured ``corpus.states``
    is the whole state table. The result shares no structure with the inputs.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def set_nested_key(d: dict[str, Any], key_path: str, value: Any) -> None:
    """Assign ``value`` at a dotted path, creating tables along the way.

    A scalar sitting on the path is replaced by a table.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "logging.level", "debug")
        >>> d
        {'logging': {'level': 'debug'}}
    """
    *parents, leaf = key_path.split(".")
    table = d
    for part in parents:
        child = table.get(part)
        if not isinstance(child, dict):
            child = table[part] = {}
        table = child
    table[leaf] = value


def _coerce(raw: str) -> Any:
    """Turn an environment string into a bool, int, JSON container or str."""
    if raw.lower() in {"true", "false"}:
        return raw.lower() == "true"
    try:
        return int(raw)
    except ValueError:
        pass
    if raw[:1] + raw[-1:] in {"[]", "{}"}:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    return raw


def parse_env_vars(prefix: str = "ZDP_") -> dict[str, Any]:
    """Collect ``<prefix>SECTION__KEY`` variables into a nested dictionary.

    ``ZDP_CORPUS__NUMBER_WIDTH=5`` becomes ``{"corpus": {"number_width": 5}}``.
    Variables without the ``__`` separator are process flags such as
    ``ZDP_DEBUG`` and are skipped.
    """
    values: dict[str, Any] = {}
    for name, raw in os.environ.items():
        if not name.startswith(prefix):
            continue
        key = name.removeprefix(prefix)
        if _NESTING not in key:
            continue
        set_nested_key(values, key.replace(_NESTING, ".").lower(), _coerce(raw))
    return values
