# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""The merged, typed configuration object handed to the rest of zdp."""

import copy
from pathlib import Path
from typing import Any, ClassVar, Self, TypeVar, overload

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from zdp.config._defaults import DEFAULT_CONFIG
from zdp.config._loader import deep_merge, parse_env_vars, read_toml_file
from zdp.config._models._common import (
    ConfigSource,
    ConfigSourceName,
    LogFormat,
    LogLevel,
)
from zdp.config._models._corpus import CorpusConfig
from zdp.config._models._logging import LoggingConfig

T = TypeVar("T")

_LEVELS = frozenset(level.value for level in LogLevel)
_FORMATS = frozenset(fmt.value for fmt in LogFormat)


def _lenient_logging(section: dict[str, Any]) -> LoggingConfig:
    """Read the logging table without validation, replacing unknown enum values."""
    level = section.get("level")
    fmt = section.get("format")
    return LoggingConfig(
        level=LogLevel(level) if level in _LEVELS else LogLevel.INFO,
        format=LogFormat(fmt) if fmt in _FORMATS else LogFormat.JSON,
        file=str(section.get("file") or ""),
    )


def _layer_values(source: ConfigSource) -> dict[str, Any]:
    match source.name:
        case ConfigSourceName.DEFAULT | ConfigSourceName.CLI:
            return source.values
        case ConfigSourceName.ENV:
            return parse_env_vars()
        case _ if source.path is not None and source.exists:
            return read_toml_file(source.path)
        case _:
            return {}


class Config(BaseModel):
    """Read-only view of the effective configuration.

    Build one with :meth:`from_dict`, :meth:`from_file` or :meth:`load`.
    Sections are available as typed attributes; :meth:`get` reaches any
    key of the merged dictionary, including ones the schema ignores.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    corpus: CorpusConfig = Field(default_factory=CorpusConfig)

    _data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())

    @classmethod
    def _from_merged(
        cls,
        merged: dict[str, Any],
        sources: tuple[ConfigSource, ...] = (),
        *,
        validate: bool = True,
        origin: str | None = None,
        strict: bool = False,
    ) -> Self:
        from zdp.config._validation import (  # noqa: PLC0415
            raise_if_validation_errors,
            validate_config,
        )

        if validate:
            raise_if_validation_errors(validate_config(merged, strict=strict), source=origin)
            logging_section = LoggingConfig.model_validate(merged.get("logging", {}))
        else:
            logging_section = _lenient_logging(merged.get("logging", {}))

        config = cls(
            logging=logging_section,
            corpus=CorpusConfig.model_validate(merged.get("corpus", {})),
        )
        config._data = merged
        config._sources = sources
        return config

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, validate: bool = True) -> Self:
        """Layer ``data`` over the built-in defaults.

        Raises:
            ConfigValidationError: If ``validate`` is set and a value is invalid.
        """
        return cls._from_merged(deep_merge(DEFAULT_CONFIG, data), validate=validate)

    @classmethod
    def from_file(
        cls,
        path: Path,
        *,
        validate: bool = True,
        strict: bool = False,
    ) -> Self:
        """Use one TOML file over the defaults, ignoring every other layer.

        Raises:
            FileNotFoundError: If ``path`` is missing.
            ConfigLoadError: If the file is not valid TOML.
            ConfigValidationError: If a value is invalid, or with ``strict``
                if a key is unknown.
        """
        data = read_toml_file(path)
        layer = ConfigSource(ConfigSourceName.PROJECT, path, exists=True, values=data)
        return cls._from_merged(
            deep_merge(DEFAULT_CONFIG, data),
            (layer,),
            validate=validate,
            origin=str(path),
            strict=strict,
        )

    @classmethod
    def load(
        cls,
        *,
        project_root: Path | None = None,
        include_env: bool = True,
        include_cli: bool = False,
        cli_overrides: dict[str, Any] | None = None,
        strict: bool = False,
    ) -> Self:
        """Merge every discovered layer: defaults, user, project, env, CLI.

        ``project_root`` defaults to the nearest directory above the working
        directory that holds the index or a ``zdp.toml``.
        """
        from zdp.config._discovery import discover_sources  # noqa: PLC0415

        discovered = discover_sources(
            project_root=project_root,
            include_env=include_env,
            include_cli=include_cli,
            cli_overrides=cli_overrides,
        )

        merged: dict[str, Any] = {}
        loaded: list[ConfigSource] = []
        for layer in reversed(discovered):
            values = _layer_values(layer)
            merged = deep_merge(merged, values)
            loaded.insert(
                0, ConfigSource(layer.name, layer.path, exists=layer.exists, values=values)
            )

        return cls._from_merged(merged, tuple(loaded), strict=strict)

    @property
    def sources(self) -> list[ConfigSource]:
        """Layers behind this configuration, strongest first."""
        return list(self._sources)

    @overload
    def get(self, key: str) -> Any: ...

    @overload
    def get(self, key: str, default: T) -> T: ...

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``"corpus.index_file"``."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)
