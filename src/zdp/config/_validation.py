# pyright: reportAny=false, reportExplicitAny=false, reportUnknownArgumentType=false, reportUnknownMemberType=false, reportUnknownParameterType=false, reportUnknownVariableType=false
"""Checking configuration dictionaries against the section models.

Two schemas are available. The lenient one ignores unknown keys. The strict
one, used when ``ZDP_STRICT_CONFIG=1``, reports them as errors.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from zdp.config._models._common import ConfigSource
from zdp.config._models._corpus import CorpusConfig, StateConfig, default_states
from zdp.config._models._logging import LoggingConfig
from zdp.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single problem found in a configuration dictionary.

    ``key`` is dotted (``corpus.states.0.name``). ``source`` names the layer
    the value came from when it is known.
    """

    key: str
    message: str
    expected: str | None
    actual: Any
    source: str | None
    severity: Literal["error", "warning"]


class ConfigSchema(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    corpus: CorpusConfig = Field(default_factory=CorpusConfig)


class LoggingConfigStrict(LoggingConfig):
    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")


class StateConfigStrict(StateConfig):
    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")


class CorpusConfigStrict(CorpusConfig):
    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    states: list[StateConfigStrict] = Field(  # pyright: ignore[reportIncompatibleVariableOverride]
        default_factory=lambda: [
            StateConfigStrict.model_validate(state.model_dump()) for state in default_states()
        ],
        min_length=1,
    )


class ConfigSchemaStrict(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    logging: LoggingConfigStrict = Field(default_factory=LoggingConfigStrict)
    corpus: CorpusConfigStrict = Field(default_factory=CorpusConfigStrict)


def _expected(error: "ErrorDetails") -> str | None:
    ctx = error.get("ctx") or {}
    if "expected" in ctx:
        return str(ctx["expected"])
    if "pattern" in ctx:
        return f"pattern: {ctx['pattern']}"
    return None


def _issues(
    schema: type[BaseModel], data: dict[str, Any], source: str | None
) -> list[ValidationIssue]:
    try:
        _ = schema.model_validate(data)
    except ValidationError as e:
        return [
            ValidationIssue(
                key=".".join(str(part) for part in error.get("loc", ())),
                message=str(error.get("msg", "Validation error")),
                expected=_expected(error),
                actual=error.get("input"),
                source=source,
                severity="error",
            )
            for error in e.errors()
        ]
    return []


def validate_config(
    config: dict[str, Any],
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """Check a merged configuration. An empty list means it is valid."""
    return _issues(ConfigSchemaStrict if strict else ConfigSchema, config, None)


def validate_source(source: ConfigSource) -> list[ValidationIssue]:
    """Check one layer on its own, tagging issues with the layer name.

    Layers that are missing or contribute nothing have no issues.
    """
    if not (source.exists and source.values):
        return []
    return _issues(ConfigSchema, source.values, source.name.value)


def raise_if_validation_errors(
    issues: list[ValidationIssue],
    source: str | None = None,
) -> None:
    """Raise for the first error-severity issue; warnings pass.

    ``source`` overrides the layer recorded on the issue, for example with the
    path of an explicitly requested config file.

    Raises:
        ConfigValidationError: If any issue is an error.
    """
    issue = next((i for i in issues if i.severity == "error"), None)
    if issue is None:
        return
    msg = f"Invalid configuration value for '{issue.key}'"
    raise ConfigValidationError(
        msg,
        key=issue.key,
        value=issue.actual,
        expected=issue.expected or issue.message,
        source=source or issue.source,
    )
