"""Corpus configuration models.

This module provides Pydantic models describing the document corpus: the
index file, numbering, and the table of lifecycle states.
"""

from typing import ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from zdp.lifecycle import normalize_state


class StateConfig(BaseModel):
    """One lifecycle state and the directory holding its documents."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., min_length=1, description="State name, e.g. 'under review'.")
    directory: str = Field(
        ..., min_length=1, description="Directory name, e.g. '02-under-review'."
    )


def default_states() -> list[StateConfig]:
    pairs = [
        ("draft", "01-draft"),
        ("under review", "02-under-review"),
        ("revised", "03-revised"),
        ("accepted", "04-accepted"),
        ("active", "05-active"),
        ("final", "06-final"),
        ("deferred", "07-deferred"),
        ("rejected", "08-rejected"),
        ("withdrawn", "09-withdrawn"),
        ("superseded", "10-superseded"),
    ]
    return [StateConfig(name=name, directory=directory) for name, directory in pairs]


class CorpusConfig(BaseModel):
    """Corpus configuration section.

    Attributes:
        index_file: Aggregate index file name, relative to the corpus root.
        default_state: State newly added documents are placed in.
        number_width: Zero-padding width of document numbers.
        document_suffix: File suffix of corpus documents.
        states: Lifecycle states in display order.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    index_file: str = Field(default="00-index.md", min_length=1)
    default_state: str = Field(default="draft", min_length=1)
    number_width: int = Field(default=4, ge=1, le=9)
    document_suffix: str = Field(default=".md", pattern=r"^\.\w+$")
    states: list[StateConfig] = Field(default_factory=default_states, min_length=1)

    @model_validator(mode="after")
    def check_states(self) -> Self:
        names = [normalize_state(state.name) for state in self.states]
        if len(set(names)) != len(names):
            msg = "states contains duplicate names"
            raise ValueError(msg)
        directories = [state.directory for state in self.states]
        if len(set(directories)) != len(directories):
            msg = "states contains duplicate directories"
            raise ValueError(msg)
        if normalize_state(self.default_state) not in names:
            msg = f"default_state {self.default_state!r} is not one of the configured states"
            raise ValueError(msg)
        return self
