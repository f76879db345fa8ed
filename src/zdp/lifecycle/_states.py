"""Lifecycle state registry.

A StateRegistry is an immutable table binding each lifecycle state to its
comparison key, its directory name and its canonical display form. One
registry is built at startup and passed to every component that needs it.
"""

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Self

from zdp.exceptions import UnsupportedStateError

if TYPE_CHECKING:
    from zdp.config import CorpusConfig

__all__ = ["DEFAULT_STATES", "State", "StateRegistry", "normalize_state"]

_SEPARATORS = re.compile(r"[-_\s]+")


def normalize_state(text: str) -> str:
    """Return the comparison key for a state name.

    Lower-cases and treats hyphens and underscores as spaces, so that
    "Under-Review", "under review" and "UNDER REVIEW" share one key.

    Args:
        text: State name as typed by a user or read from an envelope.

    Returns:
        The normalized key.
    """
    return _SEPARATORS.sub(" ", text).strip().lower()


@dataclass(frozen=True, slots=True)
class State:
    """A single lifecycle state.

    Attributes:
        key: Normalized comparison key (e.g. "under review").
        directory: Directory name holding documents in this state.
        display: Canonical title-case form written into envelopes and the index.
    """

    key: str
    directory: str
    display: str

    @classmethod
    def from_name(cls, name: str, directory: str) -> Self:
        """Build a state whose display form is the title-cased key."""
        key = normalize_state(name)
        return cls(key=key, directory=directory, display=key.title())


DEFAULT_STATES: tuple[State, ...] = (
    State.from_name("draft", "01-draft"),
    State.from_name("under review", "02-under-review"),
    State.from_name("revised", "03-revised"),
    State.from_name("accepted", "04-accepted"),
    State.from_name("active", "05-active"),
    State.from_name("final", "06-final"),
    State.from_name("deferred", "07-deferred"),
    State.from_name("rejected", "08-rejected"),
    State.from_name("withdrawn", "09-withdrawn"),
    State.from_name("superseded", "10-superseded"),
)


@dataclass(frozen=True, slots=True)
class StateRegistry:
    """Closed, immutable mapping between state names and directories.

    Attributes:
        states: States in declaration order.
        default_key: Key of the state new documents start in.
    """

    states: tuple[State, ...] = DEFAULT_STATES
    default_key: str = "draft"
    _by_key: dict[str, State] = field(init=False, repr=False, compare=False)
    _by_directory: dict[str, State] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_key: dict[str, State] = {}
        by_directory: dict[str, State] = {}
        for state in self.states:
            if state.key in by_key:
                msg = f"Duplicate state: {state.display}"
                raise ValueError(msg)
            if state.directory in by_directory:
                msg = f"Duplicate state directory: {state.directory}"
                raise ValueError(msg)
            by_key[state.key] = state
            by_directory[state.directory] = state
        if normalize_state(self.default_key) not in by_key:
            msg = f"Default state {self.default_key!r} is not a registered state"
            raise ValueError(msg)
        object.__setattr__(self, "_by_key", by_key)
        object.__setattr__(self, "_by_directory", by_directory)

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[tuple[str, str]], *, default: str = "draft"
    ) -> Self:
        """Build a registry from ``(name, directory)`` pairs.

        Args:
            pairs: State names and their directories, in display order.
            default: Name of the initial state for new documents.

        Returns:
            A new registry.
        """
        states = tuple(State.from_name(name, directory) for name, directory in pairs)
        return cls(states=states, default_key=normalize_state(default))

    @classmethod
    def from_config(cls, corpus: "CorpusConfig") -> Self:
        """Build the registry described by the corpus configuration section."""
        return cls.from_pairs(
            ((entry.name, entry.directory) for entry in corpus.states),
            default=corpus.default_state,
        )

    def __iter__(self) -> Iterator[State]:
        return iter(self.states)

    def __len__(self) -> int:
        return len(self.states)

    def __contains__(self, text: object) -> bool:
        return isinstance(text, str) and normalize_state(text) in self._by_key

    @property
    def default(self) -> State:
        """Return the state new documents are placed in."""
        return self._by_key[normalize_state(self.default_key)]

    @property
    def directories(self) -> list[str]:
        """Return every state directory name in declaration order."""
        return [state.directory for state in self.states]

    def is_supported(self, text: str) -> bool:
        """Check whether any spelling of ``text`` names a registered state."""
        return normalize_state(text) in self._by_key

    def normalize(self, text: str) -> str:
        """Return the comparison key for ``text``."""
        return normalize_state(text)

    def get(self, text: str) -> State:
        """Look up a state by any spelling of its name.

        Raises:
            UnsupportedStateError: If the name is not registered.
        """
        state = self._by_key.get(normalize_state(text))
        if state is None:
            supported = self.all_display_names()
            msg = (
                f'Unsupported state "{text}". '
                f"Supported states are:\n{', '.join(supported)}"
            )
            raise UnsupportedStateError(msg, state=text, supported=supported)
        return state

    def resolve_directory(self, text: str) -> str:
        """Return the directory name for a state.

        Raises:
            UnsupportedStateError: If the name is not registered.
        """
        return self.get(text).directory

    def display_form(self, text: str) -> str:
        """Return the canonical title-case name for a state.

        Raises:
            UnsupportedStateError: If the name is not registered.
        """
        return self.get(text).display

    def all_display_names(self) -> list[str]:
        """Return every display name sorted alphabetically."""
        return sorted(state.display for state in self.states)

    def state_for_directory(self, directory: str) -> State | None:
        """Return the state bound to a directory name, if any."""
        return self._by_directory.get(directory)

    def same_state(self, left: str, right: str) -> bool:
        """Compare two state spellings by key."""
        return normalize_state(left) == normalize_state(right)
