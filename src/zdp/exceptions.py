"""zdp exceptions."""

from collections.abc import Sequence
from pathlib import Path
from typing import Any


class ZdpError(Exception):
    """Base exception for zdp errors."""


class ConfigError(ZdpError):
    """A configuration layer could not be read or is invalid."""


class ConfigLoadError(ConfigError):
    """A configuration file is unreadable or not valid TOML."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Record where in the file parsing failed, when known."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """A configuration value does not fit the schema."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Record the offending key, its value and the layer it came from."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source


# =============================================================================
# User Input Exceptions
# =============================================================================


class UserInputError(ZdpError):
    """Base exception for errors caused by invalid user input."""


class DocumentNotFoundError(UserInputError, FileNotFoundError):
    """Raised when a document path does not exist.

    Attributes:
        path: The path that was not found.
    """

    def __init__(self, message: str, *, path: Path) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The path that was not found.
        """
        super().__init__(message)
        self.path: Path = path


class UnsupportedStateError(UserInputError, ValueError):
    """Raised when a state name is not in the state registry.

    Attributes:
        state: The state name as given.
        supported: Sorted display names of every supported state.
    """

    def __init__(
        self,
        message: str,
        *,
        state: str,
        supported: Sequence[str] = (),
    ) -> None:
        """Initialize with error message and state context.

        Args:
            message: Human-readable error message.
            state: The state name as given.
            supported: Sorted display names of every supported state.
        """
        super().__init__(message)
        self.state: str = state
        self.supported: tuple[str, ...] = tuple(supported)


class AlreadyInStateError(UserInputError, ValueError):
    """Raised when a transition targets the document's current state."""

    def __init__(self, message: str, *, path: Path, state: str) -> None:
        """Initialize with error message and transition context."""
        super().__init__(message)
        self.path: Path = path
        self.state: str = state


class AlreadyInCorrectDirectoryError(UserInputError, ValueError):
    """Raised when a document already lives in its header state's directory."""

    def __init__(self, message: str, *, path: Path, state: str) -> None:
        """Initialize with error message and document context."""
        super().__init__(message)
        self.path: Path = path
        self.state: str = state


# =============================================================================
# Document Exceptions
# =============================================================================


class DocumentFormatError(ZdpError, ValueError):
    """Base exception for documents whose envelope cannot be used.

    Attributes:
        path: Path to the offending document, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and document context.

        Args:
            message: Human-readable error message.
            path: Path to the offending document, when known.
            cause: The underlying parse exception, if any.
        """
        super().__init__(message)
        self.path: Path | None = path
        self.cause: Exception | None = cause


class MalformedEnvelopeError(DocumentFormatError):
    """Raised when a document has no parsable metadata envelope."""


class MissingStateFieldError(DocumentFormatError):
    """Raised when an envelope is present but has no ``state`` field."""


class DocumentIOError(ZdpError):
    """Raised when a document or index file cannot be read or written.

    Attributes:
        path: The path that failed.
        operation: The operation that failed ("read" or "write").
        cause: The underlying OS error.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and I/O context.

        Args:
            message: Human-readable error message.
            path: The path that failed.
            operation: The operation that failed.
            cause: The underlying OS error.
        """
        super().__init__(message)
        self.path: Path = path
        self.operation: str = operation
        self.cause: Exception | None = cause


# =============================================================================
# Invariant Exceptions
# =============================================================================


class InvariantViolationError(ZdpError):
    """Base exception for internal consistency failures."""


class IndexFormatError(InvariantViolationError):
    """Raised when the aggregate index lacks a structure an edit requires.

    Attributes:
        path: Path to the index file, when known.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and index context."""
        super().__init__(message)
        self.path: Path | None = path


class DuplicateDocumentNumberError(InvariantViolationError):
    """Raised when a document number is already present in the index table."""

    def __init__(self, message: str, *, number: str) -> None:
        """Initialize with error message and the clashing number."""
        super().__init__(message)
        self.number: str = number


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(ZdpError):
    """Base exception for version-control failures."""


class RepositoryNotInitializedError(RepositoryError):
    """Raised when no Git repository encloses the corpus root.

    Attributes:
        path: The directory where discovery started.
    """

    def __init__(self, message: str, *, path: Path) -> None:
        """Initialize with error message and discovery context.

        Args:
            message: Human-readable error message.
            path: The directory where discovery started.
        """
        super().__init__(message)
        self.path: Path = path


class RepositoryCommandError(RepositoryError):
    """Raised when Git refuses an operation.

    The underlying diagnostic is appended to the message.

    Attributes:
        command: The equivalent git command line, for diagnostics.
        output: The diagnostic reported by the Git layer.
    """

    def __init__(
        self,
        message: str,
        *,
        command: Sequence[str],
        output: str = "",
    ) -> None:
        """Initialize with error message and operation context.

        Args:
            message: Human-readable error message.
            command: The equivalent git command line.
            output: The diagnostic reported by the Git layer.
        """
        detail = output.strip()
        super().__init__(f"{message}\nOutput: {detail}" if detail else message)
        self.command: tuple[str, ...] = tuple(command)
        self.output: str = output


class MoveFailureError(RepositoryError):
    """Raised when a history-preserving move cannot be performed.

    Attributes:
        source: The path being moved.
        destination: The intended destination.
        cause: The underlying repository error, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        source: Path,
        destination: Path,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and move context."""
        super().__init__(message)
        self.source: Path = source
        self.destination: Path = destination
        self.cause: Exception | None = cause
