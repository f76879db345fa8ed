"""File I/O utilities for corpus documents and the aggregate index.

Reads and writes go through bytes so that line endings and every byte the
lifecycle operations do not touch survive a round trip. Writes are atomic.
"""

import shutil
import tempfile
from pathlib import Path

from zdp.exceptions import DocumentIOError, DocumentNotFoundError

__all__ = ["read_text", "write_text_atomic"]


def read_text(path: Path) -> str:
    """Read a UTF-8 text file without newline translation.

    Args:
        path: File to read.

    Returns:
        The decoded file content.

    Raises:
        DocumentNotFoundError: If the file does not exist.
        DocumentIOError: If the file cannot be read or decoded.
    """
    try:
        data = path.read_bytes()
    except FileNotFoundError as e:
        msg = f"File not found: {path}"
        raise DocumentNotFoundError(msg, path=path) from e
    except OSError as e:
        msg = f"Failed to read file: {e}"
        raise DocumentIOError(msg, path=path, operation="read", cause=e) from e

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"File is not valid UTF-8: {path}"
        raise DocumentIOError(msg, path=path, operation="read", cause=e) from e


def write_text_atomic(path: Path, content: str) -> None:
    """Write text to a file atomically.

    Writes to a temporary file in the same directory, then renames it over
    the target path, so the file is either fully written or left untouched.

    Args:
        path: Destination file path.
        content: Text to write, encoded as UTF-8.

    Raises:
        DocumentIOError: If the write operation fails.
    """
    temp_path: Path | None = None
    try:
        _ = path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            delete=False,
            prefix=f".{path.name}.",
            suffix=".tmp",
        ) as f:
            _ = f.write(content.encode("utf-8"))
            temp_path = Path(f.name)

        if path.exists():
            shutil.copymode(path, temp_path)
        # Path.replace() is atomic on both POSIX and Windows
        _ = temp_path.replace(path)

    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        msg = f"Failed to write file: {e}"
        raise DocumentIOError(msg, path=path, operation="write", cause=e) from e
