"""Lifecycle controller construction for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

from zdp.exceptions import ZdpError
from zdp.lifecycle import LifecycleController, StateRegistry
from zdp.repository import GitRepository
from zdp.utils import create_null_logger

from ._context import CLIContext
from ._shared import exit_code_for_exception, exit_with_error


@contextmanager
def open_controller(command: str) -> Iterator[LifecycleController]:
    """Build a controller for the current corpus and report its failures.

    Any ``ZdpError`` raised while the controller is in use is logged and
    turned into ``Error: <message>`` on stderr with the matching exit code.

    Args:
        command: Command name bound to every log entry.

    Yields:
        A controller rooted at the resolved corpus root.

    Raises:
        SystemExit: If the corpus is not in a Git repository or the
            operation fails.
    """
    ctx = CLIContext.get_current()
    logger = (ctx.logger or create_null_logger()).bind(command=command)
    corpus = ctx.config.corpus

    try:
        root = ctx.resolve_root()
        registry = StateRegistry.from_config(corpus)
        with GitRepository(root) as repository:
            yield LifecycleController(
                root,
                registry,
                repository,
                index_file=corpus.index_file,
                number_width=corpus.number_width,
                suffix=corpus.document_suffix,
                logger=logger,
            )
    except ZdpError as e:
        logger.error("command failed", error=str(e), error_type=type(e).__name__)
        exit_with_error(str(e), exit_code_for_exception(e))
